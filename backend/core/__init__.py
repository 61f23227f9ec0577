"""Backend core package.

Contains the shared schemas, configuration, logging setup, in-memory
storage and AI metric aggregation.
"""
