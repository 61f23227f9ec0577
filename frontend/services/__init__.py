"""Typed wrappers around the admin REST API, one service per resource."""
