"""Streamlit admin console for business rules, responsibles and systems."""
