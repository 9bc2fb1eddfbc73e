"""Utility helpers: exceptions, identifiers and timestamps."""
