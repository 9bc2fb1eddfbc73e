"""
Unit tests package.
"""
