"""Versioned text resources the CI summary is stored in."""
