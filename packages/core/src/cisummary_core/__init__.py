"""Core of cisummary: parse, merge, render and coordinate the CI summary comment."""
