"""Script location resolution."""
