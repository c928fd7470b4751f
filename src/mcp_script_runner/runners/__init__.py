"""Script runners."""
