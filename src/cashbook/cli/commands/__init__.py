"""Click command groups registered on the main CLI."""
