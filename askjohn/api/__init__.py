"""API module - HTTP surface for Ask John."""
