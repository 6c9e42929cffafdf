"""Google Photos Library API access."""
