"""Token persistence."""
