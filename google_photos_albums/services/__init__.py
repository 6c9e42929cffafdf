"""Album use cases."""
