"""Google Photos Albums: OAuth-authorized album commands for Google Photos."""

__version__ = "0.1.0"
