"""HTTP service for recording swipes and listing likes and matches."""

__version__ = "0.1.0"