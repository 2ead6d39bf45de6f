"""Facebook page feed to timeline events sync service."""

__version__ = "1.0.0"
