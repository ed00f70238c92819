"""relman: release manifest maintenance for multi-service app bundles."""

__version__ = "0.3.0"
