"""User management service with OData-like filtering."""

__version__ = "1.0.0"
