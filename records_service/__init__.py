"""Multi-tenant business records service."""

__version__ = "0.1.0"
