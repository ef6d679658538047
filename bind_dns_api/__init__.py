"""HTTP API, zone file manager and configuration for BIND DNS zones."""

__version__ = "1.0.0"
__all__ = ["__version__"]