"""Community Hub: community membership and authorization service."""

__version__ = "0.1.0"
