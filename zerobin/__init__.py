"""ZeroBin client core and backend-for-frontend service."""

__version__ = "1.0.0"
