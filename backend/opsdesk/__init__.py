"""Opsdesk payment-link backend."""

__version__ = "1.0.0"
