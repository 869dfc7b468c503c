"""HTTP surface of the intake engine."""

from .app import create_app

__all__ = ["create_app"]
