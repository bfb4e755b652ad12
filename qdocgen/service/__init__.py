"""HTTP lookup service over a built document model."""

from .app import create_app, run_service

__all__ = ["create_app", "run_service"]
