"""API module"""

from .routes import admin, webhooks, health

__all__ = ["admin", "webhooks", "health"]
