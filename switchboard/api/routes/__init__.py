"""API Routes"""

from . import admin, webhooks, health

__all__ = ["admin", "webhooks", "health"]
