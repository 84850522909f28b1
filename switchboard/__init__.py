"""
Lead Switchboard

Multi-tenant lead intake and outbound AI call dispatcher.
"""

__version__ = "1.0.0"
