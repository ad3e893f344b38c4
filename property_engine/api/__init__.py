"""
API module for the Property Lifecycle Engine.

In-memory notary appointment storage used by the web layer.
"""

from .storage import AppointmentStorage

__all__ = ["AppointmentStorage"]
