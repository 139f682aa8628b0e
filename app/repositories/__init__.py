"""
app/repositories package marker.
"""

from app.repositories.herd_state_repository import HerdStateRepository

__all__ = [
    "HerdStateRepository",
]
