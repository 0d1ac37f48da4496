"""Clients domain - Client records, search and visit history"""

from .router import router

__all__ = ["router"]
