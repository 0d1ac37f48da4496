"""Providers domain - Providers, services, working hours and closures"""

from .router import router

__all__ = ["router"]
