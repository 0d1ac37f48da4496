"""
Scheduling Domain

Availability resolution, booking and the appointment lifecycle.

LAYOUT:
- time_calculator.py: minute arithmetic and interval set operations
- availability_service.py: free time for a provider on a date
- booking_service.py / lifecycle_service.py: validated mutations under the provider lock
- engine.py: SchedulingEngine facade returning OperationResult
- router.py: HTTP endpoints under /scheduling
"""

from .engine import SchedulingEngine
from .router import router

__all__ = ["SchedulingEngine", "router"]
