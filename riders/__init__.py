"""
Riders domain package.

Public API:
- Domain models: Rider, Rating, RiderStatus
- (Service) RiderDirectory lives in riders.directory

Should not contain business logic.
"""
from .models import Rider, Rating, RiderStatus

__all__ = [
    "Rider",
    "Rating",
    "RiderStatus",
]
