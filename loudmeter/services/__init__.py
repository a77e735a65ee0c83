"""Service layer for Loudmeter."""

from .metering_service import MeteringService

__all__ = [
    "MeteringService",
]
