"""Write services for the livestock kernel (flush-only)."""

from livestock_kernel.services.base import BaseService
from livestock_kernel.services.herd_service import HerdService

__all__ = [
    "BaseService",
    "HerdService",
]
