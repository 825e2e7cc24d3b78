"""
livestock_services -- orchestration over the kernel and engines.

Services here own transaction boundaries: the SaleCoordinator commits or
rolls back a sale as one unit.  Kernel services below only flush.
"""

from livestock_services.runtime import (
    build_report_aggregator,
    build_sale_coordinator,
    init_runtime,
)
from livestock_services.sale_coordinator import (
    SYSTEM_ACTOR_ID,
    BusinessLockRegistry,
    SaleCoordinator,
    SalePreview,
    SaleRecord,
)

__all__ = [
    "SYSTEM_ACTOR_ID",
    "BusinessLockRegistry",
    "SaleCoordinator",
    "SalePreview",
    "SaleRecord",
    "build_report_aggregator",
    "build_sale_coordinator",
    "init_runtime",
]
