"""
Module: livestock_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the canonical import surface for higher
    layers (livestock_services, livestock_modules).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import livestock_kernel.domain, livestock_kernel.exceptions and
    livestock_kernel.logging_config.  MUST NOT import livestock_services or
    livestock_modules.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      Dates are passed in as explicit parameters.
    - Decimal-only arithmetic; floats are forbidden.
    - Determinism: identical inputs always produce identical outputs.

Usage:
    from livestock_engines import AllocationEngine, PricingAdvisor
"""

from livestock_engines.allocation import (
    ENGINE_CONTEXT,
    AllocationEngine,
    CostBreakdown,
    ProfitFigures,
    ProfitSplit,
)
from livestock_engines.pricing import PriceSuggestion, PricingAdvisor
from livestock_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    "ENGINE_CONTEXT",
    "AllocationEngine",
    "CostBreakdown",
    "ProfitFigures",
    "ProfitSplit",
    "PriceSuggestion",
    "PricingAdvisor",
    "compute_input_fingerprint",
    "traced_engine",
]
