"""ORM models for the livestock kernel."""

from livestock_kernel.models.animal import Animal
from livestock_kernel.models.business import Business
from livestock_kernel.models.caretaker import Caretaker
from livestock_kernel.models.expense import Expense
from livestock_kernel.models.health_record import HealthRecord
from livestock_kernel.models.transaction import LedgerTransaction
from livestock_kernel.models.weight_record import WeightRecord

__all__ = [
    "Animal",
    "Business",
    "Caretaker",
    "Expense",
    "HealthRecord",
    "LedgerTransaction",
    "WeightRecord",
]
