"""
Livestock Kernel

Persistence, snapshot reads and write commands for a livestock business:
- Animals, caretakers, expenses, health and weight records per business
- Explicit ORM-to-DTO mapping for every entity
- Structured ledger entries for sales
- Typed errors and structured JSON logging
"""

__version__ = "0.1.0"
