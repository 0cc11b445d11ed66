"""
Core business logic services.

Layer-pure services that depend only on:
- stockledger/core/entities/*
- stockledger/core/interfaces/*
- stockledger/core/exceptions.py

NO infrastructure imports. All dependencies injected via constructor.
"""

from stockledger.core.services.line_locks import StockLineLockTable
from stockledger.core.services.movement_recorder import (
    AppliedMovement,
    MovementRecorder,
    parse_movement_type,
    parse_unit_cost,
    validate_quantity,
)
from stockledger.core.services.valuation_engine import (
    LineValue,
    match_lots,
    ordered_lots,
    parse_method,
    value_line,
    weighted_average,
)

__all__ = [
    # Locking
    "StockLineLockTable",
    # Movement recording
    "AppliedMovement",
    "MovementRecorder",
    "parse_movement_type",
    "parse_unit_cost",
    "validate_quantity",
    # Valuation
    "LineValue",
    "match_lots",
    "ordered_lots",
    "parse_method",
    "value_line",
    "weighted_average",
]
