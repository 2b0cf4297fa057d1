"""Mana, experience and level ledger."""
from .ledger import ResourceLedger

__all__ = ["ResourceLedger"]
