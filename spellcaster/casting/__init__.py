"""Spell catalog and cast state machine."""
from .spells import SpellBook, DEFAULT_SPELLS, spell_from_dict
from .cast_machine import CastStateMachine, CastState, CastSession

__all__ = [
    "SpellBook",
    "DEFAULT_SPELLS",
    "spell_from_dict",
    "CastStateMachine",
    "CastState",
    "CastSession",
]
