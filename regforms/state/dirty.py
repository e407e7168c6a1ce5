"""Dirty tracking against the load/reset snapshot."""

from __future__ import annotations

from enum import Enum
from typing import Any, List, Mapping

__all__ = ["is_dirty", "changed_fields"]


def changed_fields(fields: Mapping[Enum, Any], snapshot: Mapping[Enum, Any]) -> List[Enum]:
    """Fields whose value differs from the snapshot, in declaration order."""
    return [f for f, value in fields.items() if value != snapshot.get(f)]


def is_dirty(fields: Mapping[Enum, Any], snapshot: Mapping[Enum, Any]) -> bool:
    """Compare by value, not identity."""
    return any(value != snapshot.get(f) for f, value in fields.items())
