"""Core value types of the form state engine.

These are plain dataclasses and enums with no I/O, so they can be built
and compared freely in tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Union

if TYPE_CHECKING:
    from regforms.lib.catalog import TournamentOption

__all__ = [
    "FormMode",
    "ExecutionContext",
    "FieldKind",
    "Value",
    "ValidationState",
    "FormMeta",
    "AvailableOptions",
    "is_empty_value",
    "empty_value_for",
    "field_key",
    "copy_value",
]

Value = Union[str, bool, List[str]]


class FormMode(str, Enum):
    """Whether the form creates a new record or edits an existing one."""

    CREATE = "create"
    EDIT = "edit"


class ExecutionContext(str, Enum):
    """Where the engine runs.

    INTERACTIVE sessions restore and persist state; NON_INTERACTIVE
    (server-rendered) sessions never touch the session store.
    """

    INTERACTIVE = "interactive"
    NON_INTERACTIVE = "non_interactive"


class FieldKind(str, Enum):
    """Declared value type of a field."""

    TEXT = "text"
    FLAG = "flag"
    MULTI = "multi"

    @classmethod
    def of(cls, value: Any) -> "FieldKind":
        if isinstance(value, bool):
            return cls.FLAG
        if isinstance(value, list):
            return cls.MULTI
        return cls.TEXT

    def accepts(self, value: Any) -> bool:
        if self is FieldKind.FLAG:
            return isinstance(value, bool)
        if self is FieldKind.MULTI:
            return isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value)
        return isinstance(value, str)

    def empty(self) -> Value:
        if self is FieldKind.FLAG:
            return False
        if self is FieldKind.MULTI:
            return []
        return ""


def is_empty_value(value: Any) -> bool:
    """True for None, False, blank strings and empty lists."""
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


def empty_value_for(value: Any) -> Value:
    """The empty value of the same kind as ``value``."""
    return FieldKind.of(value).empty()


def field_key(field_id: Any) -> str:
    """Plain string key for a field id (enum member or wire name)."""
    if isinstance(field_id, Enum):
        return str(field_id.value)
    return str(field_id)


def copy_value(value: Any) -> Any:
    """Private copy of a field value; list and tuple values become a new list."""
    return list(value) if isinstance(value, (list, tuple)) else value


@dataclass
class ValidationState:
    """Per-field validation bookkeeping. Never persisted.

    Attributes:
        errors: Raw validator output for fields that were evaluated
        display_errors: What a renderer may show (client and server merged)
        blurred_fields: Fields the user has left at least once
        server_errors: Messages from the last rejected submission
        server_error_values: Field values at the time each server error arrived
        submit_attempted: A submission was attempted at least once
        force_show_all_errors: Reveal every error regardless of blur state
    """

    errors: Dict[str, str] = field(default_factory=dict)
    display_errors: Dict[str, str] = field(default_factory=dict)
    blurred_fields: Dict[str, bool] = field(default_factory=dict)
    server_errors: Dict[str, str] = field(default_factory=dict)
    server_error_values: Dict[str, Any] = field(default_factory=dict)
    submit_attempted: bool = False
    force_show_all_errors: bool = False

    def clear_field(self, key: str) -> None:
        """Drop every error recorded for one field."""
        self.errors.pop(key, None)
        self.display_errors.pop(key, None)
        self.server_errors.pop(key, None)
        self.server_error_values.pop(key, None)

    def clear_errors(self) -> None:
        self.errors.clear()
        self.display_errors.clear()
        self.server_errors.clear()
        self.server_error_values.clear()


@dataclass
class FormMeta:
    mode: FormMode = FormMode.CREATE
    is_submitting: bool = False
    is_valid: bool = False


@dataclass
class AvailableOptions:
    """External catalog plus the option lists derived from the parent field."""

    tournaments: List["TournamentOption"] = field(default_factory=list)
    divisions: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)
