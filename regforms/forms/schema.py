"""Pydantic-backed field validation for form declarations.

Each form supplies one pydantic model per mode. ``SchemaValidator`` runs
the model over the engine's projection and turns pydantic errors into the
opaque translation keys the engine stores (``messages.team.nameRequired``,
``messages.validation.emailInvalid``, ...). Rendering code resolves those
keys; the engine never sees human text.

Custom validators raise ``PydanticCustomError`` with one of the error types
below so the mapping stays explicit:

    required       -> IssueKind.REQUIRED
    invalid_format -> IssueKind.FORMAT
    cross_field    -> IssueKind.CROSS_FIELD
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Type

from pydantic import BaseModel, ValidationError
from pydantic_core import PydanticCustomError

from regforms.state.types import FormMode

logger = logging.getLogger(__name__)

__all__ = [
    "IssueKind",
    "FieldMessages",
    "SchemaValidator",
    "PHONE_REGEX",
    "EMAIL_REGEX",
    "ISO_DATE_REGEX",
    "check_phone",
    "check_email",
    "check_iso_date",
    "issue_kind",
]

PHONE_REGEX = re.compile(r"^[+]?[0-9\s\-()]+$")
EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
ISO_DATE_REGEX = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class IssueKind(str, Enum):
    """Field-level problem kinds, in display priority order."""

    REQUIRED = "required"
    FORMAT = "format"
    TOO_LONG = "too_long"
    CROSS_FIELD = "cross_field"


_PRIORITY = {kind: index for index, kind in enumerate(IssueKind)}

_ERROR_TYPE_KINDS = {
    "missing": IssueKind.REQUIRED,
    "required": IssueKind.REQUIRED,
    "string_too_short": IssueKind.REQUIRED,
    "too_short": IssueKind.REQUIRED,
    "string_too_long": IssueKind.TOO_LONG,
    "too_long": IssueKind.TOO_LONG,
    "string_pattern_mismatch": IssueKind.FORMAT,
    "invalid_format": IssueKind.FORMAT,
    "cross_field": IssueKind.CROSS_FIELD,
}


def issue_kind(error_type: str) -> IssueKind:
    """Classify a pydantic error type; unknown types count as format errors."""
    return _ERROR_TYPE_KINDS.get(error_type, IssueKind.FORMAT)


@dataclass(frozen=True)
class FieldMessages:
    """Translation keys for one field."""

    required: str
    invalid: Optional[str] = None
    too_long: Optional[str] = None
    cross_field: Optional[str] = None

    def for_kind(self, kind: IssueKind) -> str:
        if kind is IssueKind.TOO_LONG and self.too_long:
            return self.too_long
        if kind is IssueKind.CROSS_FIELD and self.cross_field:
            return self.cross_field
        if kind in (IssueKind.FORMAT, IssueKind.TOO_LONG, IssueKind.CROSS_FIELD) and self.invalid:
            return self.invalid
        return self.required


# ----------------------------------------------------------------------
# Reusable value checks for field_validator hooks
# ----------------------------------------------------------------------


def check_phone(value: str) -> str:
    if not PHONE_REGEX.match(value):
        raise PydanticCustomError("invalid_format", "Invalid phone number")
    return value


def check_email(value: str) -> str:
    if not EMAIL_REGEX.match(value):
        raise PydanticCustomError("invalid_format", "Invalid email address")
    return value


def check_iso_date(value: str) -> str:
    if not ISO_DATE_REGEX.match(value):
        raise PydanticCustomError("invalid_format", "Expected YYYY-MM-DD")
    try:
        date.fromisoformat(value)
    except ValueError:
        raise PydanticCustomError("invalid_format", "Not a calendar date") from None
    return value


class SchemaValidator:
    """FieldValidator implementation over per-mode pydantic models.

    Args:
        form: Form name, for logging
        models: Pydantic model per mode
        messages: Translation keys per wire field name
    """

    def __init__(
        self,
        form: str,
        models: Mapping[FormMode, Type[BaseModel]],
        messages: Mapping[str, FieldMessages],
    ) -> None:
        self.form = form
        self.models = dict(models)
        self.messages = dict(messages)
        self._loc_keys: Dict[FormMode, Dict[str, str]] = {
            mode: _loc_keys(model) for mode, model in self.models.items()
        }

    def model_for(self, mode: FormMode) -> Type[BaseModel]:
        return self.models[FormMode(mode)]

    def validate(self, data: Mapping[str, Any], mode: FormMode) -> Dict[str, str]:
        """Error key for every failing field, one per field."""
        mode = FormMode(mode)
        try:
            self.model_for(mode).model_validate(dict(data))
        except ValidationError as e:
            return self._to_keys(e, mode)
        return {}

    def validate_field(self, key: str, data: Mapping[str, Any], mode: FormMode) -> Optional[str]:
        return self.validate(data, mode).get(key)

    def parse(self, data: Mapping[str, Any], mode: FormMode) -> BaseModel:
        """Typed model for a valid projection; raises ValidationError otherwise."""
        return self.model_for(FormMode(mode)).model_validate(dict(data))

    def _to_keys(self, error: ValidationError, mode: FormMode) -> Dict[str, str]:
        loc_keys = self._loc_keys[mode]
        worst: Dict[str, IssueKind] = {}
        for item in error.errors():
            if not item["loc"]:
                continue
            key = loc_keys.get(str(item["loc"][0]))
            if key is None:
                continue
            kind = issue_kind(item["type"])
            if key not in worst or _PRIORITY[kind] < _PRIORITY[worst[key]]:
                worst[key] = kind

        result: Dict[str, str] = {}
        for key, kind in worst.items():
            messages = self.messages.get(key)
            if messages is None:
                logger.debug("No messages declared for %s.%s", self.form, key)
                result[key] = f"messages.{self.form}.{key}Invalid"
            else:
                result[key] = messages.for_kind(kind)
        return result


def _loc_keys(model: Type[BaseModel]) -> Dict[str, str]:
    """Map both attribute names and aliases to the wire name (the alias)."""
    keys: Dict[str, str] = {}
    for attr, info in model.model_fields.items():
        wire = info.alias or attr
        keys[attr] = wire
        keys[wire] = wire
    return keys
