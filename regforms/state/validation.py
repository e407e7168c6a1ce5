"""Validation policy: when errors are computed and when they are shown.

Validation always computes, but display is gated. A field's error only
reaches ``display_errors`` once the field was blurred, or a submission was
attempted, or the form forces all errors visible. Untouched fields never
show red on first render.

Server errors are merged on top of client errors and stay visible while the
field is empty or still holds the value that was rejected.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from regforms.state.declaration import FormDeclaration
from regforms.state.types import (
    FormMode,
    ValidationState,
    copy_value,
    field_key,
    is_empty_value,
)

logger = logging.getLogger(__name__)

__all__ = [
    "should_validate_field",
    "merge_errors",
    "keeps_server_error",
    "ValidationPolicy",
]


def should_validate_field(validation: ValidationState, key: str) -> bool:
    """True once the field may display an error."""
    return (
        bool(validation.blurred_fields.get(key))
        or validation.force_show_all_errors
        or validation.submit_attempted
    )


def merge_errors(
    display_errors: Mapping[str, str], server_errors: Mapping[str, str]
) -> Dict[str, str]:
    """Union of both maps; server errors win on conflict."""
    return {**display_errors, **server_errors}


def keeps_server_error(value: Any, rejected_value: Any) -> bool:
    """A server error survives while the field is empty or unchanged."""
    return is_empty_value(value) or value == rejected_value


class ValidationPolicy:
    """Applies a form's validator to a ValidationState.

    Operates on the state passed in; the engine owns that state.
    """

    def __init__(self, declaration: FormDeclaration) -> None:
        self.declaration = declaration
        self.validator = declaration.validator

    def compute(self, key: str, data: Mapping[str, Any], mode: FormMode) -> Optional[str]:
        return self.validator.validate_field(key, data, mode)

    def validate_field(
        self,
        validation: ValidationState,
        key: str,
        data: Mapping[str, Any],
        mode: FormMode,
    ) -> bool:
        """Recompute one field if display is allowed. Returns whether it ran."""
        if not should_validate_field(validation, key):
            return False
        self._apply(validation, key, self.compute(key, data, mode), data.get(key))
        return True

    def blur_field(
        self,
        validation: ValidationState,
        key: str,
        data: Mapping[str, Any],
        mode: FormMode,
    ) -> Optional[str]:
        """Mark the field blurred and validate it unconditionally."""
        validation.blurred_fields[key] = True
        error = self.compute(key, data, mode)
        self._apply(validation, key, error, data.get(key))
        return validation.display_errors.get(key)

    def _apply(
        self,
        validation: ValidationState,
        key: str,
        error: Optional[str],
        value: Any,
    ) -> None:
        server_error = validation.server_errors.get(key)

        if error:
            validation.errors[key] = error
            validation.display_errors[key] = server_error or error
            return

        validation.errors.pop(key, None)
        if server_error and keeps_server_error(value, validation.server_error_values.get(key)):
            validation.display_errors[key] = server_error
            return

        if server_error:
            logger.debug("Retiring server error for %s", key)
        validation.clear_field(key)

    def validate_form(
        self,
        validation: ValidationState,
        data: Mapping[str, Any],
        mode: FormMode,
    ) -> bool:
        """Validate every field and replace display errors with the result."""
        validation.force_show_all_errors = True
        validation.submit_attempted = True

        errors = dict(self.validator.validate(data, mode))
        validation.errors = dict(errors)
        validation.display_errors = dict(errors)

        retired = [k for k in validation.server_errors if k not in errors]
        for key in retired:
            validation.server_errors.pop(key, None)
            validation.server_error_values.pop(key, None)

        return not validation.display_errors

    def set_server_errors(
        self,
        validation: ValidationState,
        server_errors: Mapping[str, str],
        data: Mapping[str, Any],
    ) -> None:
        errors = {field_key(k): str(v) for k, v in server_errors.items() if v}
        validation.server_errors = errors
        validation.server_error_values = {k: copy_value(data.get(k)) for k in errors}
        validation.display_errors = merge_errors(validation.display_errors, errors)
