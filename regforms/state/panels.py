"""Panel gating: which sections of a form are valid and unlocked.

Conceptually each panel is locked, unlocked-invalid or unlocked-valid; the
engine exposes the two boolean projections. In create mode panels unlock
strictly in order. In edit mode every panel is open.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping

from regforms.state.declaration import FormDeclaration
from regforms.state.types import FormMode, ValidationState, field_key, is_empty_value

__all__ = ["PanelGate"]


class PanelGate:
    """Pure derived reads over fields, display errors and mode."""

    def __init__(self, declaration: FormDeclaration) -> None:
        self.declaration = declaration

    def _checked_fields(self, panel: int, mode: FormMode) -> tuple[Enum, ...]:
        members = self.declaration.fields_in_panel(panel)
        if mode is FormMode.EDIT:
            return tuple(f for f in members if f not in self.declaration.create_only_fields)
        return members

    def is_panel_valid(
        self,
        panel: int,
        fields: Mapping[Enum, Any],
        display_errors: Mapping[str, str],
        mode: FormMode,
    ) -> bool:
        """Every counted field is non-empty and shows no error."""
        return all(
            not is_empty_value(fields.get(f)) and not display_errors.get(field_key(f))
            for f in self._checked_fields(panel, mode)
        )

    def is_panel_enabled(
        self,
        panel: int,
        fields: Mapping[Enum, Any],
        display_errors: Mapping[str, str],
        mode: FormMode,
    ) -> bool:
        self.declaration.fields_in_panel(panel)
        if mode is FormMode.EDIT:
            return True
        # Panel n needs panels 1..n-1 valid; walking forward avoids recursion
        for previous in range(1, panel):
            if not self.is_panel_valid(previous, fields, display_errors, mode):
                return False
        return True

    def is_form_ready(
        self,
        fields: Mapping[Enum, Any],
        display_errors: Mapping[str, str],
        mode: FormMode,
    ) -> bool:
        panels = self.declaration.panel_numbers
        if mode is FormMode.EDIT:
            panels = tuple(p for p in panels if p not in self.declaration.create_only_panels)
        return all(self.is_panel_valid(p, fields, display_errors, mode) for p in panels)

    def is_panel_complete(
        self,
        panel: int,
        fields: Mapping[Enum, Any],
        validation: ValidationState,
        mode: FormMode,
    ) -> bool:
        """Valid and every counted field has been blurred."""
        if not self.is_panel_valid(panel, fields, validation.display_errors, mode):
            return False
        checked = self._checked_fields(panel, mode)
        return all(validation.blurred_fields.get(field_key(f)) for f in checked)
