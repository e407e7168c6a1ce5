"""Form state engine facade.

One ``FormState`` is built per form session and passed explicitly to the
rendering layer. It ties the field repository, validation policy, panel
gate, dirty tracker, cascade resolver and persistence adapter together and
is the only object renderers talk to.

Example:
    state = create_team_form(store=MemorySessionStore(), catalog=catalog)
    state.hydrate()
    state.set_field(TeamField.TOURNAMENT_ID, "t-2025-spring")
    state.blur_field(TeamField.TOURNAMENT_ID)
    if state.is_panel_enabled(2):
        ...

All mutations are synchronous. Derived reads (panel validity, dirty,
readiness) are recomputed on every call.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from regforms.lib.catalog import CatalogProvider, TournamentOption
from regforms.lib.logging import get_form_logger
from regforms.lib.storage import SessionStore
from regforms.state.cascade import compute_available_options
from regforms.state.declaration import FormDeclaration
from regforms.state.dirty import changed_fields, is_dirty
from regforms.state.panels import PanelGate
from regforms.state.persistence import PersistenceAdapter
from regforms.state.repository import FieldRepository
from regforms.state.types import (
    AvailableOptions,
    ExecutionContext,
    FormMeta,
    FormMode,
    ValidationState,
    Value,
    field_key,
)
from regforms.state.validation import ValidationPolicy

__all__ = ["FormState"]

CatalogSource = Union[CatalogProvider, Iterable[Union[TournamentOption, Mapping[str, Any]]]]


class FormState:
    """Per-session state container for one declared form.

    Args:
        declaration: The form's static declaration
        store: Session store for persistence (None keeps nothing)
        context: INTERACTIVE or NON_INTERACTIVE; the latter never
            reads or writes the store
        catalog: Optional tournament catalog for option lists
        mode: Initial form mode
        session_id: Tag added to every log record
    """

    def __init__(
        self,
        declaration: FormDeclaration,
        *,
        store: Optional[SessionStore] = None,
        context: ExecutionContext = ExecutionContext.INTERACTIVE,
        catalog: Optional[CatalogSource] = None,
        mode: FormMode = FormMode.CREATE,
        session_id: Optional[str] = None,
    ) -> None:
        self.declaration = declaration
        self.repository = FieldRepository(declaration)
        self.validation = ValidationState()
        self.meta = FormMeta(mode=FormMode(mode))
        self.options = AvailableOptions()

        self.policy = ValidationPolicy(declaration)
        self.panels = PanelGate(declaration)
        self.persistence = PersistenceAdapter(declaration, store, context)

        self.session_id = session_id
        self.logger = get_form_logger(__name__, form=declaration.name, session_id=session_id)
        self._hydrated = False

        if catalog is not None:
            self.set_catalog(catalog)

    def __repr__(self) -> str:
        return (
            f"FormState({self.declaration.name!r}, mode={self.mode.value}, "
            f"dirty={self.is_dirty()}, errors={len(self.validation.display_errors)})"
        )

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self.declaration.name

    @property
    def mode(self) -> FormMode:
        return self.meta.mode

    @property
    def context(self) -> ExecutionContext:
        return self.persistence.context

    @property
    def fields(self) -> Mapping[Enum, Value]:
        return MappingProxyType(self.repository.fields)

    @property
    def snapshot(self) -> Mapping[Enum, Value]:
        return MappingProxyType(self.repository.snapshot)

    @property
    def display_errors(self) -> Mapping[str, str]:
        return MappingProxyType(self.validation.display_errors)

    @property
    def is_hydrated(self) -> bool:
        return self._hydrated

    def get_field(self, field_id: Any) -> Value:
        return self.repository.get(field_id)

    def get_form_data(self) -> Mapping[str, Value]:
        """Read-only projection keyed by wire names, shaped for submission."""
        return self.repository.projection()

    # ------------------------------------------------------------------
    # Field mutations
    # ------------------------------------------------------------------

    def set_field(self, field_id: Any, value: Any) -> None:
        """Write a field, apply cascade resets and derived updates, clear its error."""
        decl = self.declaration
        target = decl.field(field_id)
        updates = self.repository.set(target, value)

        self.validation.clear_field(field_key(target))
        for derived in updates:
            if derived is not target and derived not in decl.cascades.dependents_of(target):
                self.validation.clear_field(field_key(derived))
        for dependent in decl.error_dependents.get(target, ()):
            self.validation.clear_field(field_key(dependent))

        if decl.parent_field is not None and decl.parent_field in updates:
            self._update_options()

        self.logger.debug(
            "set_field %s",
            field_key(target),
            extra={"updated": [field_key(f) for f in updates]},
        )
        self._persist()

    # Typed entry point; each form's enum closes the set of valid ids
    apply = set_field

    def set_form_data(self, partial: Mapping[Any, Any]) -> None:
        """Bulk-load values (edit mode, prefill), take a snapshot, clear validation."""
        resolved = self.repository.merge(partial)
        self.validation = ValidationState()

        parent = self.declaration.parent_field
        if parent is not None and parent in resolved:
            self._update_options()

        self.logger.debug("set_form_data", extra={"fields": [field_key(f) for f in resolved]})
        self._persist()

    def set_mode(self, mode: FormMode) -> None:
        self.meta.mode = FormMode(mode)
        self._persist()

    def reset_form(self) -> None:
        """Back to initial values; the catalog survives. Clears the stored entry."""
        tournaments = self.options.tournaments
        self.repository.reset()
        self.validation = ValidationState()
        self.meta = FormMeta()
        self.options = AvailableOptions(tournaments=tournaments)
        self._update_options()
        self.persistence.clear()
        self.logger.debug("reset_form")

    def reset_store_state(self) -> None:
        """Full reset, catalog included. Clears the stored entry."""
        self.repository.reset()
        self.validation = ValidationState()
        self.meta = FormMeta()
        self.options = AvailableOptions()
        self.persistence.clear()
        self.logger.debug("reset_store_state")

    # ------------------------------------------------------------------
    # Catalog and options
    # ------------------------------------------------------------------

    def set_catalog(self, catalog: CatalogSource) -> None:
        """Install the tournament catalog and recompute the derived lists."""
        if isinstance(catalog, CatalogProvider):
            entries = catalog.list_parent_options()
        else:
            entries = [
                e if isinstance(e, TournamentOption) else TournamentOption.model_validate(e)
                for e in catalog
            ]
        self.options.tournaments = list(entries)
        self._update_options()

    def set_available_options(
        self,
        *,
        tournaments: Optional[List[TournamentOption]] = None,
        divisions: Optional[List[str]] = None,
        categories: Optional[List[str]] = None,
    ) -> None:
        """Override option lists directly."""
        if tournaments is not None:
            self.options.tournaments = list(tournaments)
        if divisions is not None:
            self.options.divisions = list(divisions)
        if categories is not None:
            self.options.categories = list(categories)

    def _update_options(self) -> None:
        parent = self.declaration.parent_field
        if parent is None:
            return
        divisions, categories = compute_available_options(
            self.options.tournaments,
            self.repository.fields.get(parent),
        )
        self.options.divisions = divisions
        self.options.categories = categories

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_field(self, field_id: Any) -> None:
        """Recompute a field's error; no visible effect until display is allowed."""
        key = field_key(self.declaration.field(field_id))
        self.policy.validate_field(self.validation, key, self.get_form_data(), self.mode)

    def blur_field(self, field_id: Any) -> Optional[str]:
        """Mark a field blurred and validate it. Returns its displayed error."""
        key = field_key(self.declaration.field(field_id))
        error = self.policy.blur_field(self.validation, key, self.get_form_data(), self.mode)
        self.logger.debug("blur %s", key, extra={"error": error})
        return error

    validate_field_on_blur = blur_field

    def validate_form(self) -> bool:
        """Validate everything, show every error, record ``meta.is_valid``."""
        valid = self.policy.validate_form(self.validation, self.get_form_data(), self.mode)
        self.meta.is_valid = valid
        if not valid:
            self.logger.debug(
                "validate_form failed",
                extra={"errors": sorted(self.validation.display_errors)},
            )
        return valid

    def set_server_errors(self, errors: Mapping[Any, str]) -> None:
        """Merge errors from a rejected submission into the display."""
        self.policy.set_server_errors(self.validation, errors, self.get_form_data())
        self.logger.info("server rejected %d field(s)", len(self.validation.server_errors))

    def clear_all_errors(self) -> None:
        self.validation.clear_errors()

    def visible_error(self, field_id: Any) -> Optional[str]:
        """The error a renderer should show, or None for locked panels."""
        target = self.declaration.field(field_id)
        if not self.is_panel_enabled(self.declaration.panel_for_field(target)):
            return None
        return self.validation.display_errors.get(field_key(target))

    # ------------------------------------------------------------------
    # Panels, dirty, submission readiness
    # ------------------------------------------------------------------

    def is_panel_valid(self, panel: int) -> bool:
        return self.panels.is_panel_valid(
            panel, self.repository.fields, self.validation.display_errors, self.mode
        )

    def is_panel_enabled(self, panel: int) -> bool:
        return self.panels.is_panel_enabled(
            panel, self.repository.fields, self.validation.display_errors, self.mode
        )

    def is_panel_complete(self, panel: int) -> bool:
        return self.panels.is_panel_complete(
            panel, self.repository.fields, self.validation, self.mode
        )

    def panel_for_field(self, field_id: Any) -> int:
        return self.declaration.panel_for_field(field_id)

    def is_form_ready_for_submission(self) -> bool:
        return self.panels.is_form_ready(
            self.repository.fields, self.validation.display_errors, self.mode
        )

    def is_dirty(self) -> bool:
        return is_dirty(self.repository.fields, self.repository.snapshot)

    def changed_fields(self) -> List[str]:
        changed = changed_fields(self.repository.fields, self.repository.snapshot)
        return [field_key(f) for f in changed]

    def can_submit(self) -> bool:
        """Ready, and in edit mode also changed."""
        if not self.is_form_ready_for_submission():
            return False
        return self.mode is FormMode.CREATE or self.is_dirty()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def hydrate(self) -> bool:
        """Restore persisted state once. Returns True if anything was restored."""
        if self._hydrated:
            return False
        self._hydrated = True

        restored = self.persistence.rehydrate()
        if restored is None:
            return False

        self.repository.restore(restored.fields, restored.snapshot)
        self.meta.mode = restored.mode
        self._update_options()
        self.logger.debug("hydrated", extra={"fields": [field_key(f) for f in restored.fields]})
        return True

    def _persist(self) -> None:
        self.persistence.save(self.repository.fields, self.repository.snapshot, self.mode)

    def to_dict(self) -> Dict[str, Any]:
        """Debug dump of the whole state."""
        return {
            "form": self.name,
            "mode": self.mode.value,
            "fields": dict(self.get_form_data()),
            "dirty": self.is_dirty(),
            "display_errors": dict(self.validation.display_errors),
            "server_errors": dict(self.validation.server_errors),
            "panels": {
                n: {"valid": self.is_panel_valid(n), "enabled": self.is_panel_enabled(n)}
                for n in self.declaration.panel_numbers
            },
        }
