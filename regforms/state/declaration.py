"""Static description of one form: fields, panels, cascades, persistence.

A ``FormDeclaration`` is built once per form type at import time and shared
by every ``FormState`` of that type. All structural invariants are checked
in the constructor; a broken declaration raises ``DeclarationError`` before
any engine instance exists.
"""

from __future__ import annotations

from enum import Enum
from typing import (
    Any,
    Callable,
    Dict,
    FrozenSet,
    Iterable,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    Type,
)

from regforms.lib.errors import (
    DeclarationError,
    FieldTypeError,
    UnknownFieldError,
    UnknownPanelError,
)
from regforms.state.cascade import CascadeGraph, CascadeRule
from regforms.state.types import FieldKind, FormMode, Value, copy_value, field_key

__all__ = [
    "FieldValidator",
    "DerivedUpdate",
    "FormDeclaration",
]

# (current fields, new value of the trigger field) -> extra field updates
DerivedUpdate = Callable[[Mapping[Enum, Value], Value], Mapping[Enum, Value]]


class FieldValidator(Protocol):
    """Per-form validation. Error values are opaque translation keys."""

    def validate(self, data: Mapping[str, Value], mode: FormMode) -> Dict[str, str]:
        """Errors for every failing field."""
        ...

    def validate_field(self, key: str, data: Mapping[str, Value], mode: FormMode) -> Optional[str]:
        """Error for one field, or None."""
        ...


class FormDeclaration:
    """Everything the engine needs to know about one form type.

    Args:
        name: Short form name ("team", "tournament"); used in logs and errors
        fields: The closed ``str`` Enum of field ids
        initial_values: Initial value per field; also fixes each field's type
        panels: Panel number -> field ids, numbered contiguously from 1
        validator: Per-form FieldValidator
        cascades: CascadeRule entries
        create_only_fields: Fields ignored by panel checks in edit mode
        persist_exclude: Fields never written to the session store
        storage_key: Session store key (defaults to ``<name>-form-storage``)
        schema_version: Version written next to persisted state
        parent_field: Field whose value selects the catalog entry
        derived_updates: Field -> function returning extra updates on change
        aliases: Extra keys accepted by ``set_form_data``
        error_dependents: Field -> fields whose errors are cleared when it changes
    """

    def __init__(
        self,
        name: str,
        fields: Type[Enum],
        initial_values: Mapping[Enum, Value],
        panels: Mapping[int, Sequence[Enum]],
        validator: FieldValidator,
        *,
        cascades: Iterable[CascadeRule] = (),
        create_only_fields: Iterable[Enum] = (),
        persist_exclude: Iterable[Enum] = (),
        storage_key: Optional[str] = None,
        schema_version: int = 0,
        parent_field: Optional[Enum] = None,
        derived_updates: Optional[Mapping[Enum, DerivedUpdate]] = None,
        aliases: Optional[Mapping[str, Enum]] = None,
        error_dependents: Optional[Mapping[Enum, Sequence[Enum]]] = None,
    ) -> None:
        self.name = name
        self.fields = fields
        self.validator = validator
        self.storage_key = storage_key or f"{name}-form-storage"
        self.schema_version = schema_version

        self._by_key: Dict[str, Enum] = {field_key(m): m for m in fields}

        self.kinds: Dict[Enum, FieldKind] = self._check_initial_values(initial_values)
        self._initial: Dict[Enum, Value] = {
            m: copy_value(initial_values[m]) for m in fields
        }

        self.panels: Dict[int, Tuple[Enum, ...]] = self._check_panels(panels)
        self._panel_of: Dict[Enum, int] = {
            f: number for number, members in self.panels.items() for f in members
        }

        self.cascades = CascadeGraph(cascades, fields, form=name)
        self.create_only_fields: FrozenSet[Enum] = self._members(
            create_only_fields, "create-only field"
        )
        self.persist_exclude: FrozenSet[Enum] = self._members(
            persist_exclude, "persistence exclusion"
        )
        self.create_only_panels: FrozenSet[int] = frozenset(
            self._panel_of[f] for f in self.create_only_fields
        )

        if parent_field is not None:
            self._members([parent_field], "parent field")
        self.parent_field = parent_field

        self.derived_updates: Dict[Enum, DerivedUpdate] = dict(derived_updates or {})
        self._members(self.derived_updates, "derived update trigger")

        self.aliases: Dict[str, Enum] = dict(aliases or {})
        self._members(self.aliases.values(), "alias target")

        self.error_dependents: Dict[Enum, Tuple[Enum, ...]] = {}
        for trigger, dependents in (error_dependents or {}).items():
            self._members([trigger, *dependents], "error dependent")
            self.error_dependents[trigger] = tuple(dependents)

    # ------------------------------------------------------------------
    # Construction checks
    # ------------------------------------------------------------------

    def _fail(self, message: str, **kwargs: Any) -> DeclarationError:
        return DeclarationError(message, form=self.name, **kwargs)

    def _members(self, candidates: Iterable[Any], what: str) -> FrozenSet[Enum]:
        result = set()
        for candidate in candidates:
            if not isinstance(candidate, self.fields):
                raise self._fail(f"Undeclared {what}", field=field_key(candidate))
            result.add(candidate)
        return frozenset(result)

    def _check_initial_values(self, initial_values: Mapping[Enum, Value]) -> Dict[Enum, FieldKind]:
        self._members(initial_values, "initial value")
        missing = [field_key(m) for m in self.fields if m not in initial_values]
        if missing:
            raise self._fail("Fields without an initial value", details={"missing": missing})
        return {m: FieldKind.of(initial_values[m]) for m in self.fields}

    def _check_panels(self, panels: Mapping[int, Sequence[Enum]]) -> Dict[int, Tuple[Enum, ...]]:
        numbers = sorted(panels)
        if numbers != list(range(1, len(numbers) + 1)):
            raise self._fail(
                "Panel numbers must be contiguous from 1",
                details={"panels": numbers},
            )

        seen: Dict[Enum, int] = {}
        for number in numbers:
            for member in panels[number]:
                self._members([member], "panel field")
                if member in seen:
                    raise self._fail(
                        f"Field is declared in panels {seen[member]} and {number}",
                        field=field_key(member),
                    )
                seen[member] = number

        unassigned = [field_key(m) for m in self.fields if m not in seen]
        if unassigned:
            raise self._fail("Fields without a panel", details={"unassigned": unassigned})

        return {number: tuple(panels[number]) for number in numbers}

    # ------------------------------------------------------------------
    # Lookups used by the engine
    # ------------------------------------------------------------------

    def field(self, field_id: Any) -> Enum:
        """Resolve an enum member or wire name to the declared field."""
        if isinstance(field_id, self.fields):
            return field_id
        if isinstance(field_id, str) and field_id in self._by_key:
            return self._by_key[field_id]
        raise UnknownFieldError(field_key(field_id), form=self.name)

    def resolve_key(self, key: Any) -> Optional[Enum]:
        """Like ``field`` but also accepts aliases; None for unknown keys."""
        if isinstance(key, self.fields):
            return key
        if isinstance(key, str):
            return self._by_key.get(key) or self.aliases.get(key)
        return None

    def check_value(self, field_id: Enum, value: Any) -> Value:
        """Validate a value against the field's declared type and return a private copy."""
        kind = self.kinds[field_id]
        if not kind.accepts(value):
            raise FieldTypeError(
                field_key(field_id),
                expected=kind.value,
                actual=value,
                form=self.name,
            )
        return list(value) if kind is FieldKind.MULTI else value

    def empty_value(self, field_id: Enum) -> Value:
        return self.kinds[field_id].empty()

    def empty_values(self) -> Dict[Enum, Value]:
        return {m: self.empty_value(m) for m in self.fields}

    def initial_fields(self) -> Dict[Enum, Value]:
        return {m: copy_value(v) for m, v in self._initial.items()}

    @property
    def panel_numbers(self) -> Tuple[int, ...]:
        return tuple(self.panels)

    def fields_in_panel(self, panel: int) -> Tuple[Enum, ...]:
        try:
            return self.panels[panel]
        except (KeyError, TypeError):
            raise UnknownPanelError(panel, form=self.name) from None

    def panel_for_field(self, field_id: Any) -> int:
        return self._panel_of[self.field(field_id)]

    def persisted_fields(self) -> List[Enum]:
        return [m for m in self.fields if m not in self.persist_exclude]

    def __repr__(self) -> str:
        return (
            f"FormDeclaration({self.name!r}, fields={len(self._initial)}, "
            f"panels={len(self.panels)})"
        )
