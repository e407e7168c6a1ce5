"""Field repository: live field values plus the dirty-check snapshot."""

from __future__ import annotations

import logging
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping

from regforms.state.declaration import FormDeclaration
from regforms.state.types import Value, copy_value, field_key

logger = logging.getLogger(__name__)

__all__ = ["FieldRepository"]


class FieldRepository:
    """Holds the FieldSet and Snapshot of one form session.

    Every write goes through the declaration, so undeclared ids raise
    ``UnknownFieldError`` and wrongly typed values raise ``FieldTypeError``.
    """

    def __init__(self, declaration: FormDeclaration) -> None:
        self.declaration = declaration
        self.fields: Dict[Enum, Value] = declaration.initial_fields()
        self.snapshot: Dict[Enum, Value] = declaration.initial_fields()

    def get(self, field_id: Any) -> Value:
        return copy_value(self.fields[self.declaration.field(field_id)])

    def set(self, field_id: Any, value: Any) -> Dict[Enum, Value]:
        """Write one field with its cascade resets and derived updates.

        Returns every field written, the target first.
        """
        decl = self.declaration
        target = decl.field(field_id)
        updates: Dict[Enum, Value] = {target: decl.check_value(target, value)}

        resets = decl.cascades.get_dependent_resets(target, decl.empty_values())
        if resets:
            logger.debug("%s change resets %s", field_key(target), [field_key(f) for f in resets])
        updates.update(resets)

        derive = decl.derived_updates.get(target)
        if derive is not None:
            current = MappingProxyType({**self.fields, **updates})
            for extra_id, extra_value in derive(current, updates[target]).items():
                extra = decl.field(extra_id)
                updates[extra] = decl.check_value(extra, extra_value)

        self.fields.update(updates)
        return updates

    def merge(self, partial: Mapping[Any, Any]) -> Dict[Enum, Value]:
        """Bulk-merge into fields and take a fresh snapshot.

        Unknown keys are ignored. ``None`` means the field's empty value.
        """
        decl = self.declaration
        resolved: Dict[Enum, Value] = {}
        for key, value in partial.items():
            target = decl.resolve_key(key)
            if target is None:
                logger.debug("Ignoring unknown key %r for %s form", key, decl.name)
                continue
            if value is None:
                value = decl.empty_value(target)
            resolved[target] = decl.check_value(target, value)

        self.fields.update(resolved)
        self.snapshot = {f: copy_value(v) for f, v in self.fields.items()}
        return resolved

    def restore(self, fields: Mapping[Enum, Value], snapshot: Mapping[Enum, Value]) -> None:
        """Overlay previously persisted values."""
        self.fields.update({f: copy_value(v) for f, v in fields.items()})
        self.snapshot.update({f: copy_value(v) for f, v in snapshot.items()})

    def reset(self) -> None:
        self.fields = self.declaration.initial_fields()
        self.snapshot = self.declaration.initial_fields()

    def projection(self) -> Mapping[str, Value]:
        """Read-only view keyed by wire names, shaped for submission."""
        return MappingProxyType({field_key(f): copy_value(v) for f, v in self.fields.items()})
