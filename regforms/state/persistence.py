"""Persistence adapter: partial snapshots in a session-scoped store.

Stored layout, one entry per form type:

    {"state": {"formFields": {...}, "snapshotFields": {...},
               "formMeta": {"mode": "create"}},
     "version": 0}

Validation state is never written, nor are fields the declaration
excludes. Reads that fail for any reason (missing, corrupt, other version,
wrong shape) behave as if nothing was stored; writes that fail are logged
and dropped so that a field mutation never raises because of storage.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Dict, List, Mapping, NamedTuple, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, ValidationError

from regforms.lib.storage import NullSessionStore, SessionStore
from regforms.state.declaration import FormDeclaration
from regforms.state.types import ExecutionContext, FormMode, Value, field_key

logger = logging.getLogger(__name__)

__all__ = [
    "PersistedMeta",
    "PersistedFormState",
    "PersistedEnvelope",
    "RestoredState",
    "PersistenceAdapter",
]

PersistedValue = Union[StrictBool, List[StrictStr], StrictStr]


class PersistedMeta(BaseModel):
    model_config = ConfigDict(extra="ignore")

    mode: FormMode = FormMode.CREATE


class PersistedFormState(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    form_fields: Dict[str, PersistedValue] = Field(
        default_factory=dict, alias="formFields"
    )
    snapshot_fields: Dict[str, PersistedValue] = Field(
        default_factory=dict, alias="snapshotFields"
    )
    form_meta: PersistedMeta = Field(default_factory=PersistedMeta, alias="formMeta")


class PersistedEnvelope(BaseModel):
    state: PersistedFormState
    version: int


class RestoredState(NamedTuple):
    fields: Dict[Enum, Value]
    snapshot: Dict[Enum, Value]
    mode: FormMode


class PersistenceAdapter:
    """Reads and writes one form's entry in a SessionStore.

    Args:
        declaration: Form declaration (storage key, version, exclusions)
        store: Session store; ``None`` means nothing is kept
        context: NON_INTERACTIVE disables every read and write
    """

    def __init__(
        self,
        declaration: FormDeclaration,
        store: Optional[SessionStore] = None,
        context: ExecutionContext = ExecutionContext.INTERACTIVE,
    ) -> None:
        self.declaration = declaration
        self.store: SessionStore = store if store is not None else NullSessionStore()
        self.context = ExecutionContext(context)

    @property
    def key(self) -> str:
        return self.declaration.storage_key

    @property
    def enabled(self) -> bool:
        return self.context is ExecutionContext.INTERACTIVE

    def _subset(self, values: Mapping[Enum, Value]) -> Dict[str, Value]:
        return {
            field_key(f): values[f]
            for f in self.declaration.persisted_fields()
            if f in values
        }

    def serialize(
        self,
        fields: Mapping[Enum, Value],
        snapshot: Mapping[Enum, Value],
        mode: FormMode,
    ) -> str:
        envelope = PersistedEnvelope(
            state=PersistedFormState(
                form_fields=self._subset(fields),
                snapshot_fields=self._subset(snapshot),
                form_meta=PersistedMeta(mode=mode),
            ),
            version=self.declaration.schema_version,
        )
        return envelope.model_dump_json(by_alias=True)

    def save(
        self,
        fields: Mapping[Enum, Value],
        snapshot: Mapping[Enum, Value],
        mode: FormMode,
    ) -> bool:
        """Write the partial snapshot. Returns False when nothing was written."""
        if not self.enabled:
            return False
        try:
            self.store.set_item(self.key, self.serialize(fields, snapshot, mode))
        except Exception as e:
            logger.warning("Could not persist %s: %s", self.key, e)
            return False
        return True

    def rehydrate(self) -> Optional[RestoredState]:
        """Read the stored entry, or None if it is absent or unusable."""
        if not self.enabled:
            logger.debug(
                "Skipping rehydration of %s in %s context", self.key, self.context.value
            )
            return None

        try:
            raw = self.store.get_item(self.key)
        except Exception as e:
            logger.warning("Could not read %s: %s", self.key, e)
            return None
        if raw is None:
            return None

        try:
            envelope = PersistedEnvelope.model_validate(json.loads(raw))
        except (TypeError, ValueError, ValidationError) as e:
            logger.warning("Discarding unreadable entry %s: %s", self.key, e)
            return None

        if envelope.version != self.declaration.schema_version:
            logger.info(
                "Discarding %s: version %s, expected %s",
                self.key,
                envelope.version,
                self.declaration.schema_version,
            )
            return None

        fields = self._restore_values(envelope.state.form_fields)
        snapshot = self._restore_values(envelope.state.snapshot_fields)
        if fields is None or snapshot is None:
            return None
        return RestoredState(fields, snapshot, envelope.state.form_meta.mode)

    def _restore_values(self, raw: Mapping[str, Value]) -> Optional[Dict[Enum, Value]]:
        decl = self.declaration
        restored: Dict[Enum, Value] = {}
        for key, value in raw.items():
            target = decl.resolve_key(key)
            if target is None or target in decl.persist_exclude:
                continue
            if not decl.kinds[target].accepts(value):
                logger.warning("Discarding %s: %s has the wrong type", self.key, key)
                return None
            restored[target] = list(value) if isinstance(value, list) else value
        return restored

    def clear(self) -> None:
        if not self.enabled:
            return
        try:
            self.store.remove_item(self.key)
        except Exception as e:
            logger.warning("Could not clear %s: %s", self.key, e)
