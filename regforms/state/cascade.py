"""Cascade resolver: dependent-field resets and derived option lists.

Each form declares its own cascade graph as a list of ``CascadeRule``
entries. The graph is checked against the form's field enum when the
declaration is built, so a rule can never silently point at a field the
form does not have.

Example (team form):
    TEAM_CASCADES = (
        CascadeRule(TeamField.TOURNAMENT_ID, (TeamField.DIVISION, TeamField.CATEGORY)),
        CascadeRule(TeamField.DIVISION, (TeamField.CATEGORY,)),
    )
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Type

from regforms.lib.errors import DeclarationError
from regforms.state.types import copy_value, field_key

logger = logging.getLogger(__name__)

__all__ = [
    "CascadeRule",
    "CascadeGraph",
    "compute_available_options",
]


@dataclass(frozen=True)
class CascadeRule:
    """Changing ``parent`` resets every field in ``dependents`` to empty."""

    parent: Enum
    dependents: Tuple[Enum, ...]

    def __post_init__(self) -> None:
        # Accept lists in declarations but store an immutable tuple
        object.__setattr__(self, "dependents", tuple(self.dependents))


class CascadeGraph:
    """Validated, transitively closed view over a form's cascade rules."""

    def __init__(
        self,
        rules: Iterable[CascadeRule],
        field_enum: Type[Enum],
        *,
        form: Optional[str] = None,
    ) -> None:
        self.rules: Tuple[CascadeRule, ...] = tuple(rules)
        self.field_enum = field_enum
        self.form = form
        self._direct: Dict[Enum, List[Enum]] = {}

        for rule in self.rules:
            self._check_member(rule.parent)
            if not rule.dependents:
                raise DeclarationError(
                    "Cascade rule has no dependents", form=form, field=field_key(rule.parent)
                )
            targets = self._direct.setdefault(rule.parent, [])
            for dependent in rule.dependents:
                self._check_member(dependent)
                if dependent == rule.parent:
                    raise DeclarationError(
                        "Field cannot reset itself", form=form, field=field_key(dependent)
                    )
                if dependent not in targets:
                    targets.append(dependent)

        self._closure: Dict[Enum, Tuple[Enum, ...]] = {
            parent: self._close(parent) for parent in self._direct
        }

    def _check_member(self, field_id: Any) -> None:
        if not isinstance(field_id, self.field_enum):
            raise DeclarationError(
                "Cascade rule references an undeclared field",
                form=self.form,
                field=field_key(field_id),
                details={"declared": [m.value for m in self.field_enum]},
            )

    def _close(self, parent: Enum) -> Tuple[Enum, ...]:
        ordered: List[Enum] = []
        queue = list(self._direct.get(parent, ()))
        while queue:
            current = queue.pop(0)
            if current == parent:
                raise DeclarationError(
                    "Cascade rules form a cycle", form=self.form, field=field_key(parent)
                )
            if current in ordered:
                continue
            ordered.append(current)
            queue.extend(self._direct.get(current, ()))
        return tuple(ordered)

    @property
    def parents(self) -> Tuple[Enum, ...]:
        return tuple(self._direct)

    def dependents_of(self, field_id: Enum) -> Tuple[Enum, ...]:
        """Every field reset when ``field_id`` changes, nearest first."""
        return self._closure.get(field_id, ())

    def get_dependent_resets(
        self,
        field_id: Enum,
        empty_values: Mapping[Enum, Any],
    ) -> Dict[Enum, Any]:
        """Map of dependent field to its empty value; empty when nothing is declared."""
        return {dep: copy_value(empty_values[dep]) for dep in self.dependents_of(field_id)}

    def __len__(self) -> int:
        return len(self.rules)


def compute_available_options(
    catalog: Optional[Sequence[Any]],
    parent_value: Any,
) -> Tuple[List[str], List[str]]:
    """Divisions and categories allowed under the selected tournament.

    Returns two empty lists when there is no catalog, no selection, or no
    matching entry. Never raises.
    """
    if not catalog or not parent_value or not isinstance(parent_value, str):
        return [], []

    for option in catalog:
        option_id = option.get("id") if isinstance(option, Mapping) else getattr(option, "id", None)
        if option_id != parent_value:
            continue
        if isinstance(option, Mapping):
            divisions = option.get("divisions") or []
            categories = option.get("categories") or []
        else:
            divisions = getattr(option, "divisions", None) or []
            categories = getattr(option, "categories", None) or []
        return list(divisions), list(categories)

    logger.debug("No catalog entry for %r", parent_value)
    return [], []
