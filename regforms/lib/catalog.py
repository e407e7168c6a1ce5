"""Tournament catalog: the parent options a team registration chooses from.

The catalog normally comes from the data-access layer. For local runs and
tests it can be loaded from a YAML or JSON file:

    tournaments:
      - id: t-2025-spring
        name: Spring Cup
        divisions: [FIRST_DIVISION, SECOND_DIVISION]
        categories: [JO10, JO12]
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, List, Protocol, Sequence, runtime_checkable

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from regforms.lib.errors import CatalogError

logger = logging.getLogger(__name__)

__all__ = [
    "TournamentOption",
    "CatalogProvider",
    "StaticCatalog",
    "load_catalog",
    "parse_catalog",
]


class TournamentOption(BaseModel):
    """One selectable tournament with the divisions and categories it allows."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., min_length=1)
    name: str = ""
    location: str = ""
    divisions: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)

    @field_validator("divisions", "categories")
    @classmethod
    def strip_blank_entries(cls, v: List[str]) -> List[str]:
        return [item.strip() for item in v if item and item.strip()]


@runtime_checkable
class CatalogProvider(Protocol):
    """Anything that can list the tournaments open for registration."""

    def list_parent_options(self) -> List[TournamentOption]:
        ...


class StaticCatalog:
    """Catalog backed by a fixed list of options."""

    def __init__(self, options: Iterable[TournamentOption | dict[str, Any]] = ()) -> None:
        self._options: List[TournamentOption] = [
            o if isinstance(o, TournamentOption) else TournamentOption.model_validate(o)
            for o in options
        ]

    def list_parent_options(self) -> List[TournamentOption]:
        return list(self._options)

    def __len__(self) -> int:
        return len(self._options)


def parse_catalog(data: Any, *, source: str = "<data>") -> List[TournamentOption]:
    """Validate raw catalog data into TournamentOption entries.

    Accepts either a list of entries or a mapping with a ``tournaments`` list.
    Duplicate ids are rejected.
    """
    entries: Sequence[Any]
    if isinstance(data, dict):
        entries = data.get("tournaments", [])
    elif isinstance(data, list):
        entries = data
    elif data is None:
        entries = []
    else:
        raise CatalogError("Catalog must be a list or a mapping with 'tournaments'", path=source)

    if not isinstance(entries, list):
        raise CatalogError("'tournaments' must be a list", path=source)

    options: List[TournamentOption] = []
    seen: set[str] = set()
    for index, entry in enumerate(entries):
        try:
            option = TournamentOption.model_validate(entry)
        except ValidationError as exc:
            raise CatalogError(
                f"Invalid catalog entry at index {index}",
                path=source,
                cause=exc,
            ) from exc
        if option.id in seen:
            raise CatalogError(f"Duplicate tournament id {option.id!r}", path=source)
        seen.add(option.id)
        options.append(option)

    return options


def load_catalog(path: Path | str) -> StaticCatalog:
    """Load a catalog file (.yaml, .yml or .json)."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CatalogError("Could not read catalog file", path=str(path), cause=exc) from exc

    try:
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise CatalogError("Could not parse catalog file", path=str(path), cause=exc) from exc

    options = parse_catalog(data, source=str(path))
    logger.info("Loaded %d tournaments from %s", len(options), path)
    return StaticCatalog(options)
