"""Pytest configuration and fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Generator

import pytest

from regforms.forms.team import TeamField, create_team_form
from regforms.forms.tournament import create_tournament_form
from regforms.lib.catalog import StaticCatalog, TournamentOption
from regforms.lib.storage import MemorySessionStore
from regforms.state.form_state import FormState
from regforms.state.types import FormMode


@pytest.fixture(autouse=True)
def clean_regforms_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep REGFORMS_* variables from the host out of every test."""
    import os

    for key in list(os.environ):
        if key.startswith("REGFORMS_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def catalog() -> StaticCatalog:
    """Two tournaments with different divisions and categories."""
    return StaticCatalog(
        [
            TournamentOption(
                id="T1",
                name="Spring Cup",
                location="Amsterdam",
                divisions=["D1", "D2"],
                categories=["C1"],
            ),
            TournamentOption(
                id="T2",
                name="Autumn Cup",
                location="Rotterdam",
                divisions=["FIRST_DIVISION"],
                categories=["JO10", "JO12"],
            ),
        ]
    )


@pytest.fixture
def store() -> MemorySessionStore:
    return MemorySessionStore()


@pytest.fixture
def team_form(catalog: StaticCatalog, store: MemorySessionStore) -> FormState:
    """Fresh create-mode team form with the catalog loaded."""
    return create_team_form(store=store, catalog=catalog, session_id="test")


@pytest.fixture
def tournament_form(store: MemorySessionStore) -> FormState:
    return create_tournament_form(store=store, session_id="test")


VALID_TEAM = {
    "tournamentId": "T1",
    "division": "D1",
    "category": "C1",
    "clubName": "FC Example",
    "name": "JO10-1",
    "teamLeaderName": "Jane Doe",
    "teamLeaderPhone": "+31 (0)6-1234 5678",
    "teamLeaderEmail": "jane@example.org",
    "privacyAgreement": True,
}

VALID_TOURNAMENT = {
    "name": "Spring Cup",
    "location": "Amsterdam",
    "startDate": "2025-04-12",
    "endDate": "2025-04-13",
    "divisions": ["FIRST_DIVISION", "SECOND_DIVISION"],
    "categories": ["JO10", "JO12"],
}


@pytest.fixture
def filled_team_form(team_form: FormState) -> FormState:
    """Create-mode team form with every field set to a valid value."""
    for key, value in VALID_TEAM.items():
        team_form.set_field(key, value)
    return team_form


@pytest.fixture
def edit_team_form(catalog: StaticCatalog, store: MemorySessionStore) -> FormState:
    """Edit-mode team form loaded with an existing team."""
    form = create_team_form(store=store, catalog=catalog, mode=FormMode.EDIT, session_id="test")
    data = {k: v for k, v in VALID_TEAM.items() if k != TeamField.PRIVACY_AGREEMENT.value}
    form.set_form_data(data)
    return form


@pytest.fixture
def tmp_catalog_yaml(tmp_path: Path) -> Generator[Path, None, None]:
    """Create a temporary catalog YAML file."""
    path = tmp_path / "catalog.yaml"
    path.write_text(
        """
tournaments:
  - id: t-2025-spring
    name: Spring Cup
    location: Amsterdam
    divisions: [FIRST_DIVISION, SECOND_DIVISION]
    categories: [JO10, JO12]
  - id: t-2025-autumn
    name: Autumn Cup
    divisions: [FIRST_DIVISION]
    categories: [JO8]
""",
        encoding="utf-8",
    )
    yield path


@pytest.fixture
def valid_team() -> dict:
    return dict(VALID_TEAM)


@pytest.fixture
def valid_tournament() -> dict:
    return {k: list(v) if isinstance(v, list) else v for k, v in VALID_TOURNAMENT.items()}
