"""Concrete form declarations."""

from typing import Dict

from regforms.forms.team import TEAM_FORM, TeamField, create_team_form
from regforms.forms.tournament import TOURNAMENT_FORM, TournamentField, create_tournament_form
from regforms.state.declaration import FormDeclaration

__all__ = [
    "FORMS",
    "get_declaration",
    "TEAM_FORM",
    "TeamField",
    "create_team_form",
    "TOURNAMENT_FORM",
    "TournamentField",
    "create_tournament_form",
]

FORMS: Dict[str, FormDeclaration] = {
    TEAM_FORM.name: TEAM_FORM,
    TOURNAMENT_FORM.name: TOURNAMENT_FORM,
}


def get_declaration(name: str) -> FormDeclaration:
    """Look up a declaration by form name."""
    try:
        return FORMS[name]
    except KeyError:
        raise KeyError(f"Unknown form {name!r}; expected one of {sorted(FORMS)}") from None
