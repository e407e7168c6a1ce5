"""Progressive multi-panel form state engine.

Drives the team and tournament registration forms: cascading field
resets, blur-gated validation, panel unlocking, dirty tracking and
session-scoped persistence.

Usage:
    from regforms import create_team_form, TeamField
    state = create_team_form()
    state.set_field(TeamField.CLUB_NAME, "FC Example")
"""

from __future__ import annotations

__version__ = "1.0.0"

__all__ = [
    "FormState",
    "FormMode",
    "ExecutionContext",
    "SubmissionCoordinator",
    "TeamField",
    "TournamentField",
    "create_team_form",
    "create_tournament_form",
]


def __getattr__(name: str):
    """Lazy import of engine components."""
    if name == "FormState":
        from regforms.state.form_state import FormState
        return FormState
    if name == "FormMode":
        from regforms.state.types import FormMode
        return FormMode
    if name == "ExecutionContext":
        from regforms.state.types import ExecutionContext
        return ExecutionContext
    if name == "SubmissionCoordinator":
        from regforms.state.submission import SubmissionCoordinator
        return SubmissionCoordinator
    if name in ("TeamField", "create_team_form"):
        from regforms.forms import team
        return getattr(team, name)
    if name in ("TournamentField", "create_tournament_form"):
        from regforms.forms import tournament
        return getattr(tournament, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
