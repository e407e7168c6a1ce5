"""Team registration form.

Panels:
    1. Tournament selection: tournamentId, division, category
    2. Team: clubName, name
    3. Team leader: teamLeaderName, teamLeaderPhone, teamLeaderEmail
    4. Privacy agreement (create only, never persisted)

Selecting a tournament narrows the division and category options to that
tournament's catalog entry and clears both; changing the division clears
the category.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StringConstraints
from pydantic_core import PydanticCustomError

from regforms.forms.schema import FieldMessages, SchemaValidator, check_email, check_phone
from regforms.lib.storage import SessionStore
from regforms.state.cascade import CascadeRule
from regforms.state.declaration import FormDeclaration
from regforms.state.form_state import CatalogSource, FormState
from regforms.state.types import ExecutionContext, FormMode

__all__ = [
    "TeamField",
    "TeamEditSchema",
    "TeamCreateSchema",
    "TEAM_PANELS",
    "TEAM_CASCADES",
    "TEAM_MESSAGES",
    "TEAM_FORM",
    "create_team_form",
]


class TeamField(str, Enum):
    TOURNAMENT_ID = "tournamentId"
    DIVISION = "division"
    CATEGORY = "category"
    CLUB_NAME = "clubName"
    NAME = "name"
    TEAM_LEADER_NAME = "teamLeaderName"
    TEAM_LEADER_PHONE = "teamLeaderPhone"
    TEAM_LEADER_EMAIL = "teamLeaderEmail"
    PRIVACY_AGREEMENT = "privacyAgreement"


TEAM_NAME_MAX = 50
CLUB_NAME_MAX = 100
TEAM_LEADER_NAME_MAX = 100

Required = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
TeamName = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=TEAM_NAME_MAX)
]
ClubName = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=CLUB_NAME_MAX)
]
LeaderName = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=TEAM_LEADER_NAME_MAX)
]


def _must_agree(value: bool) -> bool:
    if not value:
        raise PydanticCustomError("required", "Privacy agreement must be accepted")
    return value


class TeamEditSchema(BaseModel):
    """Team fields as validated when editing an existing team."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    tournament_id: Required = Field(alias="tournamentId")
    division: Required
    category: Required
    club_name: ClubName = Field(alias="clubName")
    name: TeamName
    team_leader_name: LeaderName = Field(alias="teamLeaderName")
    team_leader_phone: Annotated[Required, AfterValidator(check_phone)] = Field(
        alias="teamLeaderPhone"
    )
    team_leader_email: Annotated[Required, AfterValidator(check_email)] = Field(
        alias="teamLeaderEmail"
    )


class TeamCreateSchema(TeamEditSchema):
    """Create mode additionally needs the privacy agreement."""

    privacy_agreement: Annotated[bool, AfterValidator(_must_agree)] = Field(
        default=False, alias="privacyAgreement"
    )


TEAM_MESSAGES = {
    "tournamentId": FieldMessages(required="messages.team.tournamentRequired"),
    "division": FieldMessages(required="messages.team.divisionRequired"),
    "category": FieldMessages(required="messages.team.categoryRequired"),
    "clubName": FieldMessages(
        required="messages.team.clubNameRequired",
        too_long="messages.team.clubNameTooLong",
    ),
    "name": FieldMessages(
        required="messages.team.nameRequired",
        too_long="messages.team.nameTooLong",
    ),
    "teamLeaderName": FieldMessages(
        required="messages.team.teamLeaderNameRequired",
        too_long="messages.team.teamLeaderNameTooLong",
    ),
    "teamLeaderPhone": FieldMessages(
        required="messages.team.phoneNumberRequired",
        invalid="messages.team.phoneNumberInvalid",
    ),
    "teamLeaderEmail": FieldMessages(
        required="messages.validation.emailRequired",
        invalid="messages.validation.emailInvalid",
    ),
    "privacyAgreement": FieldMessages(required="messages.team.privacyAgreementRequired"),
}

TEAM_PANELS = {
    1: (TeamField.TOURNAMENT_ID, TeamField.DIVISION, TeamField.CATEGORY),
    2: (TeamField.CLUB_NAME, TeamField.NAME),
    3: (TeamField.TEAM_LEADER_NAME, TeamField.TEAM_LEADER_PHONE, TeamField.TEAM_LEADER_EMAIL),
    4: (TeamField.PRIVACY_AGREEMENT,),
}

TEAM_CASCADES = (
    CascadeRule(TeamField.TOURNAMENT_ID, (TeamField.DIVISION, TeamField.CATEGORY)),
    CascadeRule(TeamField.DIVISION, (TeamField.CATEGORY,)),
)

TEAM_FORM = FormDeclaration(
    "team",
    TeamField,
    initial_values={
        TeamField.TOURNAMENT_ID: "",
        TeamField.DIVISION: "",
        TeamField.CATEGORY: "",
        TeamField.CLUB_NAME: "",
        TeamField.NAME: "",
        TeamField.TEAM_LEADER_NAME: "",
        TeamField.TEAM_LEADER_PHONE: "",
        TeamField.TEAM_LEADER_EMAIL: "",
        TeamField.PRIVACY_AGREEMENT: False,
    },
    panels=TEAM_PANELS,
    validator=SchemaValidator(
        "team",
        {FormMode.CREATE: TeamCreateSchema, FormMode.EDIT: TeamEditSchema},
        TEAM_MESSAGES,
    ),
    cascades=TEAM_CASCADES,
    create_only_fields=(TeamField.PRIVACY_AGREEMENT,),
    persist_exclude=(TeamField.PRIVACY_AGREEMENT,),
    storage_key="team-form-storage",
    parent_field=TeamField.TOURNAMENT_ID,
    aliases={"teamName": TeamField.NAME},
)


def create_team_form(
    *,
    store: Optional[SessionStore] = None,
    context: ExecutionContext = ExecutionContext.INTERACTIVE,
    catalog: Optional[CatalogSource] = None,
    mode: FormMode = FormMode.CREATE,
    session_id: Optional[str] = None,
) -> FormState:
    """New team form session."""
    return FormState(
        TEAM_FORM,
        store=store,
        context=context,
        catalog=catalog,
        mode=mode,
        session_id=session_id,
    )
