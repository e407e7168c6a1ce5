"""Tournament registration form.

Panels:
    1. name, location
    2. startDate, endDate
    3. divisions
    4. categories

The tournament form has no cascades. It has one derived update: picking a
start date moves the end date along when the end date is empty or earlier.
Any start date change also clears the end date error, so an end date that
was rejected as too early is judged again on its next blur.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Annotated, Dict, List, Mapping, Optional

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    ValidationInfo,
    field_validator,
)
from pydantic_core import PydanticCustomError

from regforms.forms.schema import FieldMessages, SchemaValidator, check_iso_date
from regforms.lib.storage import SessionStore
from regforms.state.cascade import CascadeRule
from regforms.state.declaration import FormDeclaration
from regforms.state.form_state import FormState
from regforms.state.types import ExecutionContext, FormMode, Value

__all__ = [
    "TournamentField",
    "TournamentSchema",
    "TOURNAMENT_PANELS",
    "TOURNAMENT_CASCADES",
    "TOURNAMENT_MESSAGES",
    "TOURNAMENT_FORM",
    "sync_end_date",
    "create_tournament_form",
]


class TournamentField(str, Enum):
    NAME = "name"
    LOCATION = "location"
    START_DATE = "startDate"
    END_DATE = "endDate"
    DIVISIONS = "divisions"
    CATEGORIES = "categories"


TEXT_MAX = 100

Text = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=TEXT_MAX)]
IsoDate = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1),
    AfterValidator(check_iso_date),
]


class TournamentSchema(BaseModel):
    """Same rules in create and edit mode."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: Text
    location: Text
    start_date: IsoDate = Field(alias="startDate")
    end_date: IsoDate = Field(alias="endDate")
    divisions: List[str] = Field(min_length=1)
    categories: List[str] = Field(min_length=1)

    @field_validator("end_date")
    @classmethod
    def end_not_before_start(cls, v: str, info: ValidationInfo) -> str:
        # start_date is absent from info.data when it failed its own checks
        start = info.data.get("start_date")
        if start and date.fromisoformat(v) < date.fromisoformat(start):
            raise PydanticCustomError("cross_field", "End date is before start date")
        return v


TOURNAMENT_MESSAGES = {
    "name": FieldMessages(
        required="messages.tournament.nameRequired",
        too_long="messages.tournament.nameTooLong",
    ),
    "location": FieldMessages(
        required="messages.tournament.locationRequired",
        too_long="messages.tournament.locationTooLong",
    ),
    "startDate": FieldMessages(
        required="messages.tournament.startDateRequired",
        invalid="messages.tournament.invalidDateFormat",
    ),
    "endDate": FieldMessages(
        required="messages.tournament.endDateRequired",
        invalid="messages.tournament.invalidDateFormat",
        cross_field="messages.tournament.endDateBeforeStartDate",
    ),
    "divisions": FieldMessages(required="messages.tournament.divisionsRequired"),
    "categories": FieldMessages(required="messages.tournament.categoriesRequired"),
}

TOURNAMENT_PANELS = {
    1: (TournamentField.NAME, TournamentField.LOCATION),
    2: (TournamentField.START_DATE, TournamentField.END_DATE),
    3: (TournamentField.DIVISIONS,),
    4: (TournamentField.CATEGORIES,),
}

# No field of this form governs another's options
TOURNAMENT_CASCADES: tuple[CascadeRule, ...] = ()


def _parse_date(value: Value) -> Optional[date]:
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        return None


def sync_end_date(fields: Mapping[Enum, Value], start: Value) -> Dict[Enum, Value]:
    """End date follows the start date when it is empty or earlier."""
    end = fields.get(TournamentField.END_DATE)
    if not end:
        return {TournamentField.END_DATE: start}

    start_day, end_day = _parse_date(start), _parse_date(end)
    if start_day and end_day and start_day > end_day:
        return {TournamentField.END_DATE: start}
    return {}


TOURNAMENT_FORM = FormDeclaration(
    "tournament",
    TournamentField,
    initial_values={
        TournamentField.NAME: "",
        TournamentField.LOCATION: "",
        TournamentField.START_DATE: "",
        TournamentField.END_DATE: "",
        TournamentField.DIVISIONS: [],
        TournamentField.CATEGORIES: [],
    },
    panels=TOURNAMENT_PANELS,
    validator=SchemaValidator(
        "tournament",
        {FormMode.CREATE: TournamentSchema, FormMode.EDIT: TournamentSchema},
        TOURNAMENT_MESSAGES,
    ),
    cascades=TOURNAMENT_CASCADES,
    storage_key="tournament-form-storage",
    derived_updates={TournamentField.START_DATE: sync_end_date},
    error_dependents={TournamentField.START_DATE: (TournamentField.END_DATE,)},
)


def create_tournament_form(
    *,
    store: Optional[SessionStore] = None,
    context: ExecutionContext = ExecutionContext.INTERACTIVE,
    mode: FormMode = FormMode.CREATE,
    session_id: Optional[str] = None,
) -> FormState:
    """New tournament form session."""
    return FormState(
        TOURNAMENT_FORM,
        store=store,
        context=context,
        mode=mode,
        session_id=session_id,
    )
