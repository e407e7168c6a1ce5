"""Behaviour of the tournament registration form."""

from __future__ import annotations

import pytest

from regforms.forms.tournament import TOURNAMENT_FORM, TournamentField, sync_end_date
from regforms.state.form_state import FormState


def _fill(form: FormState, values: dict) -> None:
    for key, value in values.items():
        form.set_field(key, value)


class TestEndDateSync:
    def test_empty_end_follows_start(self, tournament_form: FormState) -> None:
        tournament_form.set_field(TournamentField.START_DATE, "2025-04-12")
        assert tournament_form.get_field(TournamentField.END_DATE) == "2025-04-12"

    def test_earlier_end_moves_forward(self, tournament_form: FormState) -> None:
        tournament_form.set_field(TournamentField.END_DATE, "2025-04-01")
        tournament_form.set_field(TournamentField.START_DATE, "2025-04-12")

        assert tournament_form.get_field(TournamentField.END_DATE) == "2025-04-12"

    def test_later_end_is_kept(self, tournament_form: FormState) -> None:
        tournament_form.set_field(TournamentField.END_DATE, "2025-04-20")
        tournament_form.set_field(TournamentField.START_DATE, "2025-04-12")

        assert tournament_form.get_field(TournamentField.END_DATE) == "2025-04-20"

    def test_unparseable_dates_leave_end_alone(self) -> None:
        fields = {TournamentField.END_DATE: "soon"}
        assert sync_end_date(fields, "2025-04-12") == {}


class TestValidation:
    def test_valid(self, tournament_form: FormState, valid_tournament: dict) -> None:
        _fill(tournament_form, valid_tournament)

        assert tournament_form.validate_form() is True
        assert tournament_form.can_submit()

    def test_empty_form(self, tournament_form: FormState) -> None:
        assert tournament_form.validate_form() is False
        assert set(tournament_form.display_errors) == {f.value for f in TournamentField}
        errors = tournament_form.display_errors
        assert errors["divisions"] == "messages.tournament.divisionsRequired"

    def test_end_before_start(self, tournament_form: FormState, valid_tournament: dict) -> None:
        _fill(tournament_form, valid_tournament)
        tournament_form.set_field(TournamentField.END_DATE, "2025-04-11")

        tournament_form.validate_form()

        assert dict(tournament_form.display_errors) == {
            "endDate": "messages.tournament.endDateBeforeStartDate"
        }

    @pytest.mark.parametrize("value", ["12-04-2025", "2025-02-30", "2025/04/12"])
    def test_invalid_date_format(
        self, tournament_form: FormState, valid_tournament: dict, value: str
    ) -> None:
        _fill(tournament_form, valid_tournament)
        tournament_form.set_field(TournamentField.START_DATE, value)

        tournament_form.blur_field(TournamentField.START_DATE)

        errors = tournament_form.display_errors
        assert errors["startDate"] == "messages.tournament.invalidDateFormat"

    def test_name_too_long(self, tournament_form: FormState, valid_tournament: dict) -> None:
        _fill(tournament_form, valid_tournament)
        tournament_form.set_field(TournamentField.NAME, "N" * 101)

        assert tournament_form.blur_field(TournamentField.NAME) == "messages.tournament.nameTooLong"


class TestPanels:
    def test_multi_select_panels_need_an_entry(self, tournament_form: FormState) -> None:
        _fill(
            tournament_form,
            {
                "name": "Cup",
                "location": "Utrecht",
                "startDate": "2025-05-01",
                "divisions": ["FIRST_DIVISION"],
            },
        )

        assert tournament_form.is_panel_enabled(3)
        assert tournament_form.is_panel_enabled(4)
        assert not tournament_form.is_panel_valid(4)
        assert not tournament_form.is_form_ready_for_submission()

    def test_no_cascades(self) -> None:
        assert len(TOURNAMENT_FORM.cascades) == 0
        assert TOURNAMENT_FORM.parent_field is None


class TestEndDateError:
    def _reject_end_date(self, form: FormState) -> None:
        _fill(form, {"name": "Cup", "location": "Utrecht"})
        form.set_field(TournamentField.START_DATE, "2025-04-10")
        form.set_field(TournamentField.END_DATE, "2025-04-05")
        assert form.blur_field(TournamentField.END_DATE) == (
            "messages.tournament.endDateBeforeStartDate"
        )

    def test_earlier_start_clears_end_error(self, tournament_form: FormState) -> None:
        self._reject_end_date(tournament_form)

        tournament_form.set_field(TournamentField.START_DATE, "2025-04-01")

        assert "endDate" not in tournament_form.display_errors
        assert tournament_form.get_field(TournamentField.END_DATE) == "2025-04-05"
        assert tournament_form.is_panel_valid(2)
        assert tournament_form.is_panel_enabled(3)

    def test_end_error_returns_on_next_blur(self, tournament_form: FormState) -> None:
        self._reject_end_date(tournament_form)

        tournament_form.set_field(TournamentField.START_DATE, "2025-04-08")

        assert "endDate" not in tournament_form.display_errors
        assert tournament_form.blur_field(TournamentField.END_DATE) == (
            "messages.tournament.endDateBeforeStartDate"
        )
        assert not tournament_form.is_panel_valid(2)

    def test_declared_on_start_date(self) -> None:
        assert TOURNAMENT_FORM.error_dependents == {
            TournamentField.START_DATE: (TournamentField.END_DATE,)
        }
