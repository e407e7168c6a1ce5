"""Tests for regforms/lib/errors.py - structured exception hierarchy."""

import pytest

from regforms.lib.errors import (
    CatalogError,
    DeclarationError,
    FieldTypeError,
    FormStateError,
    PersistenceError,
    SubmissionError,
    UnknownFieldError,
    UnknownPanelError,
)


class TestFormStateError:
    """Tests for base FormStateError class."""

    def test_basic_message(self):
        """Test error with just a message."""
        error = FormStateError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"

    def test_with_form_and_field(self):
        """Test error with form and field context."""
        error = FormStateError("Bad value", form="team", field="clubName")
        assert str(error).startswith("[team.clubName] Bad value")

    def test_with_form_only(self):
        error = FormStateError("Bad declaration", form="tournament")
        assert str(error).startswith("[tournament] Bad declaration")

    def test_with_details_and_suggestion(self):
        """Test error with details dict and a fix suggestion."""
        error = FormStateError(
            "Cannot load",
            details={"path": "/tmp/x.yaml"},
            suggestion="Check the file",
        )
        text = str(error)
        assert "path: /tmp/x.yaml" in text
        assert "Suggestion: Check the file" in text

    def test_to_dict(self):
        """Test conversion to dictionary."""
        error = FormStateError(
            "Test error",
            form="team",
            field="name",
            details={"key": "value"},
            suggestion="Fix it",
        )
        d = error.to_dict()
        assert d["error_type"] == "FormStateError"
        assert d["form"] == "team"
        assert d["field"] == "name"
        assert d["details"]["key"] == "value"
        assert d["suggestion"] == "Fix it"


class TestProgrammerErrors:
    """Errors raised at the engine boundary."""

    def test_unknown_field_is_key_error(self):
        error = UnknownFieldError("nickname", form="team")
        assert isinstance(error, KeyError)
        assert isinstance(error, FormStateError)
        assert str(error) == "[team.nickname] Unknown field 'nickname'"

    def test_unknown_panel_is_key_error(self):
        error = UnknownPanelError(7, form="team")
        assert isinstance(error, KeyError)
        assert error.panel == 7
        assert "Unknown panel 7" in str(error)

    def test_field_type_error(self):
        error = FieldTypeError("privacyAgreement", expected="flag", actual="yes", form="team")
        assert isinstance(error, TypeError)
        assert error.details == {"expected": "flag", "actual": "str"}

    def test_declaration_error_is_value_error(self):
        with pytest.raises(ValueError):
            raise DeclarationError("broken", form="team")


class TestBoundaryErrors:
    """Errors from external collaborators."""

    def test_persistence_error_cause(self):
        cause = OSError("disk full")
        error = PersistenceError("Could not write", key="team-form-storage", cause=cause)
        assert error.details["key"] == "team-form-storage"
        assert error.details["cause_type"] == "OSError"
        assert error.cause is cause

    def test_catalog_error_default_suggestion(self):
        error = CatalogError("Invalid", path="catalog.yaml")
        assert error.path == "catalog.yaml"
        assert "'id'" in error.suggestion

    def test_catalog_error_custom_suggestion(self):
        error = CatalogError("Invalid", suggestion="Regenerate the file")
        assert error.suggestion == "Regenerate the file"

    def test_submission_error_status(self):
        error = SubmissionError("Unavailable", url="https://x/teams", status_code=503)
        assert error.details == {"url": "https://x/teams", "status_code": 503}
        assert error.status_code == 503
