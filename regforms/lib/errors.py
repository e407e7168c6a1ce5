"""Structured exception hierarchy for the form state engine.

Field-level problems (required, format, cross-field, server rejection) are
never raised: they are kept as field-keyed translation keys inside the
engine's validation state. The exceptions below cover the two remaining
cases: programmer errors at the engine boundary (undeclared field, wrong
value type, malformed declaration) and failures of the external
collaborators (session storage, catalog files, submission transport).
"""

from __future__ import annotations

from typing import Any, Dict, Optional

__all__ = [
    "FormStateError",
    "UnknownFieldError",
    "FieldTypeError",
    "UnknownPanelError",
    "DeclarationError",
    "PersistenceError",
    "CatalogError",
    "SubmissionError",
]


class FormStateError(Exception):
    """Base exception for all regforms errors.

    Provides structured error information for debugging.
    """

    def __init__(
        self,
        message: str,
        *,
        form: Optional[str] = None,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        self.form = form
        self.field = field
        self.details = details or {}
        self.suggestion = suggestion

        self.message = message

        parts = [message]

        if form or field:
            context = f"{form or '?'}.{field}" if field else form
            parts[0] = f"[{context}] {message}"

        if self.details:
            detail_lines = [f"  {k}: {v}" for k, v in self.details.items()]
            parts.append("\nDetails:")
            parts.extend(detail_lines)

        if suggestion:
            parts.append(f"\nSuggestion: {suggestion}")

        super().__init__("\n".join(parts) if len(parts) > 1 else parts[0])

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "form": self.form,
            "field": self.field,
            "details": self.details,
            "suggestion": self.suggestion,
        }


class UnknownFieldError(FormStateError, KeyError):
    """A field identifier that the form does not declare.

    Raised at the engine boundary. This is a precondition violation in the
    calling code, not a recoverable runtime condition.
    """

    def __init__(self, field: Any, *, form: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(
            f"Unknown field {field!r}",
            form=form,
            field=str(field),
            **kwargs,
        )

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return Exception.__str__(self)


class FieldTypeError(FormStateError, TypeError):
    """A value whose type does not match the declared field type."""

    def __init__(
        self,
        field: str,
        *,
        expected: str,
        actual: Any,
        form: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        self.expected = expected
        self.actual = actual
        details = kwargs.pop("details", {})
        details.update({"expected": expected, "actual": type(actual).__name__})
        super().__init__(
            "Value has the wrong type",
            form=form,
            field=field,
            details=details,
            **kwargs,
        )


class UnknownPanelError(FormStateError, KeyError):
    """A panel number outside the form's panel declaration."""

    def __init__(self, panel: Any, *, form: Optional[str] = None, **kwargs: Any) -> None:
        self.panel = panel
        super().__init__(f"Unknown panel {panel!r}", form=form, **kwargs)

    def __str__(self) -> str:
        return Exception.__str__(self)


class DeclarationError(FormStateError, ValueError):
    """A form declaration that breaks a structural invariant.

    Raised while a FormDeclaration is being built, e.g. when a panel map
    skips a number or a cascade rule names a field the form does not have.
    """


class PersistenceError(FormStateError):
    """Error reading or writing the session store.

    Stores raise this; the persistence adapter catches and logs it so that
    a storage failure never escapes a field mutation.
    """

    def __init__(
        self,
        message: str,
        *,
        key: Optional[str] = None,
        cause: Optional[Exception] = None,
        **kwargs: Any,
    ) -> None:
        self.key = key
        self.cause = cause

        details = kwargs.pop("details", {})
        if key:
            details["key"] = key
        if cause:
            details["cause"] = str(cause)
            details["cause_type"] = type(cause).__name__

        super().__init__(message, details=details, **kwargs)


class CatalogError(FormStateError):
    """Error loading the tournament catalog."""

    def __init__(
        self,
        message: str,
        *,
        path: Optional[str] = None,
        cause: Optional[Exception] = None,
        **kwargs: Any,
    ) -> None:
        self.path = path
        self.cause = cause

        details = kwargs.pop("details", {})
        if path:
            details["path"] = path
        if cause:
            details["cause"] = str(cause)

        suggestion = kwargs.pop("suggestion", None)
        if not suggestion:
            suggestion = (
                "Each catalog entry needs an 'id' plus 'divisions' and "
                "'categories' lists."
            )

        super().__init__(message, details=details, suggestion=suggestion, **kwargs)


class SubmissionError(FormStateError):
    """The submission transport could not deliver the form.

    Field-level rejections are not errors: they come back as a
    SubmissionResult carrying an error map.
    """

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        cause: Optional[Exception] = None,
        **kwargs: Any,
    ) -> None:
        self.url = url
        self.status_code = status_code
        self.cause = cause

        details = kwargs.pop("details", {})
        if url:
            details["url"] = url
        if status_code is not None:
            details["status_code"] = status_code
        if cause:
            details["cause"] = str(cause)
            details["cause_type"] = type(cause).__name__

        super().__init__(message, details=details, **kwargs)
