"""UI-agnostic form state engine.

The engine is split the way it is used: a declaration describes a form,
``FormState`` holds one session of it, and ``SubmissionCoordinator`` runs
the async submit flow on top.
"""

from regforms.state.cascade import CascadeGraph, CascadeRule, compute_available_options
from regforms.state.declaration import FieldValidator, FormDeclaration
from regforms.state.form_state import FormState
from regforms.state.persistence import PersistenceAdapter
from regforms.state.submission import SubmissionCoordinator, SubmissionOutcome, SubmissionStatus
from regforms.state.types import (
    AvailableOptions,
    ExecutionContext,
    FormMeta,
    FormMode,
    ValidationState,
    is_empty_value,
)
from regforms.state.validation import merge_errors, should_validate_field

__all__ = [
    "AvailableOptions",
    "CascadeGraph",
    "CascadeRule",
    "ExecutionContext",
    "FieldValidator",
    "FormDeclaration",
    "FormMeta",
    "FormMode",
    "FormState",
    "PersistenceAdapter",
    "SubmissionCoordinator",
    "SubmissionOutcome",
    "SubmissionStatus",
    "ValidationState",
    "compute_available_options",
    "is_empty_value",
    "merge_errors",
    "should_validate_field",
]
