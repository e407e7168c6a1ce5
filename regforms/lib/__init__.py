"""Ambient layer shared by the form engine: errors, logging, settings,
session storage, retries, submission transport and the tournament catalog."""

from regforms.lib.catalog import CatalogProvider, StaticCatalog, TournamentOption, load_catalog
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
from regforms.lib.logging import FormLogger, configure_logging, get_form_logger, setup_logging
from regforms.lib.settings import FormSettings, get_settings
from regforms.lib.storage import (
    FileSessionStore,
    MemorySessionStore,
    NullSessionStore,
    SessionStore,
    create_session_store,
)
from regforms.lib.transport import HttpSubmissionTransport, SubmissionResult, SubmissionTransport

__all__ = [
    # Catalog
    "CatalogProvider",
    "StaticCatalog",
    "TournamentOption",
    "load_catalog",
    # Errors
    "FormStateError",
    "UnknownFieldError",
    "FieldTypeError",
    "UnknownPanelError",
    "DeclarationError",
    "PersistenceError",
    "CatalogError",
    "SubmissionError",
    # Logging
    "FormLogger",
    "get_form_logger",
    "setup_logging",
    "configure_logging",
    # Settings
    "FormSettings",
    "get_settings",
    # Storage
    "SessionStore",
    "MemorySessionStore",
    "FileSessionStore",
    "NullSessionStore",
    "create_session_store",
    # Transport
    "SubmissionResult",
    "SubmissionTransport",
    "HttpSubmissionTransport",
]
