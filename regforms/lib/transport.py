"""Submission transports.

A transport hands a validated form projection to the backend and reports
either success or a field-keyed error map. The engine never talks to the
network itself; ``SubmissionCoordinator`` calls a transport and feeds any
rejection back through ``FormState.set_server_errors``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, Mapping, Optional, Protocol

import requests

from regforms.lib.errors import SubmissionError
from regforms.lib.resilience import RetryConfig, retry_operation

if TYPE_CHECKING:
    from regforms.lib.settings import FormSettings

logger = logging.getLogger(__name__)

__all__ = [
    "FORM_ERROR_KEY",
    "SubmissionResult",
    "SubmissionTransport",
    "HttpSubmissionTransport",
]

# Key used for rejections that the server did not attach to a field
FORM_ERROR_KEY = "_form"

_FIELD_ERROR_STATUSES = (400, 409, 422)


@dataclass
class SubmissionResult:
    """Outcome of one delivery attempt."""

    success: bool
    errors: Dict[str, str] = field(default_factory=dict)
    status_code: Optional[int] = None
    payload: Any = None

    @classmethod
    def ok(cls, payload: Any = None, status_code: Optional[int] = 200) -> "SubmissionResult":
        return cls(success=True, payload=payload, status_code=status_code)

    @classmethod
    def rejected(
        cls, errors: Mapping[str, str], status_code: Optional[int] = None
    ) -> "SubmissionResult":
        return cls(success=False, errors=dict(errors), status_code=status_code)


class SubmissionTransport(Protocol):
    def submit(
        self,
        form: str,
        data: Mapping[str, Any],
        mode: str,
        record_id: Optional[str] = None,
    ) -> SubmissionResult:
        ...


class _ServerUnavailable(Exception):
    """5xx response; retried like a connection error."""

    def __init__(self, status_code: int, url: str) -> None:
        super().__init__(f"Server returned {status_code} for {url}")
        self.status_code = status_code
        self.url = url


class HttpSubmissionTransport:
    """JSON-over-HTTP transport built on requests.

    Create mode POSTs to ``<base_url>/<endpoint>``; edit mode PUTs to
    ``<base_url>/<endpoint>/<record_id>``. Responses with status 400, 409 or
    422 and a body like ``{"errors": {"clubName": "Club already registered"}}``
    become a rejected SubmissionResult. Connection errors, timeouts and 5xx
    responses are retried, then raised as SubmissionError.
    """

    DEFAULT_ENDPOINTS: Dict[str, str] = {
        "team": "teams",
        "tournament": "tournaments",
    }

    def __init__(
        self,
        base_url: str,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
        retry: Optional[RetryConfig] = None,
        endpoints: Optional[Mapping[str, str]] = None,
        sleep: Optional[Callable[[float], Any]] = None,
    ) -> None:
        if not base_url:
            raise ValueError("base_url is required")
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.retry = retry or RetryConfig(
            retry_exceptions=(requests.ConnectionError, requests.Timeout, _ServerUnavailable),
        )
        self.endpoints = {**self.DEFAULT_ENDPOINTS, **(endpoints or {})}
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings: "FormSettings", **kwargs: Any) -> "HttpSubmissionTransport":
        if not settings.submit_base_url:
            raise SubmissionError(
                "No submission endpoint configured",
                suggestion="Set REGFORMS_SUBMIT_BASE_URL or forms.submit_base_url",
            )
        retry = RetryConfig(
            max_attempts=settings.max_retries,
            backoff_seconds=settings.retry_delay,
            retry_exceptions=(requests.ConnectionError, requests.Timeout, _ServerUnavailable),
        )
        return cls(settings.submit_base_url, timeout=settings.submit_timeout, retry=retry, **kwargs)

    def url_for(self, form: str, record_id: Optional[str] = None) -> str:
        endpoint = self.endpoints.get(form, form)
        url = f"{self.base_url}/{endpoint}"
        if record_id:
            url = f"{url}/{record_id}"
        return url

    def submit(
        self,
        form: str,
        data: Mapping[str, Any],
        mode: str,
        record_id: Optional[str] = None,
    ) -> SubmissionResult:
        method = "PUT" if str(mode) == "edit" else "POST"
        url = self.url_for(form, record_id if method == "PUT" else None)
        payload = dict(data)

        def send() -> requests.Response:
            response = self.session.request(method, url, json=payload, timeout=self.timeout)
            if response.status_code >= 500:
                raise _ServerUnavailable(response.status_code, url)
            return response

        try:
            response = retry_operation(send, self.retry, f"{form} submission", sleep=self._sleep)
        except _ServerUnavailable as exc:
            raise SubmissionError(
                "Submission endpoint unavailable",
                form=form,
                url=url,
                status_code=exc.status_code,
            ) from exc
        except requests.RequestException as exc:
            raise SubmissionError(
                "Submission request failed", form=form, url=url, cause=exc
            ) from exc

        status = response.status_code
        if 200 <= status < 300:
            logger.info("%s %s accepted (%d)", method, url, status)
            return SubmissionResult.ok(_json_or_none(response), status_code=status)

        if status in _FIELD_ERROR_STATUSES:
            errors = _extract_field_errors(_json_or_none(response))
            if not errors:
                errors = {FORM_ERROR_KEY: response.reason or f"HTTP {status}"}
            logger.info("%s %s rejected (%d): %s", method, url, status, sorted(errors))
            return SubmissionResult.rejected(errors, status_code=status)

        raise SubmissionError(
            "Unexpected response from submission endpoint",
            form=form,
            url=url,
            status_code=status,
        )


def _json_or_none(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _extract_field_errors(body: Any) -> Dict[str, str]:
    """Pull ``{"errors": {field: message | [messages]}}`` out of a response body."""
    if not isinstance(body, dict):
        return {}
    raw = body.get("errors")
    if not isinstance(raw, dict):
        return {}

    errors: Dict[str, str] = {}
    for key, value in raw.items():
        if isinstance(value, list):
            value = next((v for v in value if v), None)
        if value:
            errors[str(key)] = str(value)
    return errors
