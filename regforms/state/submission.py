"""Submission coordinator.

Decides whether a form may be submitted, waits (bounded) for the renderer's
scroll animation, hands the projection to a transport and feeds rejections
back into the engine. The engine itself stays synchronous; only this
coordinator is async.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Optional

from regforms.lib.errors import SubmissionError
from regforms.lib.transport import SubmissionResult, SubmissionTransport
from regforms.state.form_state import FormState
from regforms.state.types import FormMode

if TYPE_CHECKING:
    from regforms.lib.settings import FormSettings

logger = logging.getLogger(__name__)

__all__ = ["SubmissionStatus", "SubmissionOutcome", "SubmissionCoordinator"]

DEFAULT_SCROLL_TIMEOUT = 0.8


class SubmissionStatus(Enum):
    SUBMITTED = "submitted"
    REJECTED = "rejected"
    INVALID = "invalid"
    UNCHANGED = "unchanged"
    IGNORED = "ignored"
    FAILED = "failed"


@dataclass
class SubmissionOutcome:
    status: SubmissionStatus
    errors: Dict[str, str] = field(default_factory=dict)
    message: Optional[str] = None
    result: Optional[SubmissionResult] = None

    @property
    def ok(self) -> bool:
        return self.status is SubmissionStatus.SUBMITTED


class SubmissionCoordinator:
    """Runs one form's submit flow.

    Args:
        state: The form session
        transport: Blocking transport; run in a worker thread
        scroll_timeout: Upper bound on the pre-submit scroll wait, seconds
        record_id: Id of the record being edited (edit mode)
    """

    def __init__(
        self,
        state: FormState,
        transport: SubmissionTransport,
        *,
        scroll_timeout: float = DEFAULT_SCROLL_TIMEOUT,
        record_id: Optional[str] = None,
    ) -> None:
        self.state = state
        self.transport = transport
        self.scroll_timeout = scroll_timeout
        self.record_id = record_id
        self._in_flight = False

    @classmethod
    def from_settings(
        cls,
        state: FormState,
        transport: SubmissionTransport,
        settings: "FormSettings",
        *,
        record_id: Optional[str] = None,
    ) -> "SubmissionCoordinator":
        """Coordinator whose scroll wait is bounded by ``settings.scroll_timeout``."""
        return cls(
            state, transport, scroll_timeout=settings.scroll_timeout, record_id=record_id
        )

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    async def submit(
        self,
        wait_for_scroll: Optional[Callable[[], Awaitable[Any]]] = None,
    ) -> SubmissionOutcome:
        state = self.state

        if self._in_flight:
            logger.debug("Ignoring submit for %s: already in flight", state.name)
            return SubmissionOutcome(SubmissionStatus.IGNORED)

        if not state.validate_form():
            return SubmissionOutcome(
                SubmissionStatus.INVALID, errors=dict(state.validation.display_errors)
            )

        if state.mode is FormMode.EDIT and not state.is_dirty():
            logger.info("Nothing changed on %s; skipping submission", state.name)
            return SubmissionOutcome(SubmissionStatus.UNCHANGED)

        self._in_flight = True
        state.meta.is_submitting = True
        try:
            if wait_for_scroll is not None:
                try:
                    await asyncio.wait_for(wait_for_scroll(), timeout=self.scroll_timeout)
                except asyncio.TimeoutError:
                    logger.debug("Scroll wait timed out after %.2fs", self.scroll_timeout)

            data = dict(state.get_form_data())
            try:
                result = await asyncio.to_thread(
                    self.transport.submit,
                    state.name,
                    data,
                    state.mode.value,
                    self.record_id,
                )
            except SubmissionError as e:
                logger.error("Submission of %s failed: %s", state.name, e.message)
                return SubmissionOutcome(SubmissionStatus.FAILED, message=e.message)

            if result.success:
                logger.info("Submitted %s form", state.name)
                return SubmissionOutcome(SubmissionStatus.SUBMITTED, result=result)

            state.set_server_errors(result.errors)
            return SubmissionOutcome(
                SubmissionStatus.REJECTED, errors=dict(result.errors), result=result
            )
        finally:
            state.meta.is_submitting = False
            self._in_flight = False
