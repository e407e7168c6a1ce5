"""Tests for the async submission coordinator."""

from __future__ import annotations

import asyncio
import threading
from typing import Any, Dict, List, Mapping, Optional

from regforms.forms.team import TeamField
from regforms.lib.errors import SubmissionError
from regforms.lib.settings import FormSettings
from regforms.lib.transport import SubmissionResult
from regforms.state.form_state import FormState
from regforms.state.submission import SubmissionCoordinator, SubmissionStatus


class FakeTransport:
    def __init__(
        self,
        result: Optional[SubmissionResult] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.result = result or SubmissionResult.ok({"id": "new"})
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def submit(
        self,
        form: str,
        data: Mapping[str, Any],
        mode: str,
        record_id: Optional[str] = None,
    ):
        self.calls.append(
            {"form": form, "data": dict(data), "mode": mode, "record_id": record_id}
        )
        if self.error is not None:
            raise self.error
        return self.result


class BlockingTransport(FakeTransport):
    """Holds the first submit until released from the test."""

    def __init__(self) -> None:
        super().__init__()
        self.started = threading.Event()
        self.release = threading.Event()

    def submit(self, form, data, mode, record_id=None):
        self.started.set()
        self.release.wait(timeout=5)
        return super().submit(form, data, mode, record_id)


class TestSubmitFlow:
    def test_invalid_form_never_reaches_transport(self, team_form: FormState) -> None:
        transport = FakeTransport()

        outcome = asyncio.run(SubmissionCoordinator(team_form, transport).submit())

        assert outcome.status is SubmissionStatus.INVALID
        assert len(outcome.errors) == 9
        assert transport.calls == []
        assert team_form.validation.submit_attempted

    def test_success(self, filled_team_form: FormState) -> None:
        transport = FakeTransport()

        outcome = asyncio.run(SubmissionCoordinator(filled_team_form, transport).submit())

        assert outcome.ok
        assert transport.calls[0]["form"] == "team"
        assert transport.calls[0]["mode"] == "create"
        assert transport.calls[0]["data"]["clubName"] == "FC Example"
        assert filled_team_form.meta.is_submitting is False

    def test_unchanged_edit_is_skipped(self, edit_team_form: FormState) -> None:
        transport = FakeTransport()

        outcome = asyncio.run(SubmissionCoordinator(edit_team_form, transport).submit())

        assert outcome.status is SubmissionStatus.UNCHANGED
        assert transport.calls == []

    def test_edit_passes_record_id(self, edit_team_form: FormState) -> None:
        edit_team_form.set_field(TeamField.NAME, "JO10-2")
        transport = FakeTransport()

        asyncio.run(SubmissionCoordinator(edit_team_form, transport, record_id="team-9").submit())

        assert transport.calls[0]["mode"] == "edit"
        assert transport.calls[0]["record_id"] == "team-9"

    def test_rejection_feeds_server_errors(self, filled_team_form: FormState) -> None:
        transport = FakeTransport(
            SubmissionResult.rejected({"clubName": "messages.server.clubTaken"}, 422)
        )

        outcome = asyncio.run(SubmissionCoordinator(filled_team_form, transport).submit())

        assert outcome.status is SubmissionStatus.REJECTED
        assert filled_team_form.display_errors["clubName"] == "messages.server.clubTaken"
        assert not filled_team_form.is_panel_enabled(3)

    def test_transport_failure(self, filled_team_form: FormState) -> None:
        transport = FakeTransport(error=SubmissionError("Submission endpoint unavailable"))
        coordinator = SubmissionCoordinator(filled_team_form, transport)

        outcome = asyncio.run(coordinator.submit())

        assert outcome.status is SubmissionStatus.FAILED
        assert outcome.message == "Submission endpoint unavailable"
        assert not coordinator.in_flight
        assert filled_team_form.meta.is_submitting is False


class TestFromSettings:
    def test_scroll_timeout_from_settings(self, filled_team_form: FormState) -> None:
        settings = FormSettings(scroll_timeout=0.25)

        coordinator = SubmissionCoordinator.from_settings(
            filled_team_form, FakeTransport(), settings, record_id="team-7"
        )

        assert coordinator.scroll_timeout == 0.25
        assert coordinator.record_id == "team-7"

    def test_env_bounds_the_scroll_wait(
        self, filled_team_form: FormState, monkeypatch
    ) -> None:
        monkeypatch.setenv("REGFORMS_SCROLL_TIMEOUT", "0.01")
        transport = FakeTransport()

        async def never_finishes() -> None:
            await asyncio.sleep(30)

        coordinator = SubmissionCoordinator.from_settings(
            filled_team_form, transport, FormSettings()
        )
        outcome = asyncio.run(coordinator.submit(wait_for_scroll=never_finishes))

        assert coordinator.scroll_timeout == 0.01
        assert outcome.ok


class TestScrollWait:
    def test_slow_scroll_is_bounded(self, filled_team_form: FormState) -> None:
        transport = FakeTransport()

        async def never_finishes() -> None:
            await asyncio.sleep(30)

        coordinator = SubmissionCoordinator(filled_team_form, transport, scroll_timeout=0.01)
        outcome = asyncio.run(coordinator.submit(wait_for_scroll=never_finishes))

        assert outcome.ok
        assert len(transport.calls) == 1

    def test_scroll_completes_first(self, filled_team_form: FormState) -> None:
        order: List[str] = []
        transport = FakeTransport()

        async def scroll() -> None:
            order.append("scroll")

        coordinator = SubmissionCoordinator(filled_team_form, transport)
        asyncio.run(coordinator.submit(wait_for_scroll=scroll))

        assert order == ["scroll"]
        assert len(transport.calls) == 1


class TestReentrancy:
    def test_second_submit_is_ignored(self, filled_team_form: FormState) -> None:
        transport = BlockingTransport()
        coordinator = SubmissionCoordinator(filled_team_form, transport)

        async def run_both():
            first = asyncio.ensure_future(coordinator.submit())
            while not transport.started.is_set():
                await asyncio.sleep(0.005)
            assert filled_team_form.meta.is_submitting
            second = await coordinator.submit()
            transport.release.set()
            return await first, second

        first, second = asyncio.run(run_both())

        assert first.ok
        assert second.status is SubmissionStatus.IGNORED
        assert len(transport.calls) == 1
