from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import pytest

from nekopad.app_bootstrapper import AppBootstrapper, BootstrapResult, LogProgress
from nekopad.domain.errors import PermissionDenied

# ----------------------------
# Fakes
# ----------------------------


@dataclass
class ProgressCall:
    kind: str
    payload: dict[str, Any]


class FakeProgress:
    def __init__(self) -> None:
        self.calls: list[ProgressCall] = []

    def set_status(self, text: str) -> None:
        self.calls.append(ProgressCall(kind="status", payload={"text": text}))

    def set_progress(self, *, value: int | None = None, maximum: int | None = None) -> None:
        self.calls.append(
            ProgressCall(kind="progress", payload={"value": value, "maximum": maximum})
        )

    def statuses(self) -> list[str]:
        return [c.payload["text"] for c in self.calls if c.kind == "status"]


class FakeContainer:
    def __init__(
        self,
        *,
        window: object | None = None,
        prepare_error: Exception | None = None,
        build_raises: bool = False,
    ) -> None:
        self._window = window if window is not None else object()
        self._prepare_error = prepare_error
        self._build_raises = build_raises
        self.prepare_called = 0
        self.build_main_window_called = 0

    def prepare_session(self) -> None:
        self.prepare_called += 1
        if self._prepare_error is not None:
            raise self._prepare_error

    def build_main_window(self) -> object:
        self.build_main_window_called += 1
        if self._build_raises:
            raise RuntimeError("build failed")
        return self._window


class BareContainer:
    """Container without a session step."""

    def build_main_window(self) -> object:
        return "window"


@pytest.fixture(autouse=True)
def _no_delay(monkeypatch):
    # avoid Qt event loop in tests
    monkeypatch.setattr(AppBootstrapper, "_intentional_delay", lambda self: None)


# ----------------------------
# Tests
# ----------------------------


def test_boot_success_reports_progress_prepares_session_and_builds_window() -> None:
    progress = FakeProgress()
    container = FakeContainer(window=object())

    result = AppBootstrapper(progress=progress, delay_ms=2000).boot(
        container_factory=lambda: container
    )

    assert isinstance(result, BootstrapResult)
    assert result.window is container._window
    assert result.container is container
    assert container.prepare_called == 1
    assert container.build_main_window_called == 1

    assert progress.statuses() == [
        "Initializing…",
        "Loading services…",
        "Preparing session…",
        "Building interface…",
        "Ready",
    ]

    progress_calls = [c.payload for c in progress.calls if c.kind == "progress"]
    assert progress_calls[0] == {"value": None, "maximum": None}  # indeterminate
    assert progress_calls[-1] == {"value": 1, "maximum": 1}  # done


def test_boot_session_failure_is_logged_and_still_finishes(caplog) -> None:
    progress = FakeProgress()
    container = FakeContainer(prepare_error=PermissionDenied("read-only disk"))

    with caplog.at_level("WARNING", logger="nekopad.app_bootstrapper"):
        result = AppBootstrapper(progress=progress).boot(container_factory=lambda: container)

    assert result.window is container._window
    assert progress.statuses()[-1] == "Ready"
    assert "read-only disk" in caplog.text


def test_boot_unexpected_session_error_propagates() -> None:
    progress = FakeProgress()
    container = FakeContainer(prepare_error=RuntimeError("bug"))

    with pytest.raises(RuntimeError, match="bug"):
        AppBootstrapper(progress=progress).boot(container_factory=lambda: container)
    assert container.build_main_window_called == 0


def test_boot_without_session_step() -> None:
    progress = FakeProgress()
    result = AppBootstrapper(progress=progress).boot(container_factory=BareContainer)
    assert result.window == "window"
    assert progress.statuses()[-1] == "Ready"


def test_boot_container_factory_failure_propagates_and_reports_up_to_loading_services() -> None:
    progress = FakeProgress()
    boot = AppBootstrapper(progress=progress, delay_ms=0)

    def bad_factory() -> object:
        raise RuntimeError("container init failed")

    with pytest.raises(RuntimeError, match="container init failed"):
        boot.boot(container_factory=bad_factory)

    # We should have at least set the earlier status messages before failing
    assert progress.statuses() == ["Initializing…", "Loading services…"]


def test_boot_build_main_window_failure_propagates_and_reports_up_to_building_interface() -> None:
    progress = FakeProgress()
    container = FakeContainer(build_raises=True)

    with pytest.raises(RuntimeError, match="build failed"):
        AppBootstrapper(progress=progress).boot(container_factory=lambda: container)

    assert progress.statuses() == [
        "Initializing…",
        "Loading services…",
        "Preparing session…",
        "Building interface…",
    ]


def test_log_progress_writes_to_log(caplog) -> None:
    with caplog.at_level("DEBUG", logger="nekopad.app_bootstrapper"):
        p = LogProgress()
        p.set_status("Loading services…")
        p.set_progress(value=1, maximum=2)
    assert "Loading services…" in caplog.text
    assert "1/2" in caplog.text
