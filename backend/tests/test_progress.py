import pytest

from brandintel.services.brand_intel.progress import ScanProgress


def test_progress_session_tracks_phases_and_errors():
    messages = []
    progress = ScanProgress("acme.test", callback=messages.append)

    progress.start()
    progress.advance("discovering", current_url="https://acme.test")
    assert progress.is_active
    assert progress.current_url == "https://acme.test"

    progress.record_error("Discovery failed: boom")
    progress.advance("complete")

    assert not progress.is_active
    assert progress.errors == ["Discovery failed: boom"]
    assert progress.elapsed_seconds is not None
    assert messages == [
        "Scan started",
        "Phase: discovering",
        "Error: Discovery failed: boom",
        "Phase: complete",
    ]

    data = progress.to_dict()
    assert data["phase"] == "complete"
    assert [entry["phase"] for entry in data["history"]] == ["discovering", "complete"]


def test_sessions_are_independent():
    first = ScanProgress("a.test")
    second = ScanProgress("b.test")

    first.start()
    first.advance("extracting")

    assert second.phase == "idle"
    assert second.elapsed_seconds is None


def test_unknown_phase_is_rejected():
    with pytest.raises(ValueError):
        ScanProgress("acme.test").advance("sleeping")


def test_failing_callback_does_not_interrupt_updates():
    def listener(message):
        raise RuntimeError("listener down")

    progress = ScanProgress("acme.test", callback=listener)

    progress.start()
    progress.advance("researching")
    progress.record_error("Research failed: boom")

    assert progress.phase == "researching"
    assert progress.errors == ["Research failed: boom"]
