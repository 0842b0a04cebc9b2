from pathlib import Path

import pytest

try:
    from regionsnip import pipeline
except (ImportError, ValueError) as exc:
    pytest.skip(f"PyGObject unavailable: {exc}", allow_module_level=True)

from regionsnip.config import Config
from regionsnip.errors import CaptureFailure, EncodeFailure
from regionsnip.geometry import Rect
from regionsnip.outcome import Error, Success

DESKTOP = Rect(-1280, 0, 3200, 1080)
MONITORS = [Rect(0, 0, 1920, 1080), Rect(-1280, 0, 1280, 1024)]


@pytest.fixture
def screen(monkeypatch):
    """Fake two-monitor screen; records what gets captured and encoded."""
    calls = {"captured": [], "encoded": [], "monitors": list(MONITORS)}

    monkeypatch.setattr(pipeline, "virtual_desktop_bounds", lambda config=None: DESKTOP)
    monkeypatch.setattr(pipeline, "monitor_bounds", lambda config=None: calls["monitors"])

    def fake_capture(rect, config=None):
        calls["captured"].append(rect)
        return object()

    def fake_encode(pixbuf, path, quality, scale):
        calls["encoded"].append((Path(path), quality, scale))
        return 1, 1

    monkeypatch.setattr(pipeline, "capture_region", fake_capture)
    monkeypatch.setattr(pipeline, "encode", fake_encode)
    return calls


def test_capture_request_picks_format_from_extension():
    request = pipeline.CaptureRequest.build(Rect(0, 0, 10, 10), "shot.JPG", 70, 0.5)

    assert request.output_format == "jpeg"
    assert request.output_path == Path("shot.JPG")


def test_selected_monitor(screen):
    outcome = pipeline.run_full_capture(False, 1, "out.png", 80, 0.75, Config())

    assert screen["captured"] == [MONITORS[1]]
    assert screen["encoded"] == [(Path("out.png"), 80, 0.75)]
    assert outcome == Success(Path("out.png"), "full", MONITORS[1], monitor_index=1, capture_all=False)


@pytest.mark.parametrize("index", [-1, 2, 99])
def test_out_of_range_monitor_falls_back_to_first(screen, index):
    outcome = pipeline.run_full_capture(False, index, "out.png", 80, 0.75, Config())

    assert screen["captured"] == [MONITORS[0]]
    assert outcome.to_dict()["monitorIndex"] == 0


def test_all_captures_virtual_desktop(screen):
    outcome = pipeline.run_full_capture(True, 1, "out.png", 80, 0.75, Config())

    assert screen["captured"] == [DESKTOP]
    data = outcome.to_dict()
    assert data["monitorIndex"] is None
    assert data["all"] is True
    assert data["rect"] == {"x": -1280, "y": 0, "width": 3200, "height": 1080}


def test_no_monitors_uses_virtual_desktop(screen):
    screen["monitors"] = []

    pipeline.run_full_capture(False, 0, "out.png", 80, 0.75, Config())

    assert screen["captured"] == [DESKTOP]


@pytest.mark.parametrize("error", [CaptureFailure("denied"), EncodeFailure("read-only")])
def test_pipeline_failure_is_error_outcome(screen, monkeypatch, error):
    def failing(*args, **kwargs):
        raise error

    monkeypatch.setattr(pipeline, "capture_region", failing)

    outcome = pipeline.run_full_capture(False, 0, "out.png", 80, 0.75, Config())

    assert outcome == Error(str(error), "full")
