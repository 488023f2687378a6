import io
import json
import logging

import pytest

from pzpack.logging import configure_logging, get_logger, step
from pzpack.reporting import (
    JsonLinesReporter,
    PlainReporter,
    SilentReporter,
    get_reporter,
    set_reporter,
    set_verbosity,
    task,
)


@pytest.fixture(autouse=True)
def _reset():
    yield
    set_verbosity(0)
    set_reporter(SilentReporter())


def test_plain_task_completion_line():
    buf = io.StringIO()
    set_reporter(PlainReporter(stream=buf, use_color=False))
    with task("t", "Load pages", total=2) as rep:
        rep.advance("t", current_item="A", pages=1)
        rep.advance("t", current_item="B", pages=2)
    out = buf.getvalue()
    assert "✔ Load pages 2/2" in out
    assert "[pages=2]" in out
    # Per-item lines only appear when verbose.
    assert "· Load pages: A" not in out


def test_plain_verbose_items():
    buf = io.StringIO()
    set_verbosity(1)
    set_reporter(PlainReporter(stream=buf, use_color=False))
    with task("t", "Render", total=1) as rep:
        rep.advance("t", current_item="UI")
    assert "· Render: UI (1/1)" in buf.getvalue()


def test_failed_task_is_marked():
    buf = io.StringIO()
    set_reporter(PlainReporter(stream=buf, use_color=False))
    with pytest.raises(RuntimeError):
        with task("t", "Write", total=3):
            raise RuntimeError("boom")
    assert "✖ Write 0/3" in buf.getvalue()


def test_json_events_and_summary():
    buf = io.StringIO()
    rep = JsonLinesReporter(stream=buf)
    rep.start_task("x", "Pack", total=1)
    rep.advance("x", current_item="UI")
    rep.end_task("x")
    rep.status("Pack summary: pages=1 entries=3 format=native")
    rep.status("Nothing to summarize: a=1")
    events = [json.loads(line) for line in buf.getvalue().splitlines()]
    kinds = [e["event"] for e in events]
    assert kinds == [
        "task_start",
        "task_progress",
        "task_end",
        "summary",
        "status",
        "status",
    ]
    summary = events[3]
    assert summary["summary_type"] == "pack"
    assert summary["entries"] == "3"
    assert events[2]["status"] == "success"


def test_logging_routes_to_reporter():
    buf = io.StringIO()
    set_reporter(PlainReporter(stream=buf, use_color=False))
    configure_logging(0)
    logger = get_logger()
    logger.debug("hidden detail")
    logger.info("hello")
    logger.warning("careful")
    step("doing things")
    out = buf.getvalue()
    assert "INFO: hello" in out
    assert "WARN: careful" in out
    assert "-> doing things" in out
    assert "hidden detail" not in out
    assert logger.propagate is False


def test_debug_records_need_verbosity():
    buf = io.StringIO()
    set_verbosity(1)
    set_reporter(PlainReporter(stream=buf, use_color=False))
    configure_logging(1)
    get_logger().debug("detail %d", 7)
    assert "VERB1: detail 7" in buf.getvalue()
    assert get_logger().level == logging.DEBUG


def test_default_reporter_is_plain():
    set_reporter(None)  # type: ignore[arg-type]
    assert isinstance(get_reporter(), PlainReporter)
