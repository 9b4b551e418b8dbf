import logging
import re

import pytest

from alpenglow.logsetup import (
    HANDLER_NAME,
    MinimalFormatter,
    enable_logging,
    enable_logging_stderr,
)

ANSI = re.compile(r"\x1b\[[0-9;]*m")


def make_record(level, msg="hello"):
    return logging.LogRecord("test", level, __file__, 1, msg, None, None)


@pytest.fixture
def clean_root():
    root = logging.getLogger()
    saved_level = root.level
    saved_handlers = list(root.handlers)
    yield root
    for handler in list(root.handlers):
        if handler not in saved_handlers:
            root.removeHandler(handler)
    root.setLevel(saved_level)


def test_plain_info_is_right_aligned():
    out = MinimalFormatter(color=False).format(make_record(logging.INFO))
    assert out == " INFO hello"


def test_plain_warning_uses_short_label():
    out = MinimalFormatter(color=False).format(make_record(logging.WARNING))
    assert out == " WARN hello"


def test_plain_error_label():
    out = MinimalFormatter(color=False).format(make_record(logging.ERROR, "boom"))
    assert out == "ERROR boom"


@pytest.mark.parametrize(
    "level", [5, logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR]
)
def test_colored_output_strips_to_plain(level):
    record = make_record(level, "msg %s")
    record.args = ("x",)
    colored = MinimalFormatter().format(record)
    plain = MinimalFormatter(color=False).format(record)
    assert colored != plain
    assert ANSI.sub("", colored) == plain


def test_enable_logging_reads_level_from_env(clean_root, monkeypatch):
    monkeypatch.setenv("ALPENGLOW_LOG", "info")
    handler = enable_logging()
    assert handler in clean_root.handlers
    assert handler.level == logging.INFO
    assert clean_root.level == logging.INFO
    assert isinstance(handler.formatter, MinimalFormatter)


def test_enable_logging_defaults_to_error(clean_root, monkeypatch):
    monkeypatch.delenv("ALPENGLOW_LOG", raising=False)
    handler = enable_logging()
    assert handler.level == logging.ERROR


def test_enable_logging_twice_keeps_one_handler(clean_root, monkeypatch):
    monkeypatch.setenv("ALPENGLOW_LOG", "debug")
    first = enable_logging()
    second = enable_logging_stderr()
    ours = [h for h in clean_root.handlers if h.name == HANDLER_NAME]
    assert ours == [second]
    assert first not in clean_root.handlers
    assert second.level == logging.DEBUG
    assert not isinstance(second.formatter, MinimalFormatter)