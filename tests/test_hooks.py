from __future__ import annotations

import logging

import pytest
from models import FILTERS, Employee, EmployeeFilter

from query_filter import (
    CompilationEvent,
    CompilationObserver,
    CompilerSettings,
    LoggingObserver,
    Operator,
    QueryFilterCompiler,
    RecordingObserver,
)


def test_observers_satisfy_protocol():
    assert isinstance(RecordingObserver(), CompilationObserver)
    assert isinstance(LoggingObserver(), CompilationObserver)


def test_recording_observer_clear():
    observer = RecordingObserver()
    observer(CompilationEvent("field.skipped", "F", "E", {"field": "x"}))

    assert observer.names() == ["field.skipped"]
    observer.clear()
    assert observer.events == []


def test_logging_observer_writes_events(caplog, schema):
    compiler = QueryFilterCompiler(
        registry=FILTERS, schema=schema, observers=[LoggingObserver()]
    )

    with caplog.at_level(logging.DEBUG, logger="query_filter.events"):
        compiler.compile(EmployeeFilter(department_name="Ops"), Employee)

    messages = [
        r.getMessage() for r in caplog.records if r.name == "query_filter.events"
    ]
    assert any(m.startswith("join.created filter=EmployeeFilter") for m in messages)
    assert any(m.startswith("compilation.completed") for m in messages)


def test_logging_observer_respects_level(caplog):
    observer = LoggingObserver(level=logging.DEBUG)

    with caplog.at_level(logging.INFO, logger="query_filter.events"):
        observer(CompilationEvent("field.skipped", "F", "E"))

    assert not [r for r in caplog.records if r.name == "query_filter.events"]


def test_multiple_observers_all_notified(schema):
    first, second = RecordingObserver(), RecordingObserver()
    compiler = QueryFilterCompiler(
        registry=FILTERS, schema=schema, observers=[first, second]
    )

    compiler.compile(EmployeeFilter(name="x"), Employee)

    assert first.names() == second.names()
    assert first.names()[-1] == "compilation.completed"


# -- settings ------------------------------------------------------------------


def test_settings_defaults():
    settings = CompilerSettings()
    assert settings.path_separator == "_"
    assert settings.default_operator is Operator.EQUAL
    assert settings.like_wildcard == "%"


def test_settings_overrides_copy():
    base = CompilerSettings()
    custom = base.with_overrides(path_separator="__")

    assert custom.path_separator == "__"
    assert base.path_separator == "_"


def test_empty_separator_is_rejected():
    with pytest.raises(ValueError):
        CompilerSettings(path_separator="")
