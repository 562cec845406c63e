"""Tests for telemetry spans and @traced."""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

import pytest
from pydantic import BaseModel

from policykit.infrastructure.repository import SqlRepository, UnitOfWork
from policykit.services.operation import ServiceOperation
from policykit.services.result import ServiceResult
from policykit.services.telemetry import (
    Span,
    disable_telemetry,
    enable_telemetry,
    get_current_span,
    trace_span,
    traced,
)


@pytest.fixture(autouse=True)
def _reset_telemetry() -> Generator[None]:
    yield
    disable_telemetry()


class Note(BaseModel):
    text: str


class AddNote(ServiceOperation[Note]):
    op = "add_note"
    input_model = Note

    def execute(self, uow: UnitOfWork, inputs: Note) -> dict[str, Any]:
        with trace_span("write") as span:
            entity = uow.create("note", {"text": inputs.text})
            if span is not None:
                span.annotate("id", entity.id)
        return {"id": entity.id}


class TestSpan:
    def test_duration_zero_until_ended(self) -> None:
        span = Span(name="s")
        assert span.duration_ms == 0.0
        span.end()
        assert span.duration_ms >= 0.0

    def test_to_dict_nests_children(self) -> None:
        parent = Span(name="parent")
        child = Span(name="child", parent=parent)
        parent.children.append(child)
        child.annotate("k", "v")
        child.end()
        parent.end()
        data = parent.to_dict()
        assert data["name"] == "parent"
        assert data["children"][0]["annotations"] == {"k": "v"}


class TestTraced:
    def test_disabled_leaves_meta_empty(self, repository: SqlRepository) -> None:
        result = AddNote(repository).perform({"text": "x"})
        assert result.meta is None
        assert get_current_span() is None

    def test_enabled_injects_span_tree(self, repository: SqlRepository) -> None:
        enable_telemetry()
        result = AddNote(repository).perform({"text": "x"})
        telemetry = result.meta["telemetry"]  # type: ignore[index]
        assert telemetry["name"] == "ServiceOperation.perform"
        names = [child["name"] for child in telemetry["children"]]
        assert names == ["validate", "execute"]
        write = telemetry["children"][1]["children"][0]
        assert write["name"] == "write"
        assert write["annotations"] == {"id": result.data["id"]}

    def test_nested_traced_reports_only_outermost(self) -> None:
        @traced
        def inner() -> ServiceResult:
            return ServiceResult.success("inner")

        @traced
        def outer() -> ServiceResult:
            assert inner().meta is None
            return ServiceResult.success("outer")

        enable_telemetry()
        result = outer()
        assert result.meta is not None
        assert result.meta["telemetry"]["children"][0]["name"].endswith("inner")

    def test_exceptions_propagate(self) -> None:
        @traced
        def broken() -> ServiceResult:
            raise RuntimeError("boom")

        enable_telemetry()
        with pytest.raises(RuntimeError):
            broken()
        assert get_current_span() is None

    def test_trace_span_without_parent_yields_none(self) -> None:
        enable_telemetry()
        with trace_span("orphan") as span:
            assert span is None
