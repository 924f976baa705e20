"""Tests for the child span lifecycle."""

import importlib.metadata
import logging
import re
from unittest import mock

import pytest

from opentelemetry import trace
from opentelemetry.instrumentation.genai_agents import (
    OPERATIONS,
    OpenTelemetryBackend,
    OperationKind,
    SpanBuilder,
)
from opentelemetry.instrumentation.genai_agents import (
    span_builder as span_builder_module,
)
from opentelemetry.instrumentation.genai_agents.span_builder import (
    set_span_attribute,
    value_present,
)
from opentelemetry.semconv.schemas import Schemas
from opentelemetry.trace import SpanKind
from opentelemetry.trace.status import StatusCode


class TestOperationKind:
    def test_wire_names(self):
        assert OperationKind.INVOKE_AGENT.op == "gen_ai.invoke_agent"
        assert OperationKind.CHAT.op == "gen_ai.chat"
        assert OperationKind.EXECUTE_TOOL.op == "gen_ai.execute_tool"
        assert OperationKind.HANDOFF.op == "gen_ai.handoff"

    def test_every_kind_is_mapped(self):
        assert set(OPERATIONS) == set(OperationKind)

    def test_span_kinds(self):
        assert OperationKind.CHAT.span_kind is SpanKind.CLIENT
        assert OperationKind.INVOKE_AGENT.span_kind is SpanKind.INTERNAL
        assert OperationKind.EXECUTE_TOOL.span_kind is SpanKind.INTERNAL


class TestValuePresent:
    @pytest.mark.parametrize("value", [None, "", [], {}, ()])
    def test_absent(self, value):
        assert value_present(value) is False

    @pytest.mark.parametrize("value", [0, False, "x", [1], 0.0])
    def test_present(self, value):
        assert value_present(value) is True


class TestAvailability:
    def test_available_with_provider_and_parent(self, builder, parent_span):
        assert builder.is_available() is True

    def test_unavailable_without_parent(self, builder):
        assert builder.is_available() is False

    def test_unavailable_with_noop_provider(self, parent_span):
        builder = SpanBuilder(
            OpenTelemetryBackend(trace.NoOpTracerProvider())
        )
        assert builder.is_available() is False

    def test_backend_failure_means_unavailable(self, fake_backend, fake_builder):
        fake_backend.fail_on_active = True
        assert fake_builder.is_available() is False


class TestBuildWithOpenTelemetry:
    def test_creates_child_of_active_span(
        self, builder, parent_span, span_exporter
    ):
        result = builder.build(
            OperationKind.CHAT,
            "chat claude-3-5-sonnet",
            {"gen_ai.request.model": "claude-3-5-sonnet"},
            lambda span: "done",
        )

        assert result == "done"
        (span,) = span_exporter.get_finished_spans()
        assert span.name == "chat claude-3-5-sonnet"
        assert span.kind is SpanKind.CLIENT
        assert span.parent.span_id == parent_span.get_span_context().span_id
        assert span.attributes["gen_ai.span.op"] == "gen_ai.chat"
        assert span.attributes["gen_ai.request.model"] == "claude-3-5-sonnet"

    def test_work_receives_the_live_span(self, builder, parent_span):
        seen = []
        builder.build(
            OperationKind.HANDOFF, "handoff", {}, seen.append
        )
        assert seen[0] is not None
        assert seen[0].is_recording() is False  # ended after work returned

    def test_child_is_current_during_work(self, builder, parent_span):
        def work(span):
            return trace.get_current_span()

        current = builder.build(OperationKind.EXECUTE_TOOL, "tool", {}, work)
        assert current is not parent_span
        assert trace.get_current_span() is parent_span

    def test_nested_builds_nest(self, builder, parent_span, span_exporter):
        builder.build(
            OperationKind.INVOKE_AGENT,
            "invoke_agent Outer",
            {},
            lambda _: builder.build(
                OperationKind.CHAT, "chat inner", {}, lambda _: None
            ),
        )
        spans = {s.name: s for s in span_exporter.get_finished_spans()}
        outer = spans["invoke_agent Outer"]
        inner = spans["chat inner"]
        assert inner.parent.span_id == outer.context.span_id

    def test_absent_values_are_not_set(
        self, builder, parent_span, span_exporter
    ):
        builder.build(
            OperationKind.CHAT,
            "chat m",
            {"a": None, "b": "", "c": [], "d": 0, "e": False},
            lambda _: None,
        )
        (span,) = span_exporter.get_finished_spans()
        assert "a" not in span.attributes
        assert "b" not in span.attributes
        assert "c" not in span.attributes
        assert span.attributes["d"] == 0
        assert span.attributes["e"] is False

    def test_error_is_recorded_and_reraised(
        self, builder, parent_span, span_exporter
    ):
        def work(span):
            raise ValueError("API error")

        with pytest.raises(ValueError, match="API error"):
            builder.build(OperationKind.CHAT, "chat m", {}, work)

        (span,) = span_exporter.get_finished_spans()
        assert span.status.status_code is StatusCode.ERROR
        assert span.attributes["error.type"] == "ValueError"
        assert span.events[0].name == "exception"
        assert trace.get_current_span() is parent_span

    def test_without_parent_work_runs_without_span(
        self, builder, span_exporter
    ):
        seen = []
        assert builder.build(
            OperationKind.CHAT, "chat m", {}, lambda span: seen.append(span) or 1
        ) == 1
        assert seen == [None]
        assert span_exporter.get_finished_spans() == ()

    def test_filter_sees_attributes(
        self, builder, config_store, parent_span, span_exporter
    ):
        def redact(data):
            data["gen_ai.request.messages"] = "[FILTERED]"
            return data

        config_store.configure(data_filter=redact)
        builder.build(
            OperationKind.CHAT,
            "chat m",
            {"gen_ai.request.messages": "secret"},
            lambda _: None,
        )
        (span,) = span_exporter.get_finished_spans()
        assert span.attributes["gen_ai.request.messages"] == "[FILTERED]"


class TestBuildFailureIsolation:
    def test_span_ends_exactly_once(self, fake_backend, fake_builder):
        fake_builder.build(OperationKind.CHAT, "chat m", {}, lambda _: None)
        (span,) = fake_backend.children
        assert span.end_count == 1

    def test_span_ends_once_when_work_raises(self, fake_backend, fake_builder):
        with pytest.raises(KeyError):
            fake_builder.build(
                OperationKind.CHAT, "chat m", {}, lambda _: {}["missing"]
            )
        (span,) = fake_backend.children
        assert span.end_count == 1
        assert isinstance(span.exceptions[0], KeyError)

    def test_start_failure_still_runs_work(self, fake_backend, fake_builder):
        fake_backend.fail_on_start = True
        seen = []
        result = fake_builder.build(
            OperationKind.CHAT, "chat m", {}, lambda span: seen.append(span) or "ok"
        )
        assert result == "ok"
        assert seen == [None]

    def test_backend_returning_no_span_runs_work(self, fake_backend, fake_builder):
        fake_backend.return_none_on_start = True
        assert fake_builder.build(
            OperationKind.CHAT, "chat m", {}, lambda span: span
        ) is None

    def test_end_failure_is_swallowed(self, fake_backend, fake_builder):
        def work(span):
            span.fail_on_end = True
            return "result"

        assert (
            fake_builder.build(OperationKind.CHAT, "chat m", {}, work)
            == "result"
        )

    def test_attribute_failure_skips_only_that_attribute(
        self, fake_backend, fake_builder
    ):
        def work(span):
            span.fail_on_set.add("bad")
            fake_builder.set_attributes(span, {"bad": "x", "good": "y"})

        fake_builder.build(OperationKind.CHAT, "chat m", {}, work)
        (span,) = fake_backend.children
        assert span.data == {"good": "y"}

    def test_failing_filter_drops_attributes_but_runs_work(
        self, fake_backend, fake_builder, config_store
    ):
        def broken(data):
            raise RuntimeError("filter bug")

        config_store.configure(data_filter=broken)
        result = fake_builder.build(
            OperationKind.CHAT,
            "chat m",
            {"gen_ai.request.messages": "secret"},
            lambda _: "ok",
        )

        assert result == "ok"
        (span,) = fake_backend.children
        assert span.data == {}
        assert span.end_count == 1

    def test_work_error_propagates_when_recording_fails(
        self, fake_backend, fake_builder
    ):
        def work(span):
            span.fail_on_set.add("error.type")
            raise ConnectionError("down")

        with pytest.raises(ConnectionError):
            fake_builder.build(OperationKind.CHAT, "chat m", {}, work)
        (span,) = fake_backend.children
        assert span.end_count == 1

    def test_child_is_activated(self, fake_backend, fake_builder):
        fake_builder.build(OperationKind.HANDOFF, "handoff", {}, lambda _: None)
        assert fake_backend.activations == fake_backend.children

    def test_not_initialized_skips_spans(self, fake_backend, fake_builder):
        fake_backend.initialized = False
        assert fake_builder.build(
            OperationKind.CHAT, "chat m", {}, lambda span: span
        ) is None
        assert fake_backend.children == []


class TestDebugLogging:
    def test_sdk_errors_are_silent_by_default(
        self, fake_backend, fake_builder, caplog
    ):
        fake_backend.fail_on_start = True
        with caplog.at_level(logging.DEBUG, logger=span_builder_module.__name__):
            fake_builder.build(OperationKind.CHAT, "chat m", {}, lambda _: None)
        assert "Span error" not in caplog.text

    def test_sdk_errors_are_logged_in_debug_mode(
        self, fake_backend, fake_builder, config_store, caplog
    ):
        config_store.configure(debug=True)
        fake_backend.fail_on_start = True
        with caplog.at_level(logging.WARNING, logger=span_builder_module.__name__):
            fake_builder.build(OperationKind.CHAT, "chat m", {}, lambda _: None)
        assert "Span error: RuntimeError - start failed" in caplog.text


class TestSetSpanAttribute:
    @pytest.mark.parametrize("value", [0, False, "x", [1]])
    def test_present_values_are_set(self, value):
        span = mock.Mock()
        set_span_attribute(span, "gen_ai.key", value)
        span.set_attribute.assert_called_once_with("gen_ai.key", value)

    @pytest.mark.parametrize("value", [None, "", [], {}])
    def test_absent_values_are_skipped(self, value):
        span = mock.Mock()
        set_span_attribute(span, "gen_ai.key", value)
        span.set_attribute.assert_not_called()


class TestSchema:
    def test_child_spans_carry_semconv_schema(
        self, builder, parent_span, span_exporter
    ):
        builder.build(OperationKind.CHAT, "chat m", {}, lambda _: None)
        (span,) = span_exporter.get_finished_spans()
        assert span.instrumentation_scope.schema_url == Schemas.V1_28_0.value

    def test_semantic_conventions_distribution_is_declared(self):
        requirements = importlib.metadata.requires(
            "opentelemetry-instrumentation-genai-agents"
        ) or []
        names = {
            re.split(r"[\s<>=!~;\[]", requirement, maxsplit=1)[0].lower()
            for requirement in requirements
        }
        assert "opentelemetry-semantic-conventions" in names
        assert importlib.metadata.version("opentelemetry-semantic-conventions")
