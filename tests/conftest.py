"""Pytest configuration and fixtures for the GenAI agent span helper tests."""

import contextlib
import os

import pytest

from opentelemetry import trace
from opentelemetry.instrumentation.genai_agents import (
    AgentInstrumentation,
    AgentsConfig,
    ConfigStore,
    OpenTelemetryBackend,
    SpanBuilder,
    reset_configuration,
)
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import (
    InMemorySpanExporter,
)
from opentelemetry.trace import SpanKind

# The global provider can only be set once per process.
_GLOBAL_EXPORTER = InMemorySpanExporter()
_GLOBAL_PROVIDER = TracerProvider()
_GLOBAL_PROVIDER.add_span_processor(SimpleSpanProcessor(_GLOBAL_EXPORTER))
trace.set_tracer_provider(_GLOBAL_PROVIDER)

_ENV_PREFIX = "OTEL_INSTRUMENTATION_GENAI_AGENTS_"


@pytest.fixture(scope="function")
def span_exporter():
    """Create an in-memory span exporter for testing."""
    exporter = InMemorySpanExporter()
    yield exporter
    exporter.clear()


@pytest.fixture(scope="function")
def tracer_provider(span_exporter):
    """Create a tracer provider with in-memory exporter."""
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    return provider


@pytest.fixture(scope="function")
def global_span_exporter():
    """Exporter attached to the global tracer provider."""
    _GLOBAL_EXPORTER.clear()
    yield _GLOBAL_EXPORTER
    _GLOBAL_EXPORTER.clear()


@pytest.fixture(scope="function")
def config_store():
    """A config store isolated from the process-wide one and the environment."""
    return ConfigStore(factory=AgentsConfig)


@pytest.fixture(scope="function")
def builder(tracer_provider, config_store):
    return SpanBuilder(OpenTelemetryBackend(tracer_provider), config_store)


@pytest.fixture(scope="function")
def instrumentation(builder):
    return AgentInstrumentation(builder)


@pytest.fixture(scope="function")
def parent_span(tracer_provider):
    """Make a parent span current for the duration of the test."""
    tracer = tracer_provider.get_tracer("tests")
    with tracer.start_as_current_span("test.transaction") as span:
        yield span


@pytest.fixture(autouse=True)
def environment():
    """Clear agent env vars and restore the process-wide config around tests."""
    saved = {
        key: value
        for key, value in os.environ.items()
        if key.startswith(_ENV_PREFIX)
    }
    for key in saved:
        del os.environ[key]
    reset_configuration()

    yield

    for key in [k for k in os.environ if k.startswith(_ENV_PREFIX)]:
        del os.environ[key]
    os.environ.update(saved)
    reset_configuration()


class FakeSpan:
    """Records what the builder does to a span."""

    def __init__(self, op, description, kind=SpanKind.INTERNAL):
        self.op = op
        self.description = description
        self.kind = kind
        self.data = {}
        self.status = None
        self.exceptions = []
        self.end_count = 0
        self.fail_on_set = set()
        self.fail_on_end = False

    def set_attribute(self, key, value):
        if key in self.fail_on_set:
            raise RuntimeError(f"cannot set {key}")
        self.data[key] = value

    def record_exception(self, exception):
        self.exceptions.append(exception)

    def set_status(self, status):
        self.status = status

    def end(self):
        self.end_count += 1
        if self.fail_on_end:
            raise RuntimeError("end failed")


class FakeBackend:
    """Tracing backend double with failure injection."""

    def __init__(self, initialized=True, active=True):
        self.initialized = initialized
        self.active_span = FakeSpan("http.server", "test.transaction") if active else None
        self.children = []
        self.fail_on_start = False
        self.fail_on_active = False
        self.return_none_on_start = False
        self.activations = []

    def is_initialized(self):
        return self.initialized

    def get_active_span(self):
        if self.fail_on_active:
            raise RuntimeError("no hub")
        return self.active_span

    def start_child(self, parent, op, description, kind=SpanKind.INTERNAL):
        if self.fail_on_start:
            raise RuntimeError("start failed")
        if self.return_none_on_start:
            return None
        span = FakeSpan(op, description, kind)
        self.children.append(span)
        return span

    def activate(self, span):
        self.activations.append(span)
        return contextlib.nullcontext(span)


@pytest.fixture(scope="function")
def fake_backend():
    return FakeBackend()


@pytest.fixture(scope="function")
def fake_builder(fake_backend, config_store):
    return SpanBuilder(fake_backend, config_store)
