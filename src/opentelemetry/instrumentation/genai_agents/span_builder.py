# Copyright The OpenTelemetry Authors
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Child span lifecycle for GenAI agent operations.

:class:`SpanBuilder` never starts a root span. It attaches a child to the
span that is current in the OpenTelemetry context (a ``contextvars`` slot,
so scoped per thread and per asyncio task). While the wrapped work runs the
child becomes the current span, so nested helpers nest under it; the
previous span is restored when the work returns or raises.

When no tracer provider is configured or no span is current the work runs
untouched.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import (
    Any,
    Callable,
    ContextManager,
    Dict,
    Optional,
    Protocol,
    TypeVar,
)

from opentelemetry import trace
from opentelemetry.instrumentation.genai_agents.attributes import (
    GEN_AI_SPAN_OP,
)
from opentelemetry.instrumentation.genai_agents.config import (
    AgentsConfig,
    ConfigStore,
    get_config_store,
)
from opentelemetry.instrumentation.genai_agents.serializer import Serializer
from opentelemetry.instrumentation.genai_agents.version import __version__
from opentelemetry.semconv.attributes import (
    error_attributes as ErrorAttributes,
)
from opentelemetry.semconv.schemas import Schemas
from opentelemetry.trace import Span, SpanKind, Tracer, TracerProvider
from opentelemetry.trace.status import Status, StatusCode

logger = logging.getLogger(__name__)

T = TypeVar("T")


class OperationKind(Enum):
    INVOKE_AGENT = "invoke_agent"
    CHAT = "chat"
    EXECUTE_TOOL = "execute_tool"
    HANDOFF = "handoff"

    @property
    def op(self) -> str:
        """Wire-level operation name, e.g. ``gen_ai.chat``."""
        return OPERATIONS[self]

    @property
    def span_kind(self) -> SpanKind:
        # chat spans describe a call out to a model provider
        if self is OperationKind.CHAT:
            return SpanKind.CLIENT
        return SpanKind.INTERNAL


OPERATIONS: Dict[OperationKind, str] = {
    OperationKind.INVOKE_AGENT: "gen_ai.invoke_agent",
    OperationKind.CHAT: "gen_ai.chat",
    OperationKind.EXECUTE_TOOL: "gen_ai.execute_tool",
    OperationKind.HANDOFF: "gen_ai.handoff",
}


class TracingBackend(Protocol):
    """Capabilities :class:`SpanBuilder` needs from a tracing SDK."""

    def is_initialized(self) -> bool: ...

    def get_active_span(self) -> Optional[Span]: ...

    def start_child(
        self,
        parent: Span,
        op: str,
        description: str,
        kind: SpanKind = SpanKind.INTERNAL,
    ) -> Optional[Span]: ...

    def activate(self, span: Span) -> ContextManager[Any]: ...


class OpenTelemetryBackend:
    """:class:`TracingBackend` over the OpenTelemetry trace API.

    Args:
        tracer_provider: Provider to create spans with. The global provider
            is used when omitted.
    """

    def __init__(
        self, tracer_provider: Optional[TracerProvider] = None
    ) -> None:
        self._tracer_provider = tracer_provider
        self._tracer: Optional[Tracer] = None

    @property
    def tracer(self) -> Tracer:
        if self._tracer is None:
            self._tracer = trace.get_tracer(
                __name__,
                __version__,
                self._tracer_provider,
                schema_url=Schemas.V1_28_0.value,
            )
        return self._tracer

    def is_initialized(self) -> bool:
        provider = self._tracer_provider or trace.get_tracer_provider()
        return not isinstance(
            provider, (trace.ProxyTracerProvider, trace.NoOpTracerProvider)
        )

    def get_active_span(self) -> Optional[Span]:
        span = trace.get_current_span()
        if not span.get_span_context().is_valid:
            return None
        return span

    def start_child(
        self,
        parent: Span,
        op: str,
        description: str,
        kind: SpanKind = SpanKind.INTERNAL,
    ) -> Optional[Span]:
        return self.tracer.start_span(
            description,
            context=trace.set_span_in_context(parent),
            kind=kind,
            attributes={GEN_AI_SPAN_OP: op},
        )

    def activate(self, span: Span) -> ContextManager[Any]:
        return trace.use_span(
            span,
            end_on_exit=False,
            record_exception=False,
            set_status_on_exception=False,
        )


def value_present(value: Any) -> bool:
    """``None`` and empty sized values (``""``, ``[]``, ``{}``) are absent."""
    if value is None:
        return False
    try:
        return len(value) > 0
    except TypeError:
        return True


def set_span_attribute(span: Span, key: str, value: Any) -> None:
    """Set ``key`` on ``span`` unless ``value`` is absent."""
    if value_present(value):
        span.set_attribute(key, value)


class SpanBuilder:
    """Creates, attributes and finishes GenAI child spans.

    Args:
        backend: Tracing SDK adapter, :class:`OpenTelemetryBackend` by default.
        config_store: Configuration source, the process-wide store by default.
    """

    def __init__(
        self,
        backend: Optional[TracingBackend] = None,
        config_store: Optional[ConfigStore] = None,
    ) -> None:
        self.backend = backend or OpenTelemetryBackend()
        self._config_store = config_store
        self.serializer = Serializer(config_store)

    @property
    def config(self) -> AgentsConfig:
        return (self._config_store or get_config_store()).get()

    def is_available(self) -> bool:
        """True when tracing is initialized and a span is active."""
        return self._active_parent() is not None

    def build(
        self,
        operation: OperationKind,
        description: str,
        attributes: Optional[Dict[str, Any]],
        work: Callable[[Optional[Span]], T],
    ) -> T:
        """Run ``work`` inside a child span of the active span.

        ``work`` receives the live span, or ``None`` when tracing is
        unavailable or the span could not be started. Exceptions raised by
        ``work`` propagate unchanged after the span has been ended. Errors
        raised by the tracing SDK are never surfaced.

        Example::

            builder.build(
                OperationKind.CHAT,
                "chat claude-3-5-sonnet",
                {"gen_ai.request.model": "claude-3-5-sonnet"},
                lambda span: client.chat(messages),
            )
        """
        parent = self._active_parent()
        if parent is None:
            return work(None)

        # Only SDK failures are caught here; failures in work propagate.
        try:
            span = self.backend.start_child(
                parent, operation.op, description, operation.span_kind
            )
        except Exception as error:  # pylint: disable=broad-except
            self.log_span_error(error)
            span = None

        if span is None:
            return work(None)

        try:
            self.set_attributes(span, attributes or {})
            with self.backend.activate(span):
                return work(span)
        except Exception as error:
            self._record_error(span, error)
            raise
        finally:
            self._finish_span(span)

    def set_attributes(
        self, span: Optional[Span], attributes: Dict[str, Any]
    ) -> None:
        """Filter ``attributes`` and set every present value on ``span``.

        A failing redaction hook drops the whole map rather than letting
        unredacted values through.
        """
        if span is None:
            return
        try:
            filtered = self.serializer.filter(attributes)
        except Exception as error:  # pylint: disable=broad-except
            self.log_span_error(error)
            return
        for key, value in filtered.items():
            try:
                set_span_attribute(span, key, value)
            except Exception as error:  # pylint: disable=broad-except
                self.log_span_error(error)

    def _active_parent(self) -> Optional[Span]:
        try:
            if not self.backend.is_initialized():
                return None
            return self.backend.get_active_span()
        except Exception as error:  # pylint: disable=broad-except
            self.log_span_error(error)
            return None

    def _record_error(self, span: Span, error: BaseException) -> None:
        try:
            span.set_attribute(
                ErrorAttributes.ERROR_TYPE, type(error).__qualname__
            )
            span.record_exception(error)
            span.set_status(Status(StatusCode.ERROR, str(error)))
        except Exception as sdk_error:  # pylint: disable=broad-except
            self.log_span_error(sdk_error)

    def _finish_span(self, span: Span) -> None:
        try:
            span.end()
        except Exception as error:  # pylint: disable=broad-except
            self.log_span_error(error)

    def log_span_error(self, error: BaseException) -> None:
        """Log a tracing failure; silent unless ``debug`` is enabled."""
        if self.config.debug:
            logger.warning(
                "Span error: %s - %s", type(error).__name__, error
            )
