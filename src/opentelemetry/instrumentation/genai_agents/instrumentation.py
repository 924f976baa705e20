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
Span helpers for agent invocations, chat calls, tool executions and handoffs.

Every helper degrades to a plain call of the wrapped work when no tracer
provider is configured or no span is active.

Usage
-----

.. code:: python

    from opentelemetry.instrumentation.genai_agents import AgentInstrumentation

    class CustomerServiceAgent:
        def __init__(self, llm_client):
            self.llm_client = llm_client
            self.instrumentation = AgentInstrumentation()

        def process(self, message):
            return self.instrumentation.with_agent_span(
                lambda: self._chat(message),
                agent_name="CustomerServiceAgent",
                model="claude-3-5-sonnet",
            )

        def _chat(self, message):
            return self.instrumentation.with_chat_span(
                lambda: self.llm_client.chat(message),
                model="claude-3-5-sonnet",
                messages=[{"role": "user", "content": message}],
            )
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional, TypeVar

import wrapt

from opentelemetry.instrumentation.genai_agents.attributes import (
    GEN_AI_AGENT_NAME,
    GEN_AI_HANDOFF_FROM,
    GEN_AI_HANDOFF_TO,
    GEN_AI_OPERATION_NAME,
    GEN_AI_REQUEST_MESSAGES,
    GEN_AI_REQUEST_MODEL,
    GEN_AI_RESPONSE_TEXT,
    GEN_AI_SYSTEM,
    GEN_AI_TOOL_INPUT,
    GEN_AI_TOOL_NAME,
    GEN_AI_TOOL_OUTPUT,
    GEN_AI_USAGE_INPUT_TOKENS,
    GEN_AI_USAGE_OUTPUT_TOKENS,
)
from opentelemetry.instrumentation.genai_agents.capabilities import (
    extract_text_content,
    extract_token_usage,
)
from opentelemetry.instrumentation.genai_agents.config import ConfigStore
from opentelemetry.instrumentation.genai_agents.serializer import (
    gen_ai_json_dumps,
)
from opentelemetry.instrumentation.genai_agents.span_builder import (
    OperationKind,
    SpanBuilder,
)
from opentelemetry.trace import Span

T = TypeVar("T")


class AgentInstrumentation:
    """GenAI span helpers, composed into host classes by delegation.

    Args:
        builder: Span builder to use. A default :class:`SpanBuilder` bound to
            ``config_store`` is created when omitted.
        config_store: Configuration source, the process-wide store by default.
    """

    def __init__(
        self,
        builder: Optional[SpanBuilder] = None,
        config_store: Optional[ConfigStore] = None,
    ) -> None:
        self.builder = builder or SpanBuilder(config_store=config_store)

    @property
    def serializer(self):
        return self.builder.serializer

    def system_name(self, override: Optional[str] = None) -> str:
        """Return ``override`` or the configured default provider name."""
        if override is not None:
            return override
        return self.builder.config.default_system

    def chat_attributes(
        self,
        model: str,
        messages: Optional[Any] = None,
        system: Optional[str] = None,
    ) -> Dict[str, Any]:
        attributes: Dict[str, Any] = {
            GEN_AI_OPERATION_NAME: OperationKind.CHAT.value,
            GEN_AI_SYSTEM: self.system_name(system),
            GEN_AI_REQUEST_MODEL: model,
        }
        if messages is not None:
            attributes[GEN_AI_REQUEST_MESSAGES] = self._serialize(messages)
        return attributes

    def tool_attributes(
        self,
        tool_name: str,
        tool_input: Optional[Any] = None,
        system: Optional[str] = None,
    ) -> Dict[str, Any]:
        attributes: Dict[str, Any] = {
            GEN_AI_OPERATION_NAME: OperationKind.EXECUTE_TOOL.value,
            GEN_AI_SYSTEM: self.system_name(system),
            GEN_AI_TOOL_NAME: tool_name,
        }
        if tool_input is not None:
            attributes[GEN_AI_TOOL_INPUT] = self._serialize(tool_input)
        return attributes

    def with_agent_span(
        self,
        work: Callable[[], T],
        *,
        agent_name: str,
        model: str,
        system: Optional[str] = None,
    ) -> T:
        """Wrap an agent invocation in a ``gen_ai.invoke_agent`` span.

        Token usage is recorded when the result exposes ``input_tokens`` and
        ``output_tokens``.
        """
        if not self.builder.is_available():
            return work()

        attributes = {
            GEN_AI_OPERATION_NAME: OperationKind.INVOKE_AGENT.value,
            GEN_AI_SYSTEM: self.system_name(system),
            GEN_AI_REQUEST_MODEL: model,
            GEN_AI_AGENT_NAME: agent_name,
        }

        def run(span: Optional[Span]) -> T:
            result = work()
            self._capture(span, result, self.capture_token_usage)
            return result

        return self.builder.build(
            OperationKind.INVOKE_AGENT,
            f"invoke_agent {agent_name}",
            attributes,
            run,
        )

    def with_chat_span(
        self,
        work: Callable[[], T],
        *,
        model: str,
        messages: Optional[Any] = None,
        system: Optional[str] = None,
    ) -> T:
        """Wrap a single LLM call in a ``gen_ai.chat`` span.

        Token usage and the response text are recorded when the result
        exposes them.
        """
        if not self.builder.is_available():
            return work()

        attributes = self.chat_attributes(model, messages, system)

        def run(span: Optional[Span]) -> T:
            result = work()
            self._capture(
                span,
                result,
                self.capture_token_usage,
                self.capture_response_text,
            )
            return result

        return self.builder.build(
            OperationKind.CHAT, f"chat {model}", attributes, run
        )

    def with_tool_span(
        self,
        work: Callable[[], T],
        *,
        tool_name: str,
        tool_input: Optional[Any] = None,
        system: Optional[str] = None,
    ) -> T:
        """Wrap a tool execution in a ``gen_ai.execute_tool`` span.

        The serialized result is recorded as the tool output.
        """
        if not self.builder.is_available():
            return work()

        attributes = self.tool_attributes(tool_name, tool_input, system)

        def run(span: Optional[Span]) -> T:
            result = work()
            self._capture(span, result, self.capture_tool_output)
            return result

        return self.builder.build(
            OperationKind.EXECUTE_TOOL,
            f"execute_tool {tool_name}",
            attributes,
            run,
        )

    def with_handoff_span(
        self,
        work: Callable[[], T],
        *,
        from_stage: str,
        to_stage: str,
        system: Optional[str] = None,
    ) -> T:
        """Wrap a stage transition or agent handoff in a ``gen_ai.handoff`` span."""
        if not self.builder.is_available():
            return work()

        attributes = {
            GEN_AI_OPERATION_NAME: OperationKind.HANDOFF.value,
            GEN_AI_SYSTEM: self.system_name(system),
            GEN_AI_HANDOFF_FROM: from_stage,
            GEN_AI_HANDOFF_TO: to_stage,
        }
        return self.builder.build(
            OperationKind.HANDOFF,
            f"handoff from {from_stage} to {to_stage}",
            attributes,
            lambda _span: work(),
        )

    # Decorator forms

    def agent_span(
        self, *, agent_name: str, model: str, system: Optional[str] = None
    ):
        @wrapt.decorator
        def wrapper(wrapped, instance, args, kwargs):
            return self.with_agent_span(
                lambda: wrapped(*args, **kwargs),
                agent_name=agent_name,
                model=model,
                system=system,
            )

        return wrapper

    def chat_span(self, *, model: str, system: Optional[str] = None):
        """Decorate an LLM call; a ``messages`` keyword argument is recorded."""

        @wrapt.decorator
        def wrapper(wrapped, instance, args, kwargs):
            return self.with_chat_span(
                lambda: wrapped(*args, **kwargs),
                model=model,
                messages=kwargs.get("messages"),
                system=system,
            )

        return wrapper

    def tool_span(
        self, tool_name: Optional[str] = None, *, system: Optional[str] = None
    ):
        """Decorate a tool function.

        The tool name defaults to the function name. Keyword arguments, or
        positional ones when there are none, are recorded as the tool input.
        """

        @wrapt.decorator
        def wrapper(wrapped, instance, args, kwargs):
            if kwargs:
                tool_input: Optional[Any] = dict(kwargs)
            else:
                tool_input = list(args) or None
            return self.with_tool_span(
                lambda: wrapped(*args, **kwargs),
                tool_name=tool_name or wrapped.__name__,
                tool_input=tool_input,
                system=system,
            )

        return wrapper

    def handoff_span(
        self, *, from_stage: str, to_stage: str, system: Optional[str] = None
    ):
        @wrapt.decorator
        def wrapper(wrapped, instance, args, kwargs):
            return self.with_handoff_span(
                lambda: wrapped(*args, **kwargs),
                from_stage=from_stage,
                to_stage=to_stage,
                system=system,
            )

        return wrapper

    # Result capture

    def record_token_usage(
        self,
        span: Optional[Span],
        input_tokens: Optional[Any],
        output_tokens: Optional[Any],
    ) -> None:
        if span is None:
            return
        self.builder.set_attributes(
            span,
            {
                GEN_AI_USAGE_INPUT_TOKENS: input_tokens,
                GEN_AI_USAGE_OUTPUT_TOKENS: output_tokens,
            },
        )

    def record_response_text(
        self, span: Optional[Span], content: Optional[Any]
    ) -> None:
        if span is None or not content:
            return
        # consumers expect the response text as a JSON array
        self.builder.set_attributes(
            span, {GEN_AI_RESPONSE_TEXT: gen_ai_json_dumps([content])}
        )

    def capture_token_usage(self, span: Optional[Span], result: Any) -> None:
        if span is None or result is None:
            return
        self.record_token_usage(span, *extract_token_usage(result))

    def capture_response_text(
        self, span: Optional[Span], result: Any
    ) -> None:
        if span is None:
            return
        self.record_response_text(span, extract_text_content(result))

    def capture_tool_output(self, span: Optional[Span], result: Any) -> None:
        if span is None or result is None:
            return
        self.builder.set_attributes(
            span, {GEN_AI_TOOL_OUTPUT: self._serialize(result)}
        )

    def _serialize(self, value: Any) -> Optional[str]:
        try:
            return self.serializer.serialize(value)
        except Exception as error:  # pylint: disable=broad-except
            # the attribute is dropped, the wrapped work is unaffected
            self.builder.log_span_error(error)
            return None

    def _capture(
        self,
        span: Optional[Span],
        result: Any,
        *captures: Callable[[Optional[Span], Any], None],
    ) -> None:
        for capture in captures:
            try:
                capture(span, result)
            except Exception as error:  # pylint: disable=broad-except
                self.builder.log_span_error(error)


_default_instrumentation = AgentInstrumentation()


def get_instrumentation() -> AgentInstrumentation:
    return _default_instrumentation


def with_agent_span(
    work: Callable[[], T],
    *,
    agent_name: str,
    model: str,
    system: Optional[str] = None,
) -> T:
    return _default_instrumentation.with_agent_span(
        work, agent_name=agent_name, model=model, system=system
    )


def with_chat_span(
    work: Callable[[], T],
    *,
    model: str,
    messages: Optional[Any] = None,
    system: Optional[str] = None,
) -> T:
    return _default_instrumentation.with_chat_span(
        work, model=model, messages=messages, system=system
    )


def with_tool_span(
    work: Callable[[], T],
    *,
    tool_name: str,
    tool_input: Optional[Any] = None,
    system: Optional[str] = None,
) -> T:
    return _default_instrumentation.with_tool_span(
        work, tool_name=tool_name, tool_input=tool_input, system=system
    )


def with_handoff_span(
    work: Callable[[], T],
    *,
    from_stage: str,
    to_stage: str,
    system: Optional[str] = None,
) -> T:
    return _default_instrumentation.with_handoff_span(
        work, from_stage=from_stage, to_stage=to_stage, system=system
    )
