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
LangChain instrumentation producing ``gen_ai.chat`` and
``gen_ai.execute_tool`` spans.

Wraps ``BaseChatModel.invoke`` and ``BaseTool.invoke`` from
``langchain-core``, so every chat model and tool built on them is covered.

Usage
-----

.. code:: python

    from langchain_anthropic import ChatAnthropic
    from opentelemetry.instrumentation.genai_agents.integrations import (
        LangChainInstrumentor,
    )

    LangChainInstrumentor().instrument()

    llm = ChatAnthropic(model="claude-3-5-sonnet-latest")
    llm.invoke("What is the capital of France?")
"""

import logging
from typing import Any, Callable, Collection, Optional

from wrapt import wrap_function_wrapper

from opentelemetry.instrumentation.genai_agents.instrumentation import (
    AgentInstrumentation,
)
from opentelemetry.instrumentation.genai_agents.span_builder import (
    OpenTelemetryBackend,
    OperationKind,
    SpanBuilder,
)
from opentelemetry.instrumentation.instrumentor import BaseInstrumentor
from opentelemetry.instrumentation.utils import (
    is_instrumentation_enabled,
    unwrap,
)

logger = logging.getLogger(__name__)

_instruments = ("langchain-core >= 0.1.0",)


def model_name(instance: Any) -> str:
    for attr in ("model_name", "model", "model_id"):
        value = getattr(instance, attr, None)
        if isinstance(value, str) and value:
            return value
    return "unknown"


def provider_name(instance: Any) -> Optional[str]:
    """Provider from the model's ``_llm_type``, e.g. ``anthropic-chat`` -> ``anthropic``."""
    llm_type = getattr(instance, "_llm_type", None)
    if not isinstance(llm_type, str) or not llm_type:
        return None
    return llm_type.split("-", 1)[0]


def message_dicts(messages: Any) -> Any:
    """Role/content dicts for a list of LangChain messages."""
    if isinstance(messages, str):
        return [{"role": "user", "content": messages}]
    if isinstance(messages, (list, tuple)):
        converted = []
        for message in messages:
            if hasattr(message, "type") and hasattr(message, "content"):
                converted.append(
                    {"role": message.type, "content": message.content}
                )
            else:
                converted.append(message)
        return converted
    to_messages = getattr(messages, "to_messages", None)
    if callable(to_messages):
        return message_dicts(to_messages())
    return messages


class _LangChainWrapper:
    def __init__(
        self,
        instrumentation: AgentInstrumentation,
        exception_logger: Optional[Callable[[Exception], None]] = None,
    ) -> None:
        self._instrumentation = instrumentation
        self._exception_logger = exception_logger

    def _log(self, error: Exception) -> None:
        logger.debug("langchain instrumentation error: %s", error, exc_info=True)
        if self._exception_logger:
            self._exception_logger(error)


class _ChatModelInvokeWrapper(_LangChainWrapper):
    """Wraps ``BaseChatModel.invoke`` in a chat span."""

    def __call__(self, wrapped: Any, instance: Any, args: Any, kwargs: Any) -> Any:
        if not is_instrumentation_enabled():
            return wrapped(*args, **kwargs)

        instrumentation = self._instrumentation
        try:
            if not instrumentation.builder.is_available():
                return wrapped(*args, **kwargs)
            model = model_name(instance)
            prompt = args[0] if args else kwargs.get("input")
            attributes = instrumentation.chat_attributes(
                model,
                message_dicts(prompt) if prompt is not None else None,
                provider_name(instance),
            )
        except Exception as error:  # pylint: disable=broad-except
            # If instrumentation setup fails, just run the original function
            self._log(error)
            return wrapped(*args, **kwargs)

        def run(span):
            message = wrapped(*args, **kwargs)
            try:
                instrumentation.capture_token_usage(
                    span, getattr(message, "usage_metadata", None)
                )
                instrumentation.capture_response_text(span, message)
            except Exception as error:  # pylint: disable=broad-except
                self._log(error)
            return message

        return instrumentation.builder.build(
            OperationKind.CHAT, f"chat {model}", attributes, run
        )


class _ToolInvokeWrapper(_LangChainWrapper):
    """Wraps ``BaseTool.invoke`` in a tool span."""

    def __call__(self, wrapped: Any, instance: Any, args: Any, kwargs: Any) -> Any:
        if not is_instrumentation_enabled():
            return wrapped(*args, **kwargs)

        instrumentation = self._instrumentation
        try:
            if not instrumentation.builder.is_available():
                return wrapped(*args, **kwargs)
            tool_name = getattr(instance, "name", None) or "unknown_tool"
            tool_input = args[0] if args else kwargs.get("input")
            attributes = instrumentation.tool_attributes(tool_name, tool_input)
        except Exception as error:  # pylint: disable=broad-except
            self._log(error)
            return wrapped(*args, **kwargs)

        def run(span):
            output = wrapped(*args, **kwargs)
            try:
                # ToolMessage outputs carry the payload in ``content``
                instrumentation.capture_tool_output(
                    span, getattr(output, "content", output)
                )
            except Exception as error:  # pylint: disable=broad-except
                self._log(error)
            return output

        return instrumentation.builder.build(
            OperationKind.EXECUTE_TOOL,
            f"execute_tool {tool_name}",
            attributes,
            run,
        )


class LangChainInstrumentor(BaseInstrumentor):
    """An instrumentor for LangChain chat models and tools."""

    def __init__(
        self, exception_logger: Optional[Callable[[Exception], None]] = None
    ) -> None:
        super().__init__()
        self._exception_logger = exception_logger

    def instrumentation_dependencies(self) -> Collection[str]:
        return _instruments

    def _instrument(self, **kwargs: Any) -> None:
        instrumentation = AgentInstrumentation(
            SpanBuilder(OpenTelemetryBackend(kwargs.get("tracer_provider")))
        )
        wrap_function_wrapper(
            module="langchain_core.language_models.chat_models",
            name="BaseChatModel.invoke",
            wrapper=_ChatModelInvokeWrapper(
                instrumentation, self._exception_logger
            ),
        )
        wrap_function_wrapper(
            module="langchain_core.tools",
            name="BaseTool.invoke",
            wrapper=_ToolInvokeWrapper(instrumentation, self._exception_logger),
        )

    def _uninstrument(self, **kwargs: Any) -> None:
        unwrap(
            "langchain_core.language_models.chat_models.BaseChatModel",
            "invoke",
        )
        unwrap("langchain_core.tools.BaseTool", "invoke")
