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
`litellm`_ instrumentation producing ``gen_ai.chat`` spans.

.. _litellm: https://pypi.org/project/litellm/

Usage
-----

.. code:: python

    import litellm
    from opentelemetry.instrumentation.genai_agents.integrations import (
        LiteLLMInstrumentor,
    )

    LiteLLMInstrumentor().instrument()

    response = litellm.completion(
        model="anthropic/claude-3-5-sonnet",
        messages=[{"role": "user", "content": "Hello"}],
    )
"""

import logging
import sys
from typing import Any, Callable, Collection, Optional, Tuple

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

_instruments = ("litellm >= 1.0.0",)


def provider_from_model(model: Optional[str]) -> Optional[str]:
    """``"openai/gpt-4o"`` -> ``"openai"``; unprefixed models give ``None``."""
    if not model or "/" not in model:
        return None
    return model.split("/", 1)[0] or None


def extract_usage(response: Any) -> Tuple[Optional[int], Optional[int]]:
    usage = getattr(response, "usage", None)
    if usage is None:
        return None, None
    return (
        getattr(usage, "prompt_tokens", None),
        getattr(usage, "completion_tokens", None),
    )


def extract_content(response: Any) -> Optional[str]:
    choices = getattr(response, "choices", None)
    if not choices:
        return None
    message = getattr(choices[0], "message", None)
    return getattr(message, "content", None)


class _CompletionWrapper:
    """Wraps ``litellm.completion`` in a chat span."""

    def __init__(
        self,
        instrumentation: AgentInstrumentation,
        exception_logger: Optional[Callable[[Exception], None]] = None,
    ) -> None:
        self._instrumentation = instrumentation
        self._exception_logger = exception_logger

    def __call__(self, wrapped: Any, instance: Any, args: Any, kwargs: Any) -> Any:
        if not is_instrumentation_enabled():
            return wrapped(*args, **kwargs)

        instrumentation = self._instrumentation
        try:
            if not instrumentation.builder.is_available():
                return wrapped(*args, **kwargs)
            model = kwargs.get("model") or (args[0] if args else None) or "unknown"
            messages = kwargs.get("messages")
            if messages is None and len(args) > 1:
                messages = args[1]
            system = kwargs.get("custom_llm_provider") or provider_from_model(model)
            attributes = instrumentation.chat_attributes(model, messages, system)
        except Exception as error:  # pylint: disable=broad-except
            # If instrumentation setup fails, just run the original function
            self._log(error)
            return wrapped(*args, **kwargs)

        def run(span):
            response = wrapped(*args, **kwargs)
            try:
                instrumentation.record_token_usage(span, *extract_usage(response))
                instrumentation.record_response_text(
                    span, extract_content(response)
                )
            except Exception as error:  # pylint: disable=broad-except
                self._log(error)
            return response

        return instrumentation.builder.build(
            OperationKind.CHAT, f"chat {model}", attributes, run
        )

    def _log(self, error: Exception) -> None:
        logger.debug("litellm instrumentation error: %s", error, exc_info=True)
        if self._exception_logger:
            self._exception_logger(error)


class LiteLLMInstrumentor(BaseInstrumentor):
    """An instrumentor for ``litellm.completion``."""

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
            module="litellm",
            name="completion",
            wrapper=_CompletionWrapper(instrumentation, self._exception_logger),
        )

    def _uninstrument(self, **kwargs: Any) -> None:
        # wrap_function_wrapper imported litellm if anything was wrapped
        litellm = sys.modules.get("litellm")
        if litellm is not None:
            unwrap(litellm, "completion")
