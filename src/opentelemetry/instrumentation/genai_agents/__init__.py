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
GenAI span helpers for AI agent workflows: agent invocations, chat calls,
tool executions and stage handoffs.

Spans are created as children of the active OpenTelemetry span. Without a
configured tracer provider or an active span the helpers simply run the
wrapped work.

Usage
-----

.. code:: python

    from opentelemetry.instrumentation import genai_agents

    genai_agents.configure(default_system="anthropic", max_string_length=2000)

    with tracer.start_as_current_span("POST /chat"):
        response = genai_agents.with_chat_span(
            lambda: client.messages.create(...),
            model="claude-3-5-sonnet",
        )

API
---
"""

from opentelemetry.instrumentation.genai_agents.capabilities import (
    TextContent,
    TokenUsageReporter,
)
from opentelemetry.instrumentation.genai_agents.config import (
    AgentsConfig,
    ConfigStore,
    ConfigurationError,
    configure,
    get_configuration,
    reset_configuration,
)
from opentelemetry.instrumentation.genai_agents.instrumentation import (
    AgentInstrumentation,
    get_instrumentation,
    with_agent_span,
    with_chat_span,
    with_handoff_span,
    with_tool_span,
)
from opentelemetry.instrumentation.genai_agents.serializer import (
    Serializer,
    filter_attributes,
    serialize,
    truncate,
)
from opentelemetry.instrumentation.genai_agents.span_builder import (
    OPERATIONS,
    OpenTelemetryBackend,
    OperationKind,
    SpanBuilder,
    TracingBackend,
)
from opentelemetry.instrumentation.genai_agents.version import __version__

__all__ = [
    "AgentInstrumentation",
    "AgentsConfig",
    "ConfigStore",
    "ConfigurationError",
    "OPERATIONS",
    "OpenTelemetryBackend",
    "OperationKind",
    "Serializer",
    "SpanBuilder",
    "TextContent",
    "TokenUsageReporter",
    "TracingBackend",
    "__version__",
    "configure",
    "filter_attributes",
    "get_configuration",
    "get_instrumentation",
    "reset_configuration",
    "serialize",
    "truncate",
    "with_agent_span",
    "with_chat_span",
    "with_handoff_span",
    "with_tool_span",
]
