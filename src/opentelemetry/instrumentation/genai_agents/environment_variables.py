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

OTEL_INSTRUMENTATION_GENAI_AGENTS_DEFAULT_SYSTEM = (
    "OTEL_INSTRUMENTATION_GENAI_AGENTS_DEFAULT_SYSTEM"
)
"""
.. envvar:: OTEL_INSTRUMENTATION_GENAI_AGENTS_DEFAULT_SYSTEM

Provider name recorded as ``gen_ai.system`` when a span helper is called
without an explicit ``system`` override. Defaults to ``anthropic``.
"""

OTEL_INSTRUMENTATION_GENAI_AGENTS_MAX_STRING_LENGTH = (
    "OTEL_INSTRUMENTATION_GENAI_AGENTS_MAX_STRING_LENGTH"
)
"""
.. envvar:: OTEL_INSTRUMENTATION_GENAI_AGENTS_MAX_STRING_LENGTH

Maximum number of characters kept from a serialized attribute value before
it is truncated and suffixed with ``...``. Must be a positive integer.
Defaults to ``1000``.
"""

OTEL_INSTRUMENTATION_GENAI_AGENTS_DEBUG = (
    "OTEL_INSTRUMENTATION_GENAI_AGENTS_DEBUG"
)
"""
.. envvar:: OTEL_INSTRUMENTATION_GENAI_AGENTS_DEBUG

When set to a truthy value (``true``, ``1``, ``yes``, ``on``) failures raised
by the tracing SDK while starting or ending spans are logged as warnings.
They are silently dropped otherwise.
"""

OTEL_INSTRUMENTATION_GENAI_AGENTS_AUTO_INSTRUMENT_LITELLM = (
    "OTEL_INSTRUMENTATION_GENAI_AGENTS_AUTO_INSTRUMENT_LITELLM"
)
"""
.. envvar:: OTEL_INSTRUMENTATION_GENAI_AGENTS_AUTO_INSTRUMENT_LITELLM

Truthy values enable :class:`LiteLLMInstrumentor` whenever
:func:`~opentelemetry.instrumentation.genai_agents.configure` runs and
``litellm`` is importable.
"""

OTEL_INSTRUMENTATION_GENAI_AGENTS_AUTO_INSTRUMENT_LANGCHAIN = (
    "OTEL_INSTRUMENTATION_GENAI_AGENTS_AUTO_INSTRUMENT_LANGCHAIN"
)
"""
.. envvar:: OTEL_INSTRUMENTATION_GENAI_AGENTS_AUTO_INSTRUMENT_LANGCHAIN

Truthy values enable :class:`LangChainInstrumentor` whenever
:func:`~opentelemetry.instrumentation.genai_agents.configure` runs and
``langchain_core`` is importable.
"""
