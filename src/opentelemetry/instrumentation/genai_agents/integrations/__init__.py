"""
Auto-instrumentation for third-party LLM libraries.

Enabled through :func:`~opentelemetry.instrumentation.genai_agents.configure`
(``auto_instrument_litellm`` / ``auto_instrument_langchain``) or by calling
``instrument()`` on the instrumentors directly.
"""

from opentelemetry.instrumentation.genai_agents.integrations.langchain_instrumentor import (
    LangChainInstrumentor,
)
from opentelemetry.instrumentation.genai_agents.integrations.litellm_instrumentor import (
    LiteLLMInstrumentor,
)

__all__ = ["LangChainInstrumentor", "LiteLLMInstrumentor"]
