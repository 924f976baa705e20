"""
Router agent that talks to several LLM providers.

Each chat span overrides ``gen_ai.system`` for its provider; calls without
an override use the configured default (``anthropic``). Decorators are used
here instead of the ``with_*_span`` helpers.
"""

from dataclasses import dataclass

from opentelemetry import trace
from opentelemetry.instrumentation import genai_agents
from opentelemetry.instrumentation.genai_agents import AgentInstrumentation
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    ConsoleSpanExporter,
    SimpleSpanProcessor,
)

trace.set_tracer_provider(TracerProvider())
trace.get_tracer_provider().add_span_processor(
    SimpleSpanProcessor(ConsoleSpanExporter())
)

demo_tracer = trace.get_tracer("genai_agents.demo")

genai_agents.configure(default_system="anthropic")

instrumentation = AgentInstrumentation()

MODELS = {
    "anthropic": "claude-3-5-sonnet",
    "openai": "gpt-4",
    "google-gemini": "gemini-pro",
}


@dataclass
class MockResponse:
    content: str
    input_tokens: int = 100
    output_tokens: int = 20


@instrumentation.chat_span(model="claude-3-5-sonnet")
def call_anthropic(messages):
    return MockResponse("Hello from Claude!")


@instrumentation.chat_span(model="gpt-4", system="openai")
def call_openai(messages):
    return MockResponse("Hello from GPT-4!")


@instrumentation.chat_span(model="gemini-pro", system="google-gemini")
def call_gemini(messages):
    return MockResponse("Hello from Gemini!")


class RouterAgent:
    providers = {
        "anthropic": call_anthropic,
        "openai": call_openai,
        "google-gemini": call_gemini,
    }

    def route_request(self, user_message, provider="anthropic"):
        call = self.providers[provider]
        return instrumentation.with_agent_span(
            lambda: call(messages=[{"role": "user", "content": user_message}]),
            agent_name="RouterAgent",
            model=MODELS[provider],
        )


def main():
    router = RouterAgent()
    with demo_tracer.start_as_current_span("POST /route"):
        for provider in MODELS:
            result = router.route_request("Hello!", provider=provider)
            print(f"{provider}: {result.content}")


if __name__ == "__main__":
    main()
