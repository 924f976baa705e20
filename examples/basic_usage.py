"""
Manually instrumented customer service agent.

Run with ``python examples/basic_usage.py``. Spans are printed to stdout by
the console exporter; the first request runs outside any span and produces
none, the second runs inside a ``POST /chat`` span.

Expected span tree for the second request::

    POST /chat
    └── invoke_agent CustomerServiceAgent
        ├── chat claude-3-5-sonnet
        ├── execute_tool lookup_order
        └── handoff from processing to complete
"""

from dataclasses import dataclass
from typing import Optional

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

genai_agents.configure(default_system="anthropic", max_string_length=1000)


@dataclass
class MockResponse:
    content: str
    input_tokens: int
    output_tokens: int
    tool_use: Optional[dict] = None


class CustomerServiceAgent:
    def __init__(self, llm_client=None):
        self.llm_client = llm_client
        self.instrumentation = AgentInstrumentation()

    def process_request(self, user_message):
        return self.instrumentation.with_agent_span(
            lambda: self._run(user_message),
            agent_name="CustomerServiceAgent",
            model="claude-3-5-sonnet",
        )

    def _run(self, user_message):
        response = self._llm_response(user_message)
        if response.tool_use:
            self._execute_tool(response.tool_use)

        return self.instrumentation.with_handoff_span(
            lambda: response, from_stage="processing", to_stage="complete"
        )

    def _llm_response(self, message):
        # A real agent would call self.llm_client here.
        return self.instrumentation.with_chat_span(
            lambda: MockResponse(
                content="Let me look up order #12345 for you.",
                input_tokens=150,
                output_tokens=25,
                tool_use={"name": "lookup_order", "input": {"order_id": "12345"}},
            ),
            model="claude-3-5-sonnet",
            messages=[{"role": "user", "content": message}],
        )

    def _execute_tool(self, tool_use):
        tools = {
            "lookup_order": self.lookup_order,
            "check_inventory": self.check_inventory,
        }
        tool = tools.get(tool_use["name"])
        return self.instrumentation.with_tool_span(
            lambda: tool(**tool_use["input"]) if tool else {"error": "Unknown tool"},
            tool_name=tool_use["name"],
            tool_input=tool_use["input"],
        )

    @staticmethod
    def lookup_order(order_id):
        return {"order_id": order_id, "status": "shipped"}

    @staticmethod
    def check_inventory(product_id):
        return {"product_id": product_id, "in_stock": True, "quantity": 42}


def main():
    agent = CustomerServiceAgent()

    print("Without an active span (work runs, no spans):")
    result = agent.process_request("What's the status of my order #12345?")
    print(f"Response: {result.content}\n")

    print("Inside a request span:")
    with demo_tracer.start_as_current_span("POST /chat"):
        result = agent.process_request("What's the status of my order #12345?")
    print(f"Response: {result.content}")


if __name__ == "__main__":
    main()
