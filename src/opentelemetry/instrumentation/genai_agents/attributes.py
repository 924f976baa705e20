"""
Centralized constants for GenAI agent span attribute names.

These keys are the wire contract read by downstream trace consumers and
must not change.
"""

# Core request attributes
GEN_AI_OPERATION_NAME = "gen_ai.operation.name"
GEN_AI_SYSTEM = "gen_ai.system"
GEN_AI_REQUEST_MODEL = "gen_ai.request.model"
GEN_AI_REQUEST_MESSAGES = "gen_ai.request.messages"

# Agent attributes
GEN_AI_AGENT_NAME = "gen_ai.agent.name"

# Usage / response attributes
GEN_AI_USAGE_INPUT_TOKENS = "gen_ai.usage.input_tokens"
GEN_AI_USAGE_OUTPUT_TOKENS = "gen_ai.usage.output_tokens"
GEN_AI_RESPONSE_TEXT = "gen_ai.response.text"

# Tool attributes
GEN_AI_TOOL_NAME = "gen_ai.tool.name"
GEN_AI_TOOL_INPUT = "gen_ai.tool.input"
GEN_AI_TOOL_OUTPUT = "gen_ai.tool.output"

# Handoff attributes
GEN_AI_HANDOFF_FROM = "gen_ai.handoff.from"
GEN_AI_HANDOFF_TO = "gen_ai.handoff.to"

# OpenTelemetry spans carry a name but no separate operation field, so the
# operation kind's wire name is recorded under this key.
GEN_AI_SPAN_OP = "gen_ai.span.op"
