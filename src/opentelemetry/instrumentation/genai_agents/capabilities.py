"""
Optional result capabilities inspected after wrapped work returns.

A result that exposes ``input_tokens``/``output_tokens`` or ``content``
gets the matching usage or response attributes. Anything else is skipped.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional, Protocol, Tuple, runtime_checkable

_MISSING = object()
_PRIMITIVES = (str, bytes, bool, int, float)


@runtime_checkable
class TokenUsageReporter(Protocol):
    """Result that reports how many tokens a call consumed.

    Describes the shape read by :func:`extract_token_usage` for static type
    checking. Extraction reads the attributes directly and never checks
    ``isinstance`` against this protocol.
    """

    input_tokens: Optional[int]
    output_tokens: Optional[int]


@runtime_checkable
class TextContent(Protocol):
    """Result that carries the model's textual response.

    Describes the shape read by :func:`extract_text_content`; like
    :class:`TokenUsageReporter` it is not checked at runtime.
    """

    content: Any


def _lookup(result: Any, name: str) -> Any:
    if isinstance(result, Mapping):
        return result.get(name)
    try:
        value = getattr(result, name, _MISSING)
    except Exception:  # pylint: disable=broad-except
        # Properties on third-party result objects may raise.
        return None
    return None if value is _MISSING else value


def extract_token_usage(result: Any) -> Tuple[Optional[Any], Optional[Any]]:
    """Return ``(input_tokens, output_tokens)`` from any result shape.

    Objects implementing :class:`TokenUsageReporter` report both counts.
    Mappings and objects exposing only one of the two report what they have.
    """
    if result is None or isinstance(result, _PRIMITIVES):
        return None, None
    return _lookup(result, "input_tokens"), _lookup(result, "output_tokens")


def extract_text_content(result: Any) -> Optional[Any]:
    """Return the result's ``content`` when it is present and non-empty."""
    if result is None or isinstance(result, _PRIMITIVES):
        return None
    content = _lookup(result, "content")
    if not content:
        return None
    return content
