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
Conversion of arbitrary values into bounded span attribute strings.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, Dict, Optional

from opentelemetry.instrumentation.genai_agents.config import (
    ConfigStore,
    get_config_store,
)

TRUNCATION_MARKER = "..."


def gen_ai_json_dumps(value: object) -> str:
    """Compact JSON encoding used for structured attribute values."""
    return json.dumps(
        value, ensure_ascii=False, separators=(",", ":"), default=str
    )


def truncate(text: Optional[str], max_length: int) -> Optional[str]:
    """Cut ``text`` to ``max_length`` characters and append ``...``.

    Strings at or below the limit come back unchanged, so a truncated
    result is always ``max_length + 3`` characters long.
    """
    if text is None or len(text) <= max_length:
        return text
    return f"{text[:max_length]}{TRUNCATION_MARKER}"


class Serializer:
    """Serializes and filters span attributes against a config store."""

    def __init__(self, config_store: Optional[ConfigStore] = None) -> None:
        self._config_store = config_store

    @property
    def config_store(self) -> ConfigStore:
        return self._config_store or get_config_store()

    def serialize(
        self, value: Any, max_length: Optional[int] = None
    ) -> Optional[str]:
        """Serialize a value for use in span attributes.

        Args:
            value: The value to serialize.
            max_length: Maximum length of the result. Defaults to the
                configured ``max_string_length`` at call time.

        Returns:
            ``None`` for ``None``, the string itself for strings, compact
            JSON for mappings and sequences, ``str(value)`` otherwise
            (including containers JSON cannot encode).

        Example:
            >>> Serializer().serialize({"key": "value"})
            '{"key":"value"}'
        """
        if value is None:
            return None
        if max_length is None:
            max_length = self.config_store.get().max_string_length

        if isinstance(value, str):
            result = value
        elif isinstance(value, (Mapping, list, tuple)):
            if isinstance(value, Mapping):
                value = dict(value)
            try:
                result = gen_ai_json_dumps(value)
            except (TypeError, ValueError):
                # non-string keys or circular references
                result = str(value)
        else:
            result = str(value)

        return truncate(result, max_length)

    def filter(self, attributes: Dict[str, Any]) -> Dict[str, Any]:
        """Run the configured redaction hook over a copy of ``attributes``.

        Without a hook the input is returned as is. A hook that mutates its
        argument in place and returns ``None`` is also accepted.
        """
        data_filter = self.config_store.get().data_filter
        if data_filter is None:
            return attributes

        copied = dict(attributes)
        filtered = data_filter(copied)
        if filtered is None:
            return copied
        return filtered


_default_serializer = Serializer()


def serialize(value: Any, max_length: Optional[int] = None) -> Optional[str]:
    return _default_serializer.serialize(value, max_length=max_length)


def filter_attributes(attributes: Dict[str, Any]) -> Dict[str, Any]:
    return _default_serializer.filter(attributes)
