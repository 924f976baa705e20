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
Process-wide settings for the GenAI agent span helpers.

Usage
-----

.. code:: python

    from opentelemetry.instrumentation import genai_agents

    def setup(config):
        config.default_system = "openai"
        config.max_string_length = 2000

    genai_agents.configure(setup)
    # or
    genai_agents.configure(default_system="openai", debug=True)
"""

from __future__ import annotations

import importlib.util
import logging
import os
import threading
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Optional

from opentelemetry.instrumentation.genai_agents.environment_variables import (
    OTEL_INSTRUMENTATION_GENAI_AGENTS_AUTO_INSTRUMENT_LANGCHAIN,
    OTEL_INSTRUMENTATION_GENAI_AGENTS_AUTO_INSTRUMENT_LITELLM,
    OTEL_INSTRUMENTATION_GENAI_AGENTS_DEBUG,
    OTEL_INSTRUMENTATION_GENAI_AGENTS_DEFAULT_SYSTEM,
    OTEL_INSTRUMENTATION_GENAI_AGENTS_MAX_STRING_LENGTH,
)

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM = "anthropic"
DEFAULT_MAX_STRING_LENGTH = 1000

DataFilter = Callable[[Dict[str, Any]], Optional[Dict[str, Any]]]

_TRUTHY_VALUES = {"1", "true", "yes", "on"}


class ConfigurationError(ValueError):
    """Raised when the agent span helpers are configured with invalid values."""


def _is_truthy(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value.strip().lower() in _TRUTHY_VALUES


def _positive_int_from_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        logger.warning(
            "%s is not a valid integer for `%s`. Defaulting to %d.",
            raw,
            name,
            default,
        )
        return default
    if value <= 0:
        logger.warning(
            "`%s` must be positive, got %d. Defaulting to %d.",
            name,
            value,
            default,
        )
        return default
    return value


@dataclass
class AgentsConfig:
    """Settings read by every span helper call.

    Attributes:
        default_system: Provider name recorded as ``gen_ai.system`` when no
            override is given (e.g. ``"anthropic"``, ``"openai"``).
        max_string_length: Maximum length of serialized attribute strings.
        debug: Log tracing SDK failures instead of dropping them silently.
        data_filter: Optional redaction hook. Receives a copy of the span
            attributes and returns the attributes to record.
        auto_instrument_litellm: Install :class:`LiteLLMInstrumentor` on
            :func:`configure`.
        auto_instrument_langchain: Install :class:`LangChainInstrumentor` on
            :func:`configure`.
    """

    default_system: str = DEFAULT_SYSTEM
    max_string_length: int = DEFAULT_MAX_STRING_LENGTH
    debug: bool = False
    data_filter: Optional[DataFilter] = None
    auto_instrument_litellm: bool = False
    auto_instrument_langchain: bool = False

    @classmethod
    def from_env(cls) -> "AgentsConfig":
        default_system = (
            os.environ.get(OTEL_INSTRUMENTATION_GENAI_AGENTS_DEFAULT_SYSTEM)
            or ""
        ).strip()
        return cls(
            default_system=default_system or DEFAULT_SYSTEM,
            max_string_length=_positive_int_from_env(
                OTEL_INSTRUMENTATION_GENAI_AGENTS_MAX_STRING_LENGTH,
                DEFAULT_MAX_STRING_LENGTH,
            ),
            debug=_is_truthy(
                os.environ.get(OTEL_INSTRUMENTATION_GENAI_AGENTS_DEBUG)
            ),
            auto_instrument_litellm=_is_truthy(
                os.environ.get(
                    OTEL_INSTRUMENTATION_GENAI_AGENTS_AUTO_INSTRUMENT_LITELLM
                )
            ),
            auto_instrument_langchain=_is_truthy(
                os.environ.get(
                    OTEL_INSTRUMENTATION_GENAI_AGENTS_AUTO_INSTRUMENT_LANGCHAIN
                )
            ),
        )

    def validate(self) -> None:
        if (
            isinstance(self.max_string_length, bool)
            or not isinstance(self.max_string_length, int)
            or self.max_string_length <= 0
        ):
            raise ConfigurationError(
                f"max_string_length must be a positive integer, got {self.max_string_length!r}"
            )
        if not isinstance(self.default_system, str) or not self.default_system:
            raise ConfigurationError(
                f"default_system must be a non-empty string, got {self.default_system!r}"
            )
        if self.data_filter is not None and not callable(self.data_filter):
            raise ConfigurationError("data_filter must be callable or None")


class ConfigStore:
    """Holds the current :class:`AgentsConfig`.

    A single lock guards lazy creation, reads and wholesale replacement.
    Callers get the config object itself; no lock is held while they use it.
    """

    def __init__(
        self, factory: Callable[[], AgentsConfig] = AgentsConfig.from_env
    ) -> None:
        self._factory = factory
        self._lock = threading.Lock()
        self._config: Optional[AgentsConfig] = None

    def get(self) -> AgentsConfig:
        with self._lock:
            if self._config is None:
                self._config = self._factory()
            return self._config

    def replace(self, config: AgentsConfig) -> None:
        config.validate()
        with self._lock:
            self._config = config

    def reset(self) -> None:
        with self._lock:
            self._config = self._factory()

    def configure(
        self,
        callback: Optional[Callable[[AgentsConfig], None]] = None,
        **overrides: Any,
    ) -> AgentsConfig:
        """Mutate the current config through ``callback`` and/or keyword overrides.

        The update is applied to a copy and swapped in only when it
        validates, so a failing callback leaves the previous config intact.
        The callback runs without the lock held and may read the store.
        """
        updated = replace(self.get(), **overrides)
        if callback is not None:
            callback(updated)
        updated.validate()
        with self._lock:
            self._config = updated
        _apply_auto_instrumentation(updated)
        return updated


def _module_available(name: str) -> bool:
    try:
        return importlib.util.find_spec(name) is not None
    except (ImportError, ValueError):
        return False


def _apply_auto_instrumentation(config: AgentsConfig) -> None:
    if config.auto_instrument_litellm and _module_available("litellm"):
        from opentelemetry.instrumentation.genai_agents.integrations.litellm_instrumentor import (  # pylint: disable=import-outside-toplevel
            LiteLLMInstrumentor,
        )

        LiteLLMInstrumentor().instrument()

    if config.auto_instrument_langchain and _module_available(
        "langchain_core"
    ):
        from opentelemetry.instrumentation.genai_agents.integrations.langchain_instrumentor import (  # pylint: disable=import-outside-toplevel
            LangChainInstrumentor,
        )

        LangChainInstrumentor().instrument()


_default_store = ConfigStore()


def get_config_store() -> ConfigStore:
    return _default_store


def get_configuration() -> AgentsConfig:
    """Return the current process-wide configuration."""
    return _default_store.get()


def configure(
    callback: Optional[Callable[[AgentsConfig], None]] = None,
    **overrides: Any,
) -> AgentsConfig:
    """Update the process-wide configuration.

    Args:
        callback: Optional callable receiving the config to mutate.
        **overrides: Field values applied before ``callback`` runs.

    Returns:
        The configuration now in effect.

    Raises:
        ConfigurationError: if the resulting configuration is invalid.
    """
    return _default_store.configure(callback, **overrides)


def reset_configuration() -> None:
    """Restore the process-wide configuration to its defaults."""
    _default_store.reset()
