# SPDX-License-Identifier: MIT
# Copyright (c) 2025 azurekv contributors

"""Provider configuration loaded from explicit settings and the environment."""

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .identifiers import DEFAULT_VAULT_DNS_SUFFIX

SUBSCRIPTION_ID_KEY = "ARM_SUBSCRIPTION_ID"
VAULT_DNS_SUFFIX_KEY = "AZURE_KEY_VAULT_DNS_SUFFIX"
LOG_TYPE_KEY = "LOG_TYPE"
LOG_LEVEL_KEY = "LOG_LEVEL"


class ConfigProvider(ABC):
    """Abstract base class for configuration providers."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value."""
        raise NotImplementedError


class EnvConfigProvider(ConfigProvider):
    """Configuration provider that reads from environment variables."""

    def __init__(self, environ: Optional[Dict[str, str]] = None):
        self._environ = environ if environ is not None else os.environ

    def get(self, key: str, default: Any = None) -> Any:
        # Empty variables count as unset
        value = self._environ.get(key)
        return value if value else default


class StaticConfigProvider(ConfigProvider):
    """Configuration provider with static values (useful for tests)."""

    def __init__(self, config: dict[str, Any] | None = None):
        self._config = config if config is not None else {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._config[key] = value


@dataclass
class ProviderConfig:
    """Settings shared by every secret managed through one provider instance.

    Attributes:
        subscription_id: Subscription searched when importing by secret URI;
            not needed for any other operation
        vault_dns_suffix: DNS suffix of vault endpoints (``vault.azure.net``
            in the public cloud)
        log_type: Logger type passed to ``create_logger``
        log_level: Logger level passed to ``create_logger``
    """
    subscription_id: str | None = None
    vault_dns_suffix: str = DEFAULT_VAULT_DNS_SUFFIX
    log_type: str = "stderr"
    log_level: str = "INFO"


def load_provider_config(
    config_provider: ConfigProvider | None = None,
    subscription_id: str | None = None,
    vault_dns_suffix: str | None = None,
) -> ProviderConfig:
    """Build the provider configuration.

    Explicit arguments win over values from ``config_provider``, which
    defaults to the process environment.

    Example:
        >>> config = load_provider_config(subscription_id="00000000-0000-0000-0000-000000000000")
        >>> config.vault_dns_suffix
        'vault.azure.net'
    """
    source = config_provider if config_provider is not None else EnvConfigProvider()

    return ProviderConfig(
        subscription_id=subscription_id or source.get(SUBSCRIPTION_ID_KEY),
        vault_dns_suffix=vault_dns_suffix or source.get(VAULT_DNS_SUFFIX_KEY, DEFAULT_VAULT_DNS_SUFFIX),
        log_type=source.get(LOG_TYPE_KEY, "stderr"),
        log_level=str(source.get(LOG_LEVEL_KEY, "INFO")).upper(),
    )
