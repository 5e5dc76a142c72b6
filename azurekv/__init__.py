# SPDX-License-Identifier: MIT
# Copyright (c) 2025 azurekv contributors

"""Write-only Azure Key Vault secret management for infrastructure-as-code tools.

The secret value is accepted on create and rotation but never read back or
persisted. A caller-supplied ``value_wo_version`` counter decides whether a
new secret version is minted or only metadata of the current version changes.

Example:
    >>> from azurekv import SecretConfig, create_reconciler
    >>> reconciler = create_reconciler()
    >>> config = SecretConfig(
    ...     name="db-password",
    ...     key_vault_id="/subscriptions/.../resourceGroups/rg/providers/Microsoft.KeyVault/vaults/kv",
    ...     value_wo="s3cr3t",
    ...     value_wo_version=1,
    ... )
    >>> record, identity = reconciler.create(config)
    >>> record.to_state()["version"]
"""

from .api import ResourceDirectoryAPI, VaultSecretsAPI
from .client import (
    AzureKeyVaultSecretsAPI,
    AzureResourceDirectoryAPI,
    SecretClientCache,
    create_reconciler,
)
from .config import (
    ConfigProvider,
    EnvConfigProvider,
    ProviderConfig,
    StaticConfigProvider,
    load_provider_config,
)
from .engine import SecretReconciler
from .exceptions import (
    InvalidIdentifierError,
    MissingConfigurationError,
    SecretError,
    SecretNotFoundError,
    SecretProviderError,
    SerializationError,
)
from .identifiers import extract_vault_and_secret_name, extract_vault_name, parse_secret_id
from .log_factory import create_logger, forward_azure_sdk_logs
from .logger import Logger
from .models import (
    UNKNOWN,
    SecretAttributes,
    SecretConfig,
    SecretIdentity,
    SecretProperties,
    SecretRecord,
)
from .plan import PlanAction, PlanDecision, modify_plan
from .record import build_secret_record, set_secret_data
from .resolver import VersionResolver
from .silent_logger import SilentLogger
from .stderr_logger import StderrLogger

__all__ = [
    "AzureKeyVaultSecretsAPI",
    "AzureResourceDirectoryAPI",
    "ConfigProvider",
    "EnvConfigProvider",
    "InvalidIdentifierError",
    "Logger",
    "MissingConfigurationError",
    "PlanAction",
    "PlanDecision",
    "ProviderConfig",
    "ResourceDirectoryAPI",
    "SecretAttributes",
    "SecretClientCache",
    "SecretConfig",
    "SecretError",
    "SecretIdentity",
    "SecretNotFoundError",
    "SecretProperties",
    "SecretProviderError",
    "SecretReconciler",
    "SecretRecord",
    "SerializationError",
    "SilentLogger",
    "StaticConfigProvider",
    "StderrLogger",
    "UNKNOWN",
    "VaultSecretsAPI",
    "VersionResolver",
    "build_secret_record",
    "create_logger",
    "create_reconciler",
    "extract_vault_and_secret_name",
    "extract_vault_name",
    "forward_azure_sdk_logs",
    "load_provider_config",
    "modify_plan",
    "parse_secret_id",
    "set_secret_data",
]

__version__ = "0.1.0"
