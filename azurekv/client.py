# SPDX-License-Identifier: MIT
# Copyright (c) 2025 azurekv contributors

"""Azure SDK implementations of the vault and resource directory interfaces."""

import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

from .api import ResourceDirectoryAPI, VaultSecretsAPI, close_quietly
from .config import ProviderConfig, load_provider_config
from .engine import SecretReconciler
from .exceptions import SecretNotFoundError, SecretProviderError
from .identifiers import DEFAULT_VAULT_DNS_SUFFIX, extract_vault_name, vault_url
from .log_factory import create_logger, forward_azure_sdk_logs
from .logger import Logger
from .models import SecretAttributes, SecretProperties

KEY_VAULT_RESOURCE_TYPE = "Microsoft.KeyVault/vaults"

logger = create_logger(logger_type="stderr", level="INFO", name="azurekv.client")


@contextmanager
def _azure_errors(action: str) -> Iterator[None]:
    """Translate Azure SDK exceptions raised inside the block."""
    from azure.core.exceptions import AzureError, ResourceNotFoundError

    try:
        yield
    except ResourceNotFoundError as e:
        raise SecretNotFoundError(str(e)) from e
    except AzureError as e:
        raise SecretProviderError(f"An unexpected error occurred while {action}: {e}") from e


def _to_properties(sdk_properties: Any) -> SecretProperties:
    """Copy ``azure.keyvault.secrets.SecretProperties`` into the package model."""
    return SecretProperties(
        id=sdk_properties.id,
        created_on=sdk_properties.created_on,
        not_before=sdk_properties.not_before,
        expires_on=sdk_properties.expires_on,
        content_type=sdk_properties.content_type,
        tags=sdk_properties.tags,
        enabled=sdk_properties.enabled,
    )


class SecretClientCache:
    """Per-vault cache of ``SecretClient`` instances.

    The lock covers only the lookup and insertion; requests made with the
    returned client run outside it.

    Attributes:
        dns_suffix: DNS suffix used to build vault endpoints
    """

    def __init__(
        self,
        credential: Any,
        dns_suffix: str = DEFAULT_VAULT_DNS_SUFFIX,
        client_factory: Optional[Callable[..., Any]] = None,
    ):
        """Initialize the cache.

        Args:
            credential: Azure token credential shared by all clients
            dns_suffix: DNS suffix of vault endpoints
            client_factory: Callable building a client from ``vault_url`` and
                ``credential``; defaults to ``azure.keyvault.secrets.SecretClient``

        Raises:
            SecretProviderError: If the Key Vault SDK is not installed
        """
        if client_factory is None:
            try:
                from azure.keyvault.secrets import SecretClient
            except ImportError as e:
                raise SecretProviderError(
                    "Azure SDK dependencies for Azure Key Vault are not installed. "
                    "Install with: pip install azurekv[azure]"
                ) from e
            client_factory = SecretClient

        self._credential = credential
        self._client_factory = client_factory
        self.dns_suffix = dns_suffix
        self._clients: dict[str, Any] = {}
        self._lock = threading.Lock()

    def get(self, key_vault_id: str) -> Any:
        """Return the client for the vault identified by ``key_vault_id``.

        Raises:
            InvalidIdentifierError: If key_vault_id is malformed
        """
        vault_name = extract_vault_name(key_vault_id)

        with self._lock:
            client = self._clients.get(vault_name)
            if client is None:
                client = self._client_factory(
                    vault_url=vault_url(vault_name, self.dns_suffix),
                    credential=self._credential,
                )
                self._clients[vault_name] = client
                logger.debug("Created secret client", vault_name=vault_name)
        return client

    def __len__(self) -> int:
        return len(self._clients)

    def close(self) -> None:
        """Close every cached client."""
        with self._lock:
            clients = list(self._clients.values())
            self._clients.clear()

        for client in clients:
            close_quietly(client)


class AzureKeyVaultSecretsAPI(VaultSecretsAPI):
    """``VaultSecretsAPI`` backed by ``azure-keyvault-secrets``.

    Attributes:
        clients: Cache of per-vault ``SecretClient`` instances
        timeout: Optional per-call timeout in seconds, forwarded to azure-core
    """

    def __init__(self, clients: SecretClientCache, timeout: float | None = None):
        self.clients = clients
        self.timeout = timeout

    def _options(self) -> dict[str, Any]:
        return {"timeout": self.timeout} if self.timeout is not None else {}

    def list_secret_versions(self, key_vault_id: str, name: str) -> Iterator[list[SecretProperties]]:
        client = self.clients.get(key_vault_id)
        with _azure_errors("listing secret versions"):
            pages = client.list_properties_of_secret_versions(name, **self._options()).by_page()
            for page in pages:
                yield [_to_properties(item) for item in page]

    def set_secret(
        self,
        key_vault_id: str,
        name: str,
        value: str,
        content_type: Optional[str] = None,
        attributes: Optional[SecretAttributes] = None,
        tags: Optional[dict[str, str]] = None,
    ) -> SecretProperties:
        client = self.clients.get(key_vault_id)
        attributes = attributes or SecretAttributes()
        with _azure_errors("setting a secret"):
            secret = client.set_secret(
                name,
                value,
                content_type=content_type,
                not_before=attributes.not_before,
                expires_on=attributes.expires_on,
                tags=tags,
                **self._options(),
            )
        return _to_properties(secret.properties)

    def update_secret_properties(
        self,
        key_vault_id: str,
        name: str,
        version: str,
        content_type: Optional[str] = None,
        attributes: Optional[SecretAttributes] = None,
        tags: Optional[dict[str, str]] = None,
    ) -> SecretProperties:
        client = self.clients.get(key_vault_id)
        attributes = attributes or SecretAttributes()
        with _azure_errors("updating secret properties"):
            properties = client.update_secret_properties(
                name,
                version,
                content_type=content_type,
                not_before=attributes.not_before,
                expires_on=attributes.expires_on,
                tags=tags,
                **self._options(),
            )
        return _to_properties(properties)

    def delete_secret(self, key_vault_id: str, name: str) -> None:
        client = self.clients.get(key_vault_id)
        with _azure_errors("deleting a secret"):
            # The DELETE request is sent by begin_delete_secret; the poller is not awaited
            client.begin_delete_secret(name, **self._options())

    def close(self) -> None:
        """Close every cached ``SecretClient``."""
        self.clients.close()


class AzureResourceDirectoryAPI(ResourceDirectoryAPI):
    """``ResourceDirectoryAPI`` backed by ``azure-mgmt-resource``."""

    def __init__(
        self,
        credential: Any,
        subscription_id: str,
        timeout: float | None = None,
        client: Any = None,
    ):
        """Initialize the directory client.

        Args:
            credential: Azure token credential
            subscription_id: Subscription to search
            timeout: Optional per-call timeout in seconds
            client: Prebuilt ``ResourceManagementClient``, mainly for tests

        Raises:
            SecretProviderError: If the resource management SDK is not installed
        """
        if client is None:
            try:
                from azure.mgmt.resource import ResourceManagementClient
            except ImportError as e:
                raise SecretProviderError(
                    "Azure SDK dependencies for resource lookup are not installed. "
                    "Install with: pip install azurekv[azure]"
                ) from e
            client = ResourceManagementClient(credential, subscription_id)

        self.subscription_id = subscription_id
        self.timeout = timeout
        self.client = client

    def find_vault_resource_id(self, vault_name: str) -> Optional[str]:
        escaped = vault_name.replace("'", "''")
        query = f"resourceType eq '{KEY_VAULT_RESOURCE_TYPE}' and name eq '{escaped}'"
        options = {"timeout": self.timeout} if self.timeout is not None else {}

        with _azure_errors("listing key vaults"):
            for resource in self.client.resources.list(filter=query, **options):
                return resource.id
        return None

    def close(self) -> None:
        """Close the ``ResourceManagementClient``."""
        close_quietly(self.client)


def create_reconciler(
    config: ProviderConfig | None = None,
    credential: Any = None,
    logger: Logger | None = None,
    timeout: float | None = None,
) -> SecretReconciler:
    """Wire Azure clients and a ``SecretReconciler`` for one provider configuration.

    Authentication is delegated to ``DefaultAzureCredential`` (managed
    identity, environment variables, Azure CLI) unless ``credential`` is given.
    A credential created here is closed by ``SecretReconciler.close()``; a
    given one stays with the caller. At log level DEBUG the Azure SDK's own
    logs are forwarded through the reconciler's logger.

    Example:
        >>> with create_reconciler() as reconciler:
        ...     record, identity = reconciler.create(config)

    Args:
        config: Provider configuration; loaded from the environment when omitted
        credential: Optional Azure token credential, not closed by the reconciler
        logger: Optional logger; built from ``config`` when omitted
        timeout: Optional per-call timeout in seconds

    Returns:
        Configured SecretReconciler

    Raises:
        SecretProviderError: If the Azure SDK is missing or credentials cannot be created
    """
    config = config if config is not None else load_provider_config()

    owned_credential = None
    if credential is None:
        try:
            from azure.core.exceptions import AzureError, ClientAuthenticationError
            from azure.identity import DefaultAzureCredential
        except ImportError as e:
            raise SecretProviderError(
                "Azure SDK dependencies for Azure Key Vault are not installed. "
                "Install with: pip install azurekv[azure]"
            ) from e

        try:
            credential = DefaultAzureCredential()
        except ClientAuthenticationError as e:
            raise SecretProviderError(f"Failed to authenticate with Azure: {e}") from e
        except AzureError as e:
            raise SecretProviderError(f"Azure credential error: {e}") from e
        owned_credential = credential

    if logger is None:
        logger = create_logger(logger_type=config.log_type, level=config.log_level, name="azurekv")
    if config.log_level.upper() == "DEBUG":
        forward_azure_sdk_logs(logger)

    try:
        secrets_api = AzureKeyVaultSecretsAPI(SecretClientCache(credential, config.vault_dns_suffix), timeout=timeout)
        directory = None
        if config.subscription_id:
            directory = AzureResourceDirectoryAPI(credential, config.subscription_id, timeout=timeout)
    except SecretProviderError:
        close_quietly(owned_credential)
        raise

    return SecretReconciler(
        secrets_api,
        directory_api=directory,
        subscription_id=config.subscription_id,
        logger=logger,
        credential=owned_credential,
    )
