# SPDX-License-Identifier: MIT
# Copyright (c) 2025 azurekv contributors

"""Tests for the Azure SDK adapters and reconciler wiring."""

import logging
import sys
import threading
import time
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from azurekv import (
    AzureKeyVaultSecretsAPI,
    AzureResourceDirectoryAPI,
    InvalidIdentifierError,
    ProviderConfig,
    SecretAttributes,
    SecretClientCache,
    SecretConfig,
    SecretNotFoundError,
    SecretProviderError,
    SilentLogger,
    create_reconciler,
)
from tests.fixtures import KEY_VAULT_ID

OTHER_VAULT_ID = KEY_VAULT_ID.replace("myvault", "othervault")
CREATED = datetime(2025, 5, 1, tzinfo=timezone.utc)


def sdk_properties(version="v1", **overrides):
    values = {
        "id": f"https://myvault.vault.azure.net/secrets/s1/{version}",
        "created_on": CREATED,
        "not_before": None,
        "expires_on": None,
        "content_type": None,
        "tags": None,
        "enabled": True,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


@pytest.fixture
def secret_client():
    return MagicMock(name="SecretClient()")


@pytest.fixture
def api(secret_client):
    cache = SecretClientCache(credential=object(), client_factory=MagicMock(return_value=secret_client))
    return AzureKeyVaultSecretsAPI(cache)


class TestSecretClientCache:
    """Tests for SecretClientCache."""

    def test_client_built_once_per_vault(self):
        """Repeated lookups for one vault reuse the client."""
        credential = object()
        factory = MagicMock(side_effect=lambda **kwargs: MagicMock())
        cache = SecretClientCache(credential, client_factory=factory)

        first = cache.get(KEY_VAULT_ID)
        second = cache.get(KEY_VAULT_ID)
        other = cache.get(OTHER_VAULT_ID)

        assert first is second
        assert other is not first
        assert len(cache) == 2
        factory.assert_any_call(vault_url="https://myvault.vault.azure.net", credential=credential)
        factory.assert_any_call(vault_url="https://othervault.vault.azure.net", credential=credential)
        assert factory.call_count == 2

    def test_dns_suffix_used_for_endpoint(self):
        """Sovereign clouds get their own endpoint suffix."""
        factory = MagicMock()
        cache = SecretClientCache(object(), dns_suffix="vault.azure.cn", client_factory=factory)

        cache.get(KEY_VAULT_ID)

        assert factory.call_args.kwargs["vault_url"] == "https://myvault.vault.azure.cn"

    def test_invalid_vault_id_rejected(self):
        """Malformed IDs never reach the factory."""
        factory = MagicMock()
        cache = SecretClientCache(object(), client_factory=factory)

        with pytest.raises(InvalidIdentifierError):
            cache.get("myvault")
        factory.assert_not_called()

    def test_concurrent_lookups_construct_once(self):
        """Parallel first lookups for the same vault construct exactly one client."""
        constructed = []

        def slow_factory(**kwargs):
            time.sleep(0.01)
            client = MagicMock()
            constructed.append(client)
            return client

        cache = SecretClientCache(object(), client_factory=slow_factory)
        barrier = threading.Barrier(8)
        results = []

        def worker():
            barrier.wait()
            results.append(cache.get(KEY_VAULT_ID))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(constructed) == 1
        assert all(result is constructed[0] for result in results)
        assert len(results) == 8

    def test_lock_released_after_factory_failure(self):
        """A failing construction does not leave the cache locked."""
        factory = MagicMock(side_effect=[RuntimeError("bad credential"), MagicMock()])
        cache = SecretClientCache(object(), client_factory=factory)

        with pytest.raises(RuntimeError):
            cache.get(KEY_VAULT_ID)

        assert not cache._lock.locked()
        assert cache.get(KEY_VAULT_ID) is not None
        assert len(cache) == 1

    def test_close_closes_clients(self):
        """close() closes and forgets every cached client."""
        clients = [MagicMock(), MagicMock()]
        cache = SecretClientCache(object(), client_factory=MagicMock(side_effect=clients))
        cache.get(KEY_VAULT_ID)
        cache.get(OTHER_VAULT_ID)

        cache.close()

        for client in clients:
            client.close.assert_called_once()
        assert len(cache) == 0

    def test_default_factory_is_sdk_client(self, azure_sdk_mocks):
        """Without a factory the Key Vault SDK client is used."""
        credential = object()
        cache = SecretClientCache(credential)

        client = cache.get(KEY_VAULT_ID)

        azure_sdk_mocks.secret_client_cls.assert_called_once_with(
            vault_url="https://myvault.vault.azure.net", credential=credential
        )
        assert client is azure_sdk_mocks.secret_client_cls.return_value

    def test_missing_sdk_raises_provider_error(self, monkeypatch):
        """A missing Key Vault SDK is reported as a provider error."""
        monkeypatch.setitem(sys.modules, "azure.keyvault.secrets", None)

        with pytest.raises(SecretProviderError, match="pip install azurekv\\[azure\\]"):
            SecretClientCache(object())


class TestAzureKeyVaultSecretsAPI:
    """Tests for AzureKeyVaultSecretsAPI."""

    def test_list_yields_pages_of_properties(self, azure_sdk_mocks, api, secret_client):
        """SDK pages are mapped page by page."""
        secret_client.list_properties_of_secret_versions.return_value.by_page.return_value = iter(
            [[sdk_properties("v1"), sdk_properties("v2")], [sdk_properties("v3", tags={"a": "b"})]]
        )

        pages = list(api.list_secret_versions(KEY_VAULT_ID, "s1"))

        assert [[item.version for item in page] for page in pages] == [["v1", "v2"], ["v3"]]
        assert pages[1][0].tags == {"a": "b"}
        assert pages[0][0].created_on == CREATED
        secret_client.list_properties_of_secret_versions.assert_called_once_with("s1")

    def test_timeout_forwarded(self, azure_sdk_mocks, secret_client):
        """A configured timeout is passed to every SDK call."""
        cache = SecretClientCache(object(), client_factory=MagicMock(return_value=secret_client))
        api = AzureKeyVaultSecretsAPI(cache, timeout=5)
        secret_client.list_properties_of_secret_versions.return_value.by_page.return_value = iter([])

        list(api.list_secret_versions(KEY_VAULT_ID, "s1"))
        api.delete_secret(KEY_VAULT_ID, "s1")

        secret_client.list_properties_of_secret_versions.assert_called_once_with("s1", timeout=5)
        secret_client.begin_delete_secret.assert_called_once_with("s1", timeout=5)

    def test_set_secret_sends_value_and_metadata(self, azure_sdk_mocks, api, secret_client):
        """The value, content type, validity window and tags are passed to the SDK."""
        secret_client.set_secret.return_value = SimpleNamespace(
            properties=sdk_properties("v9", content_type="text/plain")
        )
        attributes = SecretAttributes(not_before=CREATED)

        result = api.set_secret(
            KEY_VAULT_ID, "s1", "s3cr3t", content_type="text/plain", attributes=attributes, tags={"a": "b"}
        )

        secret_client.set_secret.assert_called_once_with(
            "s1",
            "s3cr3t",
            content_type="text/plain",
            not_before=CREATED,
            expires_on=None,
            tags={"a": "b"},
        )
        assert result.version == "v9"
        assert result.content_type == "text/plain"

    def test_update_properties_targets_version(self, azure_sdk_mocks, api, secret_client):
        """Property updates address one version."""
        secret_client.update_secret_properties.return_value = sdk_properties("v1", content_type="json")

        result = api.update_secret_properties(KEY_VAULT_ID, "s1", "v1", content_type="json", tags={})

        secret_client.update_secret_properties.assert_called_once_with(
            "s1", "v1", content_type="json", not_before=None, expires_on=None, tags={}
        )
        assert result.content_type == "json"

    def test_delete_does_not_wait_for_poller(self, azure_sdk_mocks, api, secret_client):
        """Deletion is issued without waiting on the long-running operation."""
        api.delete_secret(KEY_VAULT_ID, "s1")

        secret_client.begin_delete_secret.assert_called_once_with("s1")
        secret_client.begin_delete_secret.return_value.result.assert_not_called()
        secret_client.begin_delete_secret.return_value.wait.assert_not_called()

    def test_resource_not_found_translated(self, azure_sdk_mocks, api, secret_client):
        """SDK 404s become SecretNotFoundError."""
        secret_client.begin_delete_secret.side_effect = azure_sdk_mocks.ResourceNotFoundError("SecretNotFound")

        with pytest.raises(SecretNotFoundError, match="SecretNotFound"):
            api.delete_secret(KEY_VAULT_ID, "s1")

    def test_azure_error_translated(self, azure_sdk_mocks, api, secret_client):
        """Other SDK errors become SecretProviderError naming the action."""
        secret_client.set_secret.side_effect = azure_sdk_mocks.ClientAuthenticationError("token expired")

        with pytest.raises(SecretProviderError, match="while setting a secret: token expired"):
            api.set_secret(KEY_VAULT_ID, "s1", "value")

    def test_paging_error_translated(self, azure_sdk_mocks, api, secret_client):
        """Failures while paging are translated too."""

        def pages():
            yield [sdk_properties("v1")]
            raise azure_sdk_mocks.AzureError("503")

        secret_client.list_properties_of_secret_versions.return_value.by_page.return_value = pages()

        with pytest.raises(SecretProviderError, match="listing secret versions"):
            list(api.list_secret_versions(KEY_VAULT_ID, "s1"))


class TestAzureResourceDirectoryAPI:
    """Tests for AzureResourceDirectoryAPI."""

    def test_returns_first_match(self, azure_sdk_mocks):
        """The first resource returned by the filtered listing wins."""
        client = MagicMock()
        client.resources.list.return_value = iter([SimpleNamespace(id=KEY_VAULT_ID), SimpleNamespace(id="other")])
        directory = AzureResourceDirectoryAPI(object(), "sub", client=client)

        assert directory.find_vault_resource_id("myvault") == KEY_VAULT_ID
        client.resources.list.assert_called_once_with(
            filter="resourceType eq 'Microsoft.KeyVault/vaults' and name eq 'myvault'"
        )

    def test_escapes_quotes(self, azure_sdk_mocks):
        """Single quotes in the name are doubled in the filter."""
        client = MagicMock()
        client.resources.list.return_value = iter([])
        directory = AzureResourceDirectoryAPI(object(), "sub", timeout=3, client=client)

        directory.find_vault_resource_id("o'vault")

        client.resources.list.assert_called_once_with(
            filter="resourceType eq 'Microsoft.KeyVault/vaults' and name eq 'o''vault'", timeout=3
        )

    def test_no_match_returns_none(self, azure_sdk_mocks):
        """An empty listing is reported as None."""
        client = MagicMock()
        client.resources.list.return_value = iter([])

        assert AzureResourceDirectoryAPI(object(), "sub", client=client).find_vault_resource_id("kv") is None

    def test_listing_error_translated(self, azure_sdk_mocks):
        """Listing failures become SecretProviderError."""
        client = MagicMock()
        client.resources.list.side_effect = azure_sdk_mocks.AzureError("AuthorizationFailed")

        with pytest.raises(SecretProviderError, match="listing key vaults: AuthorizationFailed"):
            AzureResourceDirectoryAPI(object(), "sub", client=client).find_vault_resource_id("kv")

    def test_default_client_uses_subscription(self, azure_sdk_mocks):
        """Without a client the resource management SDK is used."""
        credential = object()

        directory = AzureResourceDirectoryAPI(credential, "sub-123")

        azure_sdk_mocks.resource_client_cls.assert_called_once_with(credential, "sub-123")
        assert directory.client is azure_sdk_mocks.resource_client_cls.return_value


class TestCreateReconciler:
    """Tests for create_reconciler."""

    def test_wires_clients_from_config(self, azure_sdk_mocks):
        """Credential, directory, DNS suffix and logger come from the configuration."""
        config = ProviderConfig(subscription_id="sub-123", vault_dns_suffix="vault.azure.cn", log_type="silent")

        reconciler = create_reconciler(config)

        azure_sdk_mocks.default_credential_cls.assert_called_once_with()
        credential = azure_sdk_mocks.default_credential_cls.return_value
        azure_sdk_mocks.resource_client_cls.assert_called_once_with(credential, "sub-123")
        assert isinstance(reconciler.directory_api, AzureResourceDirectoryAPI)
        assert reconciler.subscription_id == "sub-123"
        assert reconciler.secrets_api.clients.dns_suffix == "vault.azure.cn"
        assert isinstance(reconciler._logger, SilentLogger)

    def test_no_directory_without_subscription(self, azure_sdk_mocks):
        """Without a subscription no resource client is created."""
        reconciler = create_reconciler(ProviderConfig(log_type="silent"))

        assert reconciler.directory_api is None
        azure_sdk_mocks.resource_client_cls.assert_not_called()

    def test_explicit_credential_skips_default(self, azure_sdk_mocks):
        """A given credential is used as is."""
        create_reconciler(ProviderConfig(log_type="silent"), credential=object())

        azure_sdk_mocks.default_credential_cls.assert_not_called()

    def test_authentication_failure(self, azure_sdk_mocks):
        """Credential errors surface as SecretProviderError."""
        azure_sdk_mocks.default_credential_cls.side_effect = azure_sdk_mocks.ClientAuthenticationError("no login")

        with pytest.raises(SecretProviderError, match="Failed to authenticate with Azure: no login"):
            create_reconciler(ProviderConfig(log_type="silent"))

    def test_missing_identity_sdk(self, azure_sdk_mocks, monkeypatch):
        """A missing identity SDK is reported as a provider error."""
        monkeypatch.setitem(sys.modules, "azure.identity", None)

        with pytest.raises(SecretProviderError, match="not installed"):
            create_reconciler(ProviderConfig(log_type="silent"))

    def test_create_through_sdk(self, azure_sdk_mocks):
        """A create call flows through the SDK adapter into a record."""
        client = azure_sdk_mocks.secret_client_cls.return_value
        client.set_secret.return_value = SimpleNamespace(properties=sdk_properties("abc123", content_type=""))
        logger = SilentLogger(level="DEBUG")
        reconciler = create_reconciler(ProviderConfig(), logger=logger)

        record, _ = reconciler.create(
            SecretConfig(name="s1", key_vault_id=KEY_VAULT_ID, value_wo="s3cr3t", value_wo_version=1)
        )

        assert record.version == "abc123"
        assert record.resource_id == f"{KEY_VAULT_ID}/secrets/s1/versions/abc123"
        assert client.set_secret.call_args.args == ("s1", "s3cr3t")
        assert "s3cr3t" not in repr(logger.logs)

    def test_close_releases_sdk_clients_and_default_credential(self, azure_sdk_mocks):
        """Closing the reconciler closes secret clients, resource client and credential."""
        reconciler = create_reconciler(ProviderConfig(subscription_id="sub-123", log_type="silent"))
        reconciler.secrets_api.clients.get(KEY_VAULT_ID)

        with reconciler:
            pass

        azure_sdk_mocks.secret_client_cls.return_value.close.assert_called_once()
        azure_sdk_mocks.resource_client_cls.return_value.close.assert_called_once()
        azure_sdk_mocks.default_credential_cls.return_value.close.assert_called_once()
        assert len(reconciler.secrets_api.clients) == 0

    def test_close_leaves_caller_credential_open(self, azure_sdk_mocks):
        """A credential passed in by the caller is not closed."""
        credential = MagicMock()

        create_reconciler(ProviderConfig(log_type="silent"), credential=credential).close()

        credential.close.assert_not_called()

    def test_default_credential_closed_when_wiring_fails(self, azure_sdk_mocks, monkeypatch):
        """A credential created for a failed wiring is closed again."""
        monkeypatch.setitem(sys.modules, "azure.keyvault.secrets", None)

        with pytest.raises(SecretProviderError, match="not installed"):
            create_reconciler(ProviderConfig(log_type="silent"))

        azure_sdk_mocks.default_credential_cls.return_value.close.assert_called_once()


class TestSdkLogForwarding:
    """create_reconciler forwards Azure SDK logs at DEBUG."""

    @pytest.fixture(autouse=True)
    def restore_azure_logger(self):
        azure_logger = logging.getLogger("azure")
        original = (azure_logger.level, azure_logger.propagate, list(azure_logger.handlers))
        yield
        azure_logger.setLevel(original[0])
        azure_logger.propagate = original[1]
        azure_logger.handlers = original[2]

    def test_debug_level_forwards_sdk_logs_once(self, azure_sdk_mocks):
        """At DEBUG the SDK's records reach the logger, even after repeated wiring."""
        logger = SilentLogger(level="DEBUG")
        config = ProviderConfig(log_level="DEBUG")

        create_reconciler(config, logger=logger)
        create_reconciler(config, logger=logger)
        logging.getLogger("azure.core.pipeline").info("Request URL: %s", "https://myvault.vault.azure.net")

        assert logger.get_logs("DEBUG") == [
            {
                "level": "DEBUG",
                "message": "Request URL: https://myvault.vault.azure.net",
                "extra": {"sdk_logger": "azure.core.pipeline", "sdk_level": "INFO"},
            }
        ]

    def test_info_level_does_not_forward(self, azure_sdk_mocks):
        """Below DEBUG the SDK logger is left alone."""
        handlers_before = list(logging.getLogger("azure").handlers)

        create_reconciler(ProviderConfig(log_type="silent"))

        assert logging.getLogger("azure").handlers == handlers_before
