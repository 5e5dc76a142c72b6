# SPDX-License-Identifier: MIT
# Copyright (c) 2025 azurekv contributors

"""Test fixtures for azurekv."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from unittest.mock import MagicMock

import pytest

from azurekv import SecretConfig, SecretReconciler, SilentLogger
from tests.fixtures import KEY_VAULT_ID, SUBSCRIPTION_ID, FakeDirectory, FakeVault


@pytest.fixture
def key_vault_id() -> str:
    return KEY_VAULT_ID


@pytest.fixture
def vault() -> FakeVault:
    return FakeVault()


@pytest.fixture
def directory() -> FakeDirectory:
    return FakeDirectory({"myvault": KEY_VAULT_ID})


@pytest.fixture
def silent_logger() -> SilentLogger:
    return SilentLogger(level="DEBUG", name="azurekv-test")


@pytest.fixture
def reconciler(vault, directory, silent_logger) -> SecretReconciler:
    return SecretReconciler(vault, directory, subscription_id=SUBSCRIPTION_ID, logger=silent_logger)


@pytest.fixture
def make_config():
    """Factory for SecretConfig with test defaults."""

    def _make(**overrides) -> SecretConfig:
        values = {
            "name": "s1",
            "key_vault_id": KEY_VAULT_ID,
            "value_wo": "hunter2-initial",
            "value_wo_version": 1,
        }
        values.update(overrides)
        return SecretConfig(**values)

    return _make


@dataclass(frozen=True)
class AzureSdkMocks:
    """Per-test Azure SDK mocks.

    We patch `sys.modules` so the Azure adapters can import SDK symbols
    without requiring Azure dependencies to be installed.
    """

    secret_client_cls: MagicMock
    default_credential_cls: MagicMock
    resource_client_cls: MagicMock
    ResourceNotFoundError: type[Exception]
    ClientAuthenticationError: type[Exception]
    AzureError: type[Exception]


@pytest.fixture
def azure_sdk_mocks(monkeypatch: pytest.MonkeyPatch) -> AzureSdkMocks:
    """Provide per-test Azure SDK module mocks via `sys.modules`."""

    secret_client_cls = MagicMock(name="SecretClient")
    default_credential_cls = MagicMock(name="DefaultAzureCredential")
    resource_client_cls = MagicMock(name="ResourceManagementClient")

    azure_error = type("AzureError", (Exception,), {})
    resource_not_found_error = type("ResourceNotFoundError", (azure_error,), {})
    client_auth_error = type("ClientAuthenticationError", (azure_error,), {})

    # Parent/namespace modules
    monkeypatch.setitem(sys.modules, "azure", MagicMock())
    monkeypatch.setitem(sys.modules, "azure.keyvault", MagicMock())
    monkeypatch.setitem(sys.modules, "azure.core", MagicMock())
    monkeypatch.setitem(sys.modules, "azure.mgmt", MagicMock())

    # Leaf modules used by the adapters
    monkeypatch.setitem(
        sys.modules,
        "azure.keyvault.secrets",
        MagicMock(SecretClient=secret_client_cls),
    )
    monkeypatch.setitem(
        sys.modules,
        "azure.identity",
        MagicMock(DefaultAzureCredential=default_credential_cls),
    )
    monkeypatch.setitem(
        sys.modules,
        "azure.mgmt.resource",
        MagicMock(ResourceManagementClient=resource_client_cls),
    )
    monkeypatch.setitem(
        sys.modules,
        "azure.core.exceptions",
        MagicMock(
            ResourceNotFoundError=resource_not_found_error,
            ClientAuthenticationError=client_auth_error,
            AzureError=azure_error,
        ),
    )

    return AzureSdkMocks(
        secret_client_cls=secret_client_cls,
        default_credential_cls=default_credential_cls,
        resource_client_cls=resource_client_cls,
        ResourceNotFoundError=resource_not_found_error,
        ClientAuthenticationError=client_auth_error,
        AzureError=azure_error,
    )
