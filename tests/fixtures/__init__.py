# SPDX-License-Identifier: MIT
# Copyright (c) 2025 azurekv contributors

"""Shared test doubles for the vault and resource directory.

Usage:
    from tests.fixtures import KEY_VAULT_ID, FakeVault

    vault = FakeVault(page_size=1)
"""

from .vault_fixtures import (  # noqa: F401
    KEY_VAULT_ID,
    SUBSCRIPTION_ID,
    FakeDirectory,
    FakeVault,
)

__all__ = [
    "KEY_VAULT_ID",
    "SUBSCRIPTION_ID",
    "FakeDirectory",
    "FakeVault",
]
