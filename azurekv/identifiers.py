# SPDX-License-Identifier: MIT
# Copyright (c) 2025 azurekv contributors

"""Parsing helpers for Key Vault resource IDs and secret URIs.

Two identifier namespaces are involved:

- the ARM resource ID of a vault, e.g.
  ``/subscriptions/<sub>/resourceGroups/<rg>/providers/Microsoft.KeyVault/vaults/<name>``
- the data-plane URI of a secret version, e.g.
  ``https://<name>.vault.azure.net/secrets/<secret>/<version>``
"""

import re

from .exceptions import InvalidIdentifierError

DEFAULT_VAULT_DNS_SUFFIX = "vault.azure.net"

KEY_VAULT_ID_PATTERN = re.compile(
    r"\A/subscriptions/[^/]+/resourceGroups/[^/]+/providers/Microsoft\.KeyVault/vaults/([^/]+)\Z"
)
SECRET_ID_PATTERN = re.compile(r"\Ahttps://([^/.]+)\.[^/]+/secrets/([^/]+)")
VERSIONED_SECRET_ID_PATTERN = re.compile(r"\A(https://[^/]+)/secrets/([^/]+)/([^/]+)/?\Z")


def extract_vault_name(key_vault_id: str) -> str:
    """Return the vault name embedded in a vault resource ID.

    Raises:
        InvalidIdentifierError: If the ID does not look like a vault resource ID
    """
    match = KEY_VAULT_ID_PATTERN.match(key_vault_id or "")
    if match is None:
        raise InvalidIdentifierError(
            f"invalid key vault ID: {key_vault_id!r} doesn't match {KEY_VAULT_ID_PATTERN.pattern!r}"
        )
    return match.group(1)


def extract_vault_and_secret_name(secret_id: str) -> tuple[str, str]:
    """Return ``(vault_name, secret_name)`` from a secret URI.

    Raises:
        InvalidIdentifierError: If the URI does not point at a secret
    """
    match = SECRET_ID_PATTERN.match(secret_id or "")
    if match is None:
        raise InvalidIdentifierError(
            f"invalid ID: {secret_id!r} doesn't match {SECRET_ID_PATTERN.pattern!r}"
        )
    return match.group(1), match.group(2)


def parse_secret_id(secret_id: str) -> tuple[str, str, str]:
    """Split a versioned secret URI into ``(vault_url, name, version)``.

    Raises:
        InvalidIdentifierError: If the URI carries no version segment
    """
    match = VERSIONED_SECRET_ID_PATTERN.match(secret_id or "")
    if match is None:
        raise InvalidIdentifierError(f"invalid versioned secret ID: {secret_id!r}")
    return match.group(1), match.group(2), match.group(3)


def vault_url(vault_name: str, dns_suffix: str = DEFAULT_VAULT_DNS_SUFFIX) -> str:
    """Build the data-plane endpoint of a vault."""
    return f"https://{vault_name}.{dns_suffix}"
