# SPDX-License-Identifier: MIT
# Copyright (c) 2025 azurekv contributors

"""Lookup of a specific or the most recent version of a secret."""

from .api import VaultSecretsAPI
from .exceptions import SecretError, SecretNotFoundError, SecretProviderError
from .models import SecretProperties


class VersionResolver:
    """Resolves secret versions from the paginated version listing.

    Example:
        >>> resolver = VersionResolver(api)
        >>> latest = resolver.resolve(key_vault_id, "db-password")
        >>> pinned = resolver.resolve(key_vault_id, "db-password", version="0a1b2c")
    """

    def __init__(self, api: VaultSecretsAPI):
        self.api = api

    def resolve(self, key_vault_id: str, name: str, version: str | None = None) -> SecretProperties:
        """Return the properties of the requested version.

        With ``version`` set, the entry whose version equals it exactly is
        returned. Otherwise the entry with the latest ``created_on`` wins;
        on ties the first one seen is kept.

        Args:
            key_vault_id: Resource ID of the vault
            name: Name of the secret
            version: Optional version to look up; empty means latest

        Returns:
            Properties of the selected version

        Raises:
            SecretNotFoundError: If no version satisfies the selection
            SecretProviderError: If fetching any page fails
        """
        latest: SecretProperties | None = None

        try:
            for page in self.api.list_secret_versions(key_vault_id, name):
                for properties in page:
                    if version:
                        if properties.version == version:
                            return properties
                        continue
                    if latest is None or _created_after(properties, latest):
                        latest = properties
        except SecretError:
            raise
        except Exception as e:
            raise SecretProviderError(str(e)) from e

        if version:
            raise SecretNotFoundError(
                f"the version {version!r} of the secret {name!r} was not found in the key vault {key_vault_id!r}"
            )
        if latest is None:
            raise SecretNotFoundError(f"the secret {name!r} was not found in the key vault {key_vault_id!r}")
        return latest


def _created_after(candidate: SecretProperties, current: SecretProperties) -> bool:
    if candidate.created_on is None:
        return False
    if current.created_on is None:
        return True
    return candidate.created_on > current.created_on
