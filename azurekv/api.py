# SPDX-License-Identifier: MIT
# Copyright (c) 2025 azurekv contributors

"""Interfaces of the remote services the reconciler talks to."""

from abc import ABC, abstractmethod
from typing import Any, Iterable, Iterator, Optional

from .models import SecretAttributes, SecretProperties


def close_quietly(resource: Any) -> None:
    """Call ``resource.close()`` if it has one, suppressing cleanup errors."""
    if resource is None:
        return
    try:
        close_method = getattr(resource, "close", None)
        if callable(close_method):
            close_method()
    except (AttributeError, TypeError, RuntimeError):
        # Cleanup failures must not mask the caller's outcome
        pass


class VaultSecretsAPI(ABC):
    """Data-plane operations on secrets in a vault.

    Implementations address the vault by its ARM resource ID and raise
    ``SecretNotFoundError`` for missing secrets and ``SecretProviderError``
    for any other failure.
    """

    @abstractmethod
    def list_secret_versions(self, key_vault_id: str, name: str) -> Iterator[Iterable[SecretProperties]]:
        """List every version of a secret, one page at a time.

        Args:
            key_vault_id: Resource ID of the vault
            name: Name of the secret

        Returns:
            Lazy iterator of pages; each page is an iterable of version properties
        """
        pass

    @abstractmethod
    def set_secret(
        self,
        key_vault_id: str,
        name: str,
        value: str,
        content_type: Optional[str] = None,
        attributes: Optional[SecretAttributes] = None,
        tags: Optional[dict[str, str]] = None,
    ) -> SecretProperties:
        """Store a value, minting a new version of the secret.

        Returns:
            Properties of the newly created version
        """
        pass

    @abstractmethod
    def update_secret_properties(
        self,
        key_vault_id: str,
        name: str,
        version: str,
        content_type: Optional[str] = None,
        attributes: Optional[SecretAttributes] = None,
        tags: Optional[dict[str, str]] = None,
    ) -> SecretProperties:
        """Change metadata of an existing version without minting a new one.

        Returns:
            Properties of the updated version
        """
        pass

    @abstractmethod
    def delete_secret(self, key_vault_id: str, name: str) -> None:
        """Delete a secret together with all of its versions."""
        pass

    def close(self) -> None:
        """Release any resources held by this client."""
        pass


class ResourceDirectoryAPI(ABC):
    """Lookup of ARM resources within one subscription."""

    @abstractmethod
    def find_vault_resource_id(self, vault_name: str) -> Optional[str]:
        """Return the resource ID of the vault with exactly this name.

        Returns:
            The vault's resource ID, or None if no such vault is visible

        Raises:
            SecretProviderError: If the lookup itself fails
        """
        pass

    def close(self) -> None:
        """Release any resources held by this client."""
        pass
