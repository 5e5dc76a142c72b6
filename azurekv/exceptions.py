# SPDX-License-Identifier: MIT
# Copyright (c) 2025 azurekv contributors

"""Exceptions for Key Vault secret reconciliation."""


class SecretError(Exception):
    """Base exception for secret reconciliation errors."""
    pass


class SecretNotFoundError(SecretError):
    """Raised when a secret, a secret version, or a vault does not exist."""
    pass


class InvalidIdentifierError(SecretError):
    """Raised when a vault or secret identifier is malformed."""
    pass


class SecretProviderError(SecretError):
    """Raised when a call to the vault or resource directory fails."""
    pass


class MissingConfigurationError(SecretError):
    """Raised when a required provider setting is absent."""
    pass


class SerializationError(SecretError):
    """Raised when tags or attributes cannot be converted."""
    pass
