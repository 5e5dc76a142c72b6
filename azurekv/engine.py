# SPDX-License-Identifier: MIT
# Copyright (c) 2025 azurekv contributors

"""Create/read/update/delete/import of a write-only Key Vault secret."""

from dataclasses import replace
from typing import Any, Callable

from .api import ResourceDirectoryAPI, VaultSecretsAPI, close_quietly
from .exceptions import (
    InvalidIdentifierError,
    MissingConfigurationError,
    SecretError,
    SecretNotFoundError,
    SecretProviderError,
)
from .identifiers import extract_vault_and_secret_name, extract_vault_name
from .log_factory import create_logger
from .logger import Logger
from .models import UNKNOWN, SecretConfig, SecretIdentity, SecretRecord
from .plan import PlanDecision, modify_plan
from .record import convert_tags, set_secret_data
from .resolver import VersionResolver

LOG_KEY_RESOURCE_ID = "resource_id"
IMPORTED_VALUE_WO_VERSION = 1

default_logger = create_logger(logger_type="stderr", level="INFO", name="azurekv.engine")


class SecretReconciler:
    """Reconciles one managed secret against Azure Key Vault.

    The value is taken from ``SecretConfig.value_wo`` when a version is minted
    and is never stored on the returned records. ``value_wo_version`` is the
    only signal for minting: a changed counter calls ``set_secret``, an
    unchanged one only updates the properties of the current version.

    Example:
        >>> reconciler = SecretReconciler(secrets_api, directory_api, subscription_id="...")
        >>> record, identity = reconciler.create(config)
        >>> record = reconciler.update(record, new_config)

    Attributes:
        secrets_api: Data-plane collaborator
        directory_api: Resource lookup used by legacy-ID import
        subscription_id: Subscription searched by legacy-ID import
        resolver: VersionResolver over ``secrets_api``
    """

    def __init__(
        self,
        secrets_api: VaultSecretsAPI,
        directory_api: ResourceDirectoryAPI | None = None,
        subscription_id: str | None = None,
        logger: Logger | None = None,
        credential: Any = None,
    ):
        self.secrets_api = secrets_api
        self.directory_api = directory_api
        self.subscription_id = subscription_id
        self.resolver = VersionResolver(secrets_api)
        self._logger = logger if logger is not None else default_logger
        self._credential = credential

    def close(self) -> None:
        """Release the collaborators' clients and the owned credential, if any."""
        self.secrets_api.close()
        if self.directory_api is not None:
            self.directory_api.close()
        close_quietly(self._credential)
        self._credential = None

    def __enter__(self) -> "SecretReconciler":
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()

    def plan(self, prior_state: SecretRecord | None, config: SecretConfig | None) -> PlanDecision:
        """Predict computed attributes before apply. See ``modify_plan``."""
        return modify_plan(prior_state, config, logger=self._logger)

    def create(self, config: SecretConfig) -> tuple[SecretRecord, SecretIdentity]:
        """Mint the first version of a secret.

        Args:
            config: Configuration including the write-only value

        Returns:
            The new record and its identity

        Raises:
            InvalidIdentifierError: If name or key_vault_id is malformed
            MissingConfigurationError: If the value or its version is absent
            SerializationError: If dates or tags cannot be converted
            SecretProviderError: If the vault call fails
        """
        config.validate()
        log = self._logger.bind(key_vault_id=config.key_vault_id, name=config.name)
        if config.value_wo_version is None:
            raise MissingConfigurationError("value_wo_version is required to create a secret")

        record = config.to_record()
        properties = self._call(
            log,
            "set secret",
            self.secrets_api.set_secret,
            config.key_vault_id,
            config.name,
            _require_value(config),
            content_type=config.content_type,
            attributes=config.secret_attributes(),
            tags=convert_tags(config.tags),
        )
        set_secret_data(record, properties)
        log.info("Created secret", **{LOG_KEY_RESOURCE_ID: record.id})
        return record, record.identity

    def read(self, state: SecretRecord) -> tuple[SecretRecord, SecretIdentity]:
        """Refresh a record from the latest version in the vault.

        Returns:
            A new record; ``state`` is left untouched

        Raises:
            SecretNotFoundError: If the secret no longer exists
            SecretProviderError: If the vault call fails
        """
        log = self._logger.bind(**{LOG_KEY_RESOURCE_ID: state.id})
        properties = self._call(log, "get secret properties", self.resolver.resolve, state.key_vault_id, state.name)
        record = set_secret_data(_copy(state), properties)
        log.debug("Read secret", version=record.version)
        return record, record.identity

    def read_data_source(self, name: str, key_vault_id: str, version: str | None = None) -> SecretRecord:
        """Look up an existing secret without managing it.

        Args:
            name: Name of the secret
            key_vault_id: Resource ID of the vault
            version: Optional version; the latest one when omitted

        Returns:
            Record without ``value_wo_version``

        Raises:
            InvalidIdentifierError: If key_vault_id is malformed
            SecretNotFoundError: If the secret or version does not exist
            SecretProviderError: If the vault call fails
        """
        extract_vault_name(key_vault_id)
        log = self._logger.bind(key_vault_id=key_vault_id, name=name)
        properties = self._call(log, "get secret properties", self.resolver.resolve, key_vault_id, name, version)
        return set_secret_data(SecretRecord(name=name, key_vault_id=key_vault_id), properties)

    def update(self, state: SecretRecord, config: SecretConfig) -> SecretRecord:
        """Apply a configuration change to an existing secret.

        A changed ``value_wo_version`` mints a new version from ``value_wo``.
        Otherwise only content type, validity dates and tags of the version
        recorded in ``state`` are updated.

        Returns:
            A new record; ``state`` is left untouched

        Raises:
            InvalidIdentifierError: If name or key_vault_id would change
            MissingConfigurationError: If a rotation has no value to store
            SerializationError: If dates or tags cannot be converted
            SecretProviderError: If the vault call fails
        """
        config.validate()
        if (config.name, config.key_vault_id) != (state.name, state.key_vault_id):
            raise InvalidIdentifierError(
                "name and key_vault_id cannot be changed in place; the secret must be replaced"
            )
        log = self._logger.bind(**{LOG_KEY_RESOURCE_ID: state.id})

        counter = config.value_wo_version if config.value_wo_version is not None else state.value_wo_version
        attributes = config.secret_attributes()
        tags = convert_tags(config.tags)

        record = replace(config.to_record(), value_wo_version=counter)
        for attr in ("id", "versionless_id", "version", "resource_id", "resource_versionless_id"):
            setattr(record, attr, getattr(state, attr))

        if counter != state.value_wo_version:
            log.debug("Minting a new secret version", value_wo_version=counter)
            properties = self._call(
                log,
                "set secret",
                self.secrets_api.set_secret,
                state.key_vault_id,
                state.name,
                _require_value(config),
                content_type=config.content_type,
                attributes=attributes,
                tags=tags,
            )
        else:
            version = state.version
            if not version:
                version = self._call(
                    log, "get secret properties", self.resolver.resolve, state.key_vault_id, state.name
                ).version
            log.debug("Updating secret properties", version=version)
            properties = self._call(
                log,
                "update secret properties",
                self.secrets_api.update_secret_properties,
                state.key_vault_id,
                state.name,
                version,
                content_type=config.content_type,
                attributes=attributes,
                tags=tags,
            )

        set_secret_data(record, properties)
        log.info("Updated secret", version=record.version)
        return record

    def delete(self, state: SecretRecord) -> None:
        """Delete the secret and all of its versions.

        Raises:
            SecretNotFoundError: If the secret is already gone
            SecretProviderError: If the vault call fails
        """
        log = self._logger.bind(**{LOG_KEY_RESOURCE_ID: state.id})
        self._call(log, "delete secret", self.secrets_api.delete_secret, state.key_vault_id, state.name)
        log.info("Deleted secret")

    def import_state(
        self,
        identity: SecretIdentity | None = None,
        import_id: str | None = None,
    ) -> SecretRecord:
        """Seed state for an existing secret.

        With ``identity`` the vault and name are taken as given. With a
        legacy ``import_id`` (a secret URI) the vault name is parsed from the
        URI and its resource ID is looked up in the configured subscription.
        Either way ``value_wo_version`` starts at 1.

        Returns:
            Partial record; a following ``read`` fills the remaining attributes

        Raises:
            InvalidIdentifierError: If neither form is given or it is malformed
            MissingConfigurationError: If a legacy ID is imported without a subscription
            SecretNotFoundError: If the secret or vault cannot be found
            SecretProviderError: If a remote call fails
        """
        if identity is not None:
            extract_vault_name(identity.key_vault_id)
            log = self._logger.bind(key_vault_id=identity.key_vault_id, name=identity.name)
            properties = self._call(
                log, "get secret properties", self.resolver.resolve, identity.key_vault_id, identity.name
            )
            record = SecretRecord(name=identity.name, key_vault_id=identity.key_vault_id, id=properties.id)
        elif import_id:
            log = self._logger.bind(**{LOG_KEY_RESOURCE_ID: import_id})
            if not self.subscription_id:
                raise MissingConfigurationError("Subscription ID is required to import a secret")

            vault_name, name = extract_vault_and_secret_name(import_id)
            if self.directory_api is None:
                raise MissingConfigurationError("A resource directory client is required to import a secret by ID")

            key_vault_id = self._call(log, "get key vaults", self.directory_api.find_vault_resource_id, vault_name)
            if not key_vault_id:
                raise SecretNotFoundError(
                    f"the key vault {vault_name!r} not found; make sure that the key vault name is correct "
                    f"and that you have the \"Microsoft.KeyVault/vaults/read\" permission"
                )
            record = SecretRecord(name=name, key_vault_id=key_vault_id, id=import_id)
        else:
            raise InvalidIdentifierError("Either an identity or an import ID is required to import a secret")

        record.value_wo_version = IMPORTED_VALUE_WO_VERSION
        log.info("Imported secret", key_vault_id=record.key_vault_id, **{LOG_KEY_RESOURCE_ID: record.id})
        return record

    def _call(self, log: Logger, action: str, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Invoke a collaborator, logging failures and normalising unexpected errors."""
        try:
            return func(*args, **kwargs)
        except SecretError as e:
            log.error(f"Failed to {action}", error=str(e))
            raise
        except Exception as e:
            log.error(f"Failed to {action}", error=str(e))
            raise SecretProviderError(str(e)) from e


def _require_value(config: SecretConfig) -> str:
    if config.value_wo is None or config.value_wo is UNKNOWN:
        raise MissingConfigurationError("value_wo must be known to store a new secret version")
    return config.value_wo


def _copy(record: SecretRecord) -> SecretRecord:
    return replace(record, tags=dict(record.tags))
