# SPDX-License-Identifier: MIT
# Copyright (c) 2025 azurekv contributors

"""Mapping of vault responses onto persisted secret records."""

from typing import Any, Mapping

from .exceptions import SerializationError
from .identifiers import parse_secret_id
from .models import SecretProperties, SecretRecord, format_rfc3339


def set_secret_data(record: SecretRecord, properties: SecretProperties) -> SecretRecord:
    """Fill the computed attributes of ``record`` from a vault response.

    ``content_type``, the validity dates and ``tags`` are only overwritten
    when the response carries them, so configured values survive responses
    that omit them.

    Args:
        record: Record to update in place; ``key_vault_id`` must be set
        properties: Properties returned by the vault

    Returns:
        The same record

    Raises:
        InvalidIdentifierError: If the response ID is not a versioned secret URI
        SerializationError: If the tags cannot be represented as strings
    """
    _, name, version = parse_secret_id(properties.id)
    secret_id = properties.id.rstrip("/")

    record.id = secret_id
    record.versionless_id = secret_id[: -len("/" + version)]
    record.version = version

    record.resource_versionless_id = f"{record.key_vault_id}/secrets/{name}"
    record.resource_id = f"{record.resource_versionless_id}/versions/{version}"

    if properties.content_type is not None:
        record.content_type = properties.content_type

    if properties.not_before is not None:
        record.not_before_date = format_rfc3339(properties.not_before)
    if properties.expires_on is not None:
        record.expiration_date = format_rfc3339(properties.expires_on)

    if properties.tags is not None:
        record.tags = convert_tags(properties.tags)

    return record


def build_secret_record(key_vault_id: str, properties: SecretProperties) -> SecretRecord:
    """Build a fresh record for a version of a secret in ``key_vault_id``."""
    record = SecretRecord(name=properties.name, key_vault_id=key_vault_id)
    return set_secret_data(record, properties)


def convert_tags(tags: Mapping[Any, Any]) -> dict[str, str]:
    """Copy a tag mapping, requiring string keys and values.

    Raises:
        SerializationError: If a key or value is not a string
    """
    try:
        items = list(tags.items())
    except AttributeError as e:
        raise SerializationError(f"Tags must be a mapping, got {type(tags).__name__}") from e

    converted: dict[str, str] = {}
    for key, value in items:
        if not isinstance(key, str):
            raise SerializationError(f"Tag key {key!r} is not a string")
        if not isinstance(value, str):
            raise SerializationError(f"Value of tag {key!r} is not a string: {value!r}")
        converted[key] = value
    return converted
