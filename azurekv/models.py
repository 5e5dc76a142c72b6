# SPDX-License-Identifier: MIT
# Copyright (c) 2025 azurekv contributors

"""Data models for Key Vault secret state, configuration and vault responses."""

import re
from dataclasses import dataclass, field, fields
from datetime import datetime, timedelta, timezone
from typing import Any

from .exceptions import InvalidIdentifierError, SerializationError
from .identifiers import extract_vault_name, parse_secret_id


class _Unknown:
    """Marker for values the orchestrator will only know after apply."""

    _instance = None

    def __new__(cls) -> "_Unknown":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNKNOWN"

    def __bool__(self) -> bool:
        return False


UNKNOWN: Any = _Unknown()

RFC3339_PATTERN = re.compile(
    r"\A(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})\Z"
)


def parse_rfc3339(value: str) -> datetime:
    """Parse an RFC 3339 timestamp into an aware datetime.

    A time of day and an explicit ``Z`` or numeric offset are required;
    fractional seconds beyond microseconds are truncated.

    Raises:
        SerializationError: If the value is not a valid timestamp
    """
    match = RFC3339_PATTERN.match(value) if isinstance(value, str) else None
    if match is None:
        raise SerializationError(f"Invalid RFC 3339 timestamp {value!r}: expected YYYY-MM-DDTHH:MM:SS[.frac](Z|+HH:MM)")

    year, month, day, hour, minute, second, fraction, zone = match.groups()
    try:
        if zone in ("Z", "z"):
            tzinfo = timezone.utc
        else:
            sign = -1 if zone[0] == "-" else 1
            tzinfo = timezone(sign * timedelta(hours=int(zone[1:3]), minutes=int(zone[4:6])))
        return datetime(
            int(year),
            int(month),
            int(day),
            int(hour),
            int(minute),
            int(second),
            int((fraction or "").ljust(6, "0")[:6]),
            tzinfo=tzinfo,
        )
    except ValueError as e:
        raise SerializationError(f"Invalid RFC 3339 timestamp {value!r}: {e}") from e


def format_rfc3339(value: datetime) -> str:
    """Render a datetime as a canonical UTC RFC 3339 string."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class SecretAttributes:
    """Validity window sent with set/update calls."""
    not_before: datetime | None = None
    expires_on: datetime | None = None


@dataclass
class SecretProperties:
    """Metadata of one secret version as returned by the vault.

    Attribute names follow ``azure.keyvault.secrets.SecretProperties``.
    """
    id: str
    created_on: datetime | None = None
    not_before: datetime | None = None
    expires_on: datetime | None = None
    content_type: str | None = None
    tags: dict[str, str] | None = None
    enabled: bool | None = None

    @property
    def name(self) -> str:
        return parse_secret_id(self.id)[1]

    @property
    def version(self) -> str:
        return parse_secret_id(self.id)[2]


@dataclass(frozen=True)
class SecretIdentity:
    """Stable identity of a managed secret, used for identity-based import."""
    name: str
    key_vault_id: str


@dataclass
class SecretRecord:
    """Persisted state of one secret in one vault.

    The same record shape serves the managed resource and the read-only data
    source; the data source leaves ``value_wo_version`` unset. The plaintext
    secret value is deliberately not a field.
    """
    name: str
    key_vault_id: str
    id: str | None = None
    versionless_id: str | None = None
    version: str | None = None
    resource_id: str | None = None
    resource_versionless_id: str | None = None
    content_type: str | None = None
    not_before_date: str | None = None
    expiration_date: str | None = None
    tags: dict[str, str] = field(default_factory=dict)
    value_wo_version: int | None = None

    @property
    def identity(self) -> SecretIdentity:
        return SecretIdentity(name=self.name, key_vault_id=self.key_vault_id)

    def to_state(self) -> dict[str, Any]:
        """Return the attributes persisted by the orchestrator."""
        state = {f.name: getattr(self, f.name) for f in fields(self)}
        state["tags"] = dict(self.tags)
        return state

    @classmethod
    def from_state(cls, state: dict[str, Any]) -> "SecretRecord":
        """Rebuild a record from persisted attributes, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in state.items() if key in known}
        values["tags"] = dict(values.get("tags") or {})
        return cls(**values)


@dataclass
class SecretConfig:
    """Configuration proposed by the orchestrator for a managed secret.

    ``value_wo`` is ``None`` when absent from configuration and ``UNKNOWN``
    when the orchestrator has not resolved it yet.
    """
    name: str
    key_vault_id: str
    value_wo: Any = field(default=None, repr=False)
    value_wo_version: int | None = None
    content_type: str = ""
    not_before_date: str | None = None
    expiration_date: str | None = None
    tags: dict[str, str] = field(default_factory=dict)

    def validate(self) -> None:
        """Check the identity attributes.

        Raises:
            InvalidIdentifierError: If name is empty or key_vault_id is malformed
        """
        if not self.name:
            raise InvalidIdentifierError("Secret name must not be empty")
        extract_vault_name(self.key_vault_id)

    def secret_attributes(self) -> SecretAttributes:
        """Parse the configured validity window.

        Raises:
            SerializationError: If either date is not RFC 3339
        """
        attributes = SecretAttributes()
        if self.expiration_date is not None:
            attributes.expires_on = parse_rfc3339(self.expiration_date)
        if self.not_before_date is not None:
            attributes.not_before = parse_rfc3339(self.not_before_date)
        return attributes

    def to_record(self) -> SecretRecord:
        """Seed a record with the configured, non-computed attributes."""
        return SecretRecord(
            name=self.name,
            key_vault_id=self.key_vault_id,
            content_type=self.content_type,
            not_before_date=self.not_before_date,
            expiration_date=self.expiration_date,
            tags=dict(self.tags),
            value_wo_version=self.value_wo_version,
        )
