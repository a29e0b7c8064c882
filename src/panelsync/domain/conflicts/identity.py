"""Credential identifiers and copy locators.

Protocols authenticate clients through different credential slots: UUID-style
protocols use ``id`` while password-style protocols use ``password``. The
static family table below drives both identifier extraction and which fields
take part in comparison.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from panelsync.domain.model import ComparableField, CredentialFamily

if TYPE_CHECKING:
    from collections.abc import Mapping

    from panelsync.domain.model import ClientEntry


LOCATOR_DELIMITER: Final[str] = "|"

_PROTOCOL_FAMILIES: Final[Mapping[str, CredentialFamily]] = MappingProxyType(
    {
        "vmess": CredentialFamily.UUID,
        "vless": CredentialFamily.UUID,
        "trojan": CredentialFamily.PASSWORD,
        "shadowsocks": CredentialFamily.PASSWORD,
    }
)

_CREDENTIAL_FIELDS: Final[Mapping[CredentialFamily, tuple[ComparableField, ...]]] = (
    MappingProxyType(
        {
            CredentialFamily.UUID: (ComparableField.ID,),
            CredentialFamily.PASSWORD: (ComparableField.PASSWORD,),
            CredentialFamily.UNKNOWN: (ComparableField.ID, ComparableField.PASSWORD),
        }
    )
)


def text_value(value: object) -> str:
    """Render a raw slot as trimmed text; missing and falsy-empty values become ``""``."""

    if value is None or value is False:
        return ""
    return str(value).strip()


def normalize_protocol(value: object) -> str:
    return text_value(value).lower()


def normalize_email(value: object) -> str:
    return text_value(value).lower()


def credential_family(protocol: object) -> CredentialFamily:
    return _PROTOCOL_FAMILIES.get(normalize_protocol(protocol), CredentialFamily.UNKNOWN)


def credential_fields(protocol: object) -> tuple[ComparableField, ...]:
    """Credential field(s) compared for ``protocol``; unknown protocols compare both."""

    return _CREDENTIAL_FIELDS[credential_family(protocol)]


def client_identifier(entry: ClientEntry) -> str:
    """Return the credential that addresses ``entry`` on its backend.

    Password-style protocols prefer ``password``, everything else prefers ``id``;
    ``email`` is the last resort. An empty result means the copy has no usable
    identifier.
    """

    if credential_family(entry.protocol) is CredentialFamily.PASSWORD:
        candidates = (entry.password, entry.id, entry.email)
    else:
        candidates = (entry.id, entry.password, entry.email)
    for candidate in candidates:
        value = text_value(candidate)
        if value:
            return value
    return ""


def _escape(component: str) -> str:
    return component.replace("%", "%25").replace(LOCATOR_DELIMITER, "%7C")


def entry_locator(entry: ClientEntry) -> str:
    """Deterministic key addressing exactly one physical copy."""

    components = (
        text_value(entry.server_id),
        text_value(entry.inbound_id),
        normalize_protocol(entry.protocol),
        client_identifier(entry),
        normalize_email(entry.email),
    )
    return LOCATOR_DELIMITER.join(_escape(component) for component in components)
