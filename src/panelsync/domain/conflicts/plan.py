"""Reconciliation plans for one diverging protocol bucket.

A plan pairs the chosen source copy with every other copy of the bucket. It is
built on demand from a fresh report, handed to a batch applier and discarded.
Outcomes that leave nothing to apply (already converged, missing credentials)
are reported through ``PlanStatus`` rather than raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Final

from panelsync.domain.model import CredentialFamily

from .diff import locate_member
from .identity import client_identifier, credential_family, entry_locator, text_value
from .normalize import to_enabled, to_number

if TYPE_CHECKING:
    from panelsync.domain.model import ClientEntry

    from .diff import ProtocolConflictGroup

PLAN_ACTION: Final[str] = "update"


class UnknownSourceLocatorError(LookupError):
    """Raised when a requested source locator is not a member of the bucket."""

    def __init__(self, locator: str, *, protocol: str) -> None:
        self.locator = locator
        self.protocol = protocol
        super().__init__(f"Source locator {locator!r} is not part of the {protocol} group")


class SourceSelection(StrEnum):
    RECOMMENDED = "recommended"
    EXPLICIT = "explicit"
    FALLBACK = "fallback"


class PlanStatus(StrEnum):
    READY = "ready"
    CONVERGED = "converged"
    MISSING_CREDENTIAL = "missing_credential"
    MISSING_TARGET_IDENTIFIER = "missing_target_identifier"


@dataclass(frozen=True, slots=True, kw_only=True)
class PlanTarget:
    """Addressing data for one copy to overwrite."""

    server_id: str
    server_name: str
    inbound_id: int | str
    protocol: str
    email: str
    client_identifier: str
    locator: str

    @classmethod
    def from_entry(cls, entry: ClientEntry) -> PlanTarget:
        return cls(
            server_id=entry.server_id,
            server_name=entry.server_name,
            inbound_id=entry.inbound_id,
            protocol=entry.protocol,
            email=text_value(entry.email),
            client_identifier=client_identifier(entry),
            locator=entry_locator(entry),
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "serverId": self.server_id,
            "serverName": self.server_name,
            "inboundId": self.inbound_id,
            "protocol": self.protocol,
            "email": self.email,
            "clientIdentifier": self.client_identifier,
        }


@dataclass(frozen=True, slots=True, kw_only=True)
class ClientPayload:
    """Source values written onto every target."""

    id: str
    password: str
    email: str
    total_gb: int | float
    expiry_time: int | float
    enable: bool
    tg_id: str
    sub_id: str
    limit_ip: int | float
    flow: str

    @classmethod
    def from_entry(cls, entry: ClientEntry) -> ClientPayload:
        id_value = text_value(entry.id)
        password_value = text_value(entry.password)
        family = credential_family(entry.protocol)
        if family is CredentialFamily.UUID:
            id_value = id_value or password_value
        elif family is CredentialFamily.PASSWORD:
            password_value = password_value or id_value
        else:
            email_value = text_value(entry.email)
            id_value, password_value = (
                id_value or password_value or email_value,
                password_value or id_value or email_value,
            )
        return cls(
            id=id_value,
            password=password_value,
            email=text_value(entry.email),
            total_gb=to_number(entry.total_gb),
            expiry_time=to_number(entry.expiry_time),
            enable=to_enabled(entry.enable),
            tg_id=text_value(entry.tg_id),
            sub_id=text_value(entry.sub_id),
            limit_ip=to_number(entry.limit_ip),
            flow=text_value(entry.flow),
        )

    def has_credential(self, protocol: str) -> bool:
        family = credential_family(protocol)
        if family is CredentialFamily.UUID:
            return bool(self.id)
        if family is CredentialFamily.PASSWORD:
            return bool(self.password)
        return bool(self.id or self.password)

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "password": self.password,
            "email": self.email,
            "totalGB": self.total_gb,
            "expiryTime": self.expiry_time,
            "enable": self.enable,
            "tgId": self.tg_id,
            "subId": self.sub_id,
            "limitIp": self.limit_ip,
            "flow": self.flow,
        }


@dataclass(frozen=True, slots=True, kw_only=True)
class ReconciliationPlan:
    protocol: str
    source_entry: ClientEntry
    source_key: str
    selection: SourceSelection
    targets: tuple[PlanTarget, ...]
    client: ClientPayload
    status: PlanStatus
    action: str = PLAN_ACTION

    @property
    def is_actionable(self) -> bool:
        return self.status is PlanStatus.READY

    def to_dict(self) -> dict[str, object]:
        return {
            "action": self.action,
            "targets": [target.to_dict() for target in self.targets],
            "client": self.client.to_dict(),
        }


def build_plan(
    group: ProtocolConflictGroup,
    source_locator: str | None = None,
    *,
    allow_fallback: bool = False,
) -> ReconciliationPlan:
    """Pair the chosen source of ``group`` with every other copy.

    ``source_locator=None`` or a blank locator selects the recommended source.
    An unknown locator raises ``UnknownSourceLocatorError`` unless
    ``allow_fallback`` is set, in which case the first entry is used and the
    plan is marked as a fallback.
    """

    if not group.entries:
        raise ValueError("Cannot plan a reconciliation for an empty group")

    source, selection = _resolve_source(group, source_locator, allow_fallback=allow_fallback)
    source_key = entry_locator(source)
    targets = tuple(
        PlanTarget.from_entry(entry)
        for entry in group.entries
        if entry_locator(entry) != source_key
    )
    client = ClientPayload.from_entry(source)

    if not client.has_credential(group.protocol):
        status = PlanStatus.MISSING_CREDENTIAL
    elif not targets:
        status = PlanStatus.CONVERGED
    elif not all(target.client_identifier for target in targets):
        status = PlanStatus.MISSING_TARGET_IDENTIFIER
    else:
        status = PlanStatus.READY

    return ReconciliationPlan(
        protocol=group.protocol,
        source_entry=source,
        source_key=source_key,
        selection=selection,
        targets=targets,
        client=client,
        status=status,
    )


def _resolve_source(
    group: ProtocolConflictGroup,
    source_locator: str | None,
    *,
    allow_fallback: bool,
) -> tuple[ClientEntry, SourceSelection]:
    if source_locator is None or not source_locator.strip():
        recommended = locate_member(group, group.recommended_source_key)
        return recommended or group.entries[0], SourceSelection.RECOMMENDED

    source = locate_member(group, source_locator)
    if source is not None:
        return source, SourceSelection.EXPLICIT
    if not allow_fallback:
        raise UnknownSourceLocatorError(source_locator, protocol=group.protocol)
    return group.entries[0], SourceSelection.FALLBACK
