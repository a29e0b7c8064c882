"""Apply reconciliation plans to panel backends."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field, replace
from logging import getLogger
from typing import TYPE_CHECKING, Final

import httpx

from panelsync.config.batch import BatchConfig, get_batch_config
from panelsync.config.panels import PanelsConfig, get_panels_config
from panelsync.domain.conflicts.identity import credential_family, normalize_protocol, text_value
from panelsync.domain.model import CredentialFamily
from panelsync.domain.ports.applying import BatchApplier, BatchApplyResult, TargetOutcome

from .client import PanelAPIError, default_client_factory, open_panel_session

if TYPE_CHECKING:
    from panelsync.config.panels import PanelServerConfig
    from panelsync.domain.conflicts import PlanTarget, ReconciliationPlan

    from .client import ClientFactory, PanelSession

log = getLogger(__name__)

CLIENT_PROTOCOLS: Final = frozenset({"vmess", "vless", "trojan", "shadowsocks"})
FLOW_PROTOCOLS: Final = frozenset({"vless"})

type TargetKey = tuple[str, str, str]


def target_key(target: PlanTarget) -> TargetKey:
    return (
        text_value(target.server_id),
        text_value(target.inbound_id),
        target.client_identifier,
    )


def client_for_target(client: dict[str, object], target: PlanTarget) -> dict[str, object]:
    """Adapt the plan's client payload to the protocol of ``target``.

    The target's own identifier fills a missing credential, and ``flow`` is only
    sent to protocols that understand it.
    """

    protocol = normalize_protocol(target.protocol)
    id_value = text_value(client.get("id"))
    password_value = text_value(client.get("password"))
    fallback = target.client_identifier
    family = credential_family(protocol)
    if family is CredentialFamily.UUID:
        id_value = id_value or fallback or password_value
    elif family is CredentialFamily.PASSWORD:
        password_value = password_value or fallback or id_value
    else:
        id_value = id_value or password_value or fallback
        password_value = password_value or id_value

    adapted = dict(client)
    adapted["id"] = id_value
    adapted["password"] = password_value
    if protocol and protocol not in FLOW_PROTOCOLS:
        adapted["flow"] = ""
    return adapted


def missing_credential(client: dict[str, object], protocol: str) -> str | None:
    family = credential_family(protocol)
    if family is CredentialFamily.UUID and not client.get("id"):
        return "Missing client UUID"
    if family is CredentialFamily.PASSWORD and not client.get("password"):
        return "Missing client password"
    if family is CredentialFamily.UNKNOWN and not (client.get("id") or client.get("password")):
        return "Missing client id/password"
    return None


@dataclass(slots=True)
class PanelBatchApplier:
    """Push a plan's source values onto every target copy.

    Each distinct target (server, inbound, identifier) is written at most once per
    call and update requests are never retried. Failures are reported per target
    and never abort the rest of the batch.
    """

    config: PanelsConfig = field(default_factory=get_panels_config)
    batch: BatchConfig = field(default_factory=get_batch_config)
    client_factory: ClientFactory = field(default=default_client_factory)

    def __call__(self, plan: ReconciliationPlan) -> BatchApplyResult:
        return asyncio.run(self.apply(plan))

    async def apply(self, plan: ReconciliationPlan) -> BatchApplyResult:
        if not plan.is_actionable:
            raise ValueError(f"Refusing to apply a plan with status {plan.status}")

        client = plan.client.to_dict()
        first_index: dict[TargetKey, int] = {}
        by_server: dict[str, list[tuple[int, PlanTarget]]] = {}
        for index, target in enumerate(plan.targets):
            key = target_key(target)
            if key in first_index:
                continue
            first_index[key] = index
            by_server.setdefault(target.server_id, []).append((index, target))

        outcomes: dict[int, TargetOutcome] = {}
        semaphore = asyncio.Semaphore(self.batch.effective_concurrency)
        await asyncio.gather(
            *(
                self._apply_server(server_id, items, client, semaphore, outcomes)
                for server_id, items in by_server.items()
            )
        )

        ordered: list[TargetOutcome] = []
        for index, target in enumerate(plan.targets):
            original = first_index[target_key(target)]
            if original == index:
                ordered.append(outcomes[index])
                continue
            log.warning("Duplicate target %s in plan; not applied twice", target.locator)
            ordered.append(
                replace(
                    outcomes[original],
                    target=target,
                    message=f"Duplicate of an earlier target: {outcomes[original].message}",
                )
            )

        result = BatchApplyResult(action=plan.action, outcomes=tuple(ordered))
        summary = result.summary
        log.info(
            "Applied %s plan: total=%s success=%s failed=%s",
            plan.protocol,
            summary.total,
            summary.success,
            summary.failed,
        )
        return result

    async def _apply_server(
        self,
        server_id: str,
        items: list[tuple[int, PlanTarget]],
        client: dict[str, object],
        semaphore: asyncio.Semaphore,
        outcomes: dict[int, TargetOutcome],
    ) -> None:
        server = self.config.server(server_id)
        if server is None:
            for index, target in items:
                outcomes[index] = TargetOutcome(
                    target=target, success=False, message=f"Unknown server: {server_id}"
                )
            return

        try:
            async with open_panel_session(server, client_factory=self.client_factory) as session:
                await asyncio.gather(
                    *(
                        self._apply_target(session, index, target, client, semaphore, outcomes)
                        for index, target in items
                    )
                )
        except (httpx.HTTPError, PanelAPIError) as exc:
            log.warning("Could not open a session on %s: %s", _server_label(server), exc)
            for index, target in items:
                outcomes.setdefault(
                    index,
                    TargetOutcome(target=target, success=False, message=str(exc), retriable=True),
                )

    async def _apply_target(
        self,
        session: PanelSession,
        index: int,
        target: PlanTarget,
        client: dict[str, object],
        semaphore: asyncio.Semaphore,
        outcomes: dict[int, TargetOutcome],
    ) -> None:
        protocol = normalize_protocol(target.protocol)
        if protocol and protocol not in CLIENT_PROTOCOLS:
            outcomes[index] = TargetOutcome(
                target=target, success=False, message=f"Unsupported client protocol: {protocol}"
            )
            return
        if not target.client_identifier:
            outcomes[index] = TargetOutcome(
                target=target, success=False, message="Missing client identifier"
            )
            return

        payload = client_for_target(client, target)
        problem = missing_credential(payload, protocol)
        if problem is not None:
            outcomes[index] = TargetOutcome(target=target, success=False, message=problem)
            return

        async with semaphore:
            try:
                message = await session.update_client(
                    inbound_id=target.inbound_id,
                    client_identifier=target.client_identifier,
                    client=payload,
                )
            except (httpx.HTTPError, PanelAPIError) as exc:
                log.warning("Update of %s failed: %s", target.locator, exc)
                outcomes[index] = TargetOutcome(
                    target=target, success=False, message=str(exc), retriable=True
                )
                return
        outcomes[index] = TargetOutcome(target=target, success=True, message=message)


def _server_label(server: PanelServerConfig) -> str:
    return server.name or server.id


if TYPE_CHECKING:
    _applier_check: BatchApplier = PanelBatchApplier()
