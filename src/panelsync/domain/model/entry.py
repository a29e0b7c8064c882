"""Client copies as observed on one backend inbound."""

from __future__ import annotations

from dataclasses import dataclass

type RawNumber = int | float | str | None


@dataclass(frozen=True, slots=True, kw_only=True)
class ClientEntry:
    """One provisioned copy of a subscriber on a specific server and inbound.

    Values are kept exactly as the backend reported them. Numeric slots may hold
    numeric strings or ``None`` and ``enable=None`` means the flag was absent;
    normalization happens in ``panelsync.domain.conflicts.diff``.
    """

    server_id: str
    server_name: str = ""
    inbound_id: int | str
    inbound_remark: str = ""
    inbound_port: int | None = None
    protocol: str
    email: str | None = None
    id: str | None = None
    password: str | None = None
    expiry_time: RawNumber = 0
    total_gb: RawNumber = 0
    enable: bool | None = None
    limit_ip: RawNumber = 0
    flow: str | None = None
    sub_id: str | None = None
    tg_id: str | int | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "serverId": self.server_id,
            "serverName": self.server_name,
            "inboundId": self.inbound_id,
            "inboundRemark": self.inbound_remark,
            "inboundPort": self.inbound_port,
            "protocol": self.protocol,
            "email": self.email,
            "id": self.id,
            "password": self.password,
            "expiryTime": self.expiry_time,
            "totalGB": self.total_gb,
            "enable": self.enable,
            "limitIp": self.limit_ip,
            "flow": self.flow,
            "subId": self.sub_id,
            "tgId": self.tg_id,
        }
