"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class CredentialFamily(StrEnum):
    """Which credential slot a proxy protocol authenticates clients with."""

    UUID = "uuid"
    PASSWORD = "password"
    UNKNOWN = "unknown"


class IdentityType(StrEnum):
    """How copies of one logical subscriber were correlated."""

    EMAIL = "email"
    IDENTIFIER = "identifier"


class ComparableField(StrEnum):
    """Client fields compared across copies, valued by their wire name."""

    ID = "id"
    PASSWORD = "password"
    EXPIRY_TIME = "expiryTime"
    TOTAL_GB = "totalGB"
    ENABLE = "enable"
    LIMIT_IP = "limitIp"
    FLOW = "flow"
    SUB_ID = "subId"
    EMAIL = "email"


class ConflictType(StrEnum):
    CREDENTIAL_MISMATCH = "credential_mismatch"
    EXPIRY_MISMATCH = "expiry_mismatch"
    QUOTA_MISMATCH = "quota_mismatch"
    ENABLE_MISMATCH = "enable_mismatch"
    LIMIT_IP_MISMATCH = "limit_ip_mismatch"
    FLOW_MISMATCH = "flow_mismatch"
    SUBID_MISMATCH = "subid_mismatch"
    EMAIL_MISMATCH = "email_mismatch"


class Severity(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
