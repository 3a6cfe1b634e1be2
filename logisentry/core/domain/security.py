"""
Security Domain Models - Accounts, login/access events and anomaly records.

Raw string fields coming from upstream (roles, actions) are mapped onto
small closed enums. Values outside those sets parse to ``None`` and the
rule engine ignores them.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from logisentry.core.windowing import minute_bucket


class Role(str, Enum):
    ADMIN = "admin"
    ANALYST = "analyst"
    OPERATOR = "operator"

    @classmethod
    def parse(cls, raw: "str | Role | None") -> "Role | None":
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, str):
            return None
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return None


class AccessAction(str, Enum):
    READ = "read"
    WRITE = "write"
    DELETE = "delete"
    EXPORT = "export"

    @classmethod
    def parse(cls, raw: "str | AccessAction | None") -> "AccessAction | None":
        """Map a raw action (including SQL verbs) onto the closed set."""
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, str):
            return None
        value = raw.strip().lower()
        value = _ACTION_ALIASES.get(value, value)
        try:
            return cls(value)
        except ValueError:
            return None


_ACTION_ALIASES = {
    "select": "read",
    "update": "write",
    "insert": "write",
}


class AnomalyKind(str, Enum):
    LOGIN_BRUTE_FORCE = "LOGIN_BRUTE_FORCE"
    SENSITIVE_READ_BURST = "SENSITIVE_READ_BURST"
    RBAC_VIOLATION = "RBAC_VIOLATION"
    EXPORT_SPIKE = "EXPORT_SPIKE"
    NEW_GEO_LOGIN = "NEW_GEO_LOGIN"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.LOW: 0,
    Severity.MEDIUM: 1,
    Severity.HIGH: 2,
    Severity.CRITICAL: 3,
}


@dataclass(frozen=True)
class AccountProfile:
    """A monitored principal."""

    id: str
    role: Role | str
    name: str = ""
    email: str = ""
    region: str | None = None

    @property
    def parsed_role(self) -> Role | None:
        return Role.parse(self.role)


@dataclass(frozen=True)
class LoginAttempt:
    account_id: str
    succeeded: bool
    timestamp: datetime
    location: str | None = None
    ip: str | None = None


@dataclass(frozen=True)
class AccessEvent:
    """One action performed by an account against a named resource."""

    account_id: str
    action: AccessAction | str
    resource_name: str
    timestamp: datetime
    size_estimate_mb: float | None = None

    @property
    def parsed_action(self) -> AccessAction | None:
        return AccessAction.parse(self.action)

    @property
    def size_mb(self) -> float:
        return self.size_estimate_mb or 0.0


DedupKey = tuple[AnomalyKind, str | None, datetime]


@dataclass(frozen=True)
class AnomalyRecord:
    kind: AnomalyKind
    severity: Severity
    description: str
    detected_at: datetime
    account_id: str | None = None
    metadata: dict = field(default_factory=dict, compare=False, hash=False)

    @property
    def dedup_key(self) -> DedupKey:
        """(kind, account, minute) triple used to collapse repeat detections."""
        return (self.kind, self.account_id, minute_bucket(self.detected_at))

    def to_dict(self) -> dict:
        return {
            "account_id": self.account_id,
            "kind": self.kind.value,
            "severity": self.severity.value,
            "description": self.description,
            "detected_at": self.detected_at.isoformat(),
            "metadata": dict(self.metadata),
        }
