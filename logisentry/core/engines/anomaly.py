"""
Anomaly Rule Engine - Detects suspicious account activity.

Runs independent rules over trailing windows of login attempts and data
access events ending at an explicit as-of time:

- LOGIN_BRUTE_FORCE: failed logins per account in the last 10 minutes
- SENSITIVE_READ_BURST: MB read from sensitive resources in the last 5 minutes
- RBAC_VIOLATION: each access to a resource the account's role may not touch
- EXPORT_SPIKE: each large export, whoever performed it
- NEW_GEO_LOGIN: successful login from an unseen location (opt-in)

Raw detections are sorted newest first (then most severe first) and
collapsed on (kind, account, minute).
"""

import logging
import math
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Collection, Hashable, Iterable, Mapping, Sequence

from logisentry.core.domain.config import RuleConfig, is_real_number
from logisentry.core.domain.security import (
    AccessAction,
    AccessEvent,
    AccountProfile,
    AnomalyKind,
    AnomalyRecord,
    DedupKey,
    LoginAttempt,
    Severity,
)
from logisentry.core.windowing import (
    as_utc,
    in_trailing_window,
    is_sane_timestamp,
    latest_timestamp,
    trailing,
)

logger = logging.getLogger(__name__)

LOGIN_WINDOW_MINUTES = 10
ACCESS_WINDOW_MINUTES = 5
CRITICAL_FAILURE_MARGIN = 2
BURST_HIGH_FACTOR = 1.5
EXPORT_CRITICAL_FACTOR = 2.0
GEO_HISTORY_DEPTH = 9


@dataclass(frozen=True)
class _Snapshot:
    """Cleaned, read-only view of one evaluation's inputs."""

    accounts: dict[Hashable, AccountProfile]
    logins: list[LoginAttempt]
    accesses: list[AccessEvent]
    as_of: datetime
    config: RuleConfig


def _valid_account_id(account_id: Any) -> bool:
    return account_id is not None and isinstance(account_id, Hashable)


def _valid_login(login: Any) -> bool:
    return (
        _valid_account_id(getattr(login, "account_id", None))
        and isinstance(getattr(login, "succeeded", None), bool)
        and is_sane_timestamp(getattr(login, "timestamp", None))
    )


def _valid_access(event: Any) -> bool:
    if not _valid_account_id(getattr(event, "account_id", None)):
        return False
    if not isinstance(getattr(event, "resource_name", None), str):
        return False
    if not is_sane_timestamp(getattr(event, "timestamp", None)):
        return False
    if AccessAction.parse(getattr(event, "action", None)) is None:
        return False
    size = getattr(event, "size_estimate_mb", None)
    if size is None:
        return True
    return is_real_number(size) and math.isfinite(size) and size >= 0


class AnomalyRuleEngine:
    """
    Stateless security rule evaluator.

    Holds only a default RuleConfig; every evaluate() call is independent.
    """

    def __init__(self, config: RuleConfig | None = None):
        self.config = config or RuleConfig()
        self._rules: list[Callable[[_Snapshot], list[AnomalyRecord]]] = [
            self._brute_force,
            self._sensitive_read_burst,
            self._rbac_violations,
            self._export_spikes,
            self._new_geo_logins,
        ]

    def evaluate(
        self,
        accounts: Sequence[AccountProfile],
        logins: Sequence[LoginAttempt],
        accesses: Sequence[AccessEvent],
        config: RuleConfig | Mapping[str, Any] | None = None,
        *,
        as_of: datetime | None = None,
        already_reported: Collection[DedupKey] = (),
    ) -> list[AnomalyRecord]:
        """
        Evaluate all rules and return deduplicated anomalies.

        Args:
            accounts: Monitored accounts
            logins: Recent login attempts
            accesses: Recent access events
            config: Rule thresholds (default: the engine's config)
            as_of: Evaluation time (default: latest event timestamp)
            already_reported: Dedup keys emitted by earlier runs to suppress

        Returns:
            Anomalies sorted by detected_at desc, then severity desc

        Raises:
            InvalidConfiguration: thresholds or role map are unusable
        """
        config = self._resolve_config(config)

        clean_logins = [login for login in logins if _valid_login(login)]
        clean_accesses = [event for event in accesses if _valid_access(event)]
        skipped = (len(logins) - len(clean_logins)) + (len(accesses) - len(clean_accesses))
        if skipped:
            logger.debug(f"Skipped {skipped} malformed or unknown-action events")

        if as_of is None:
            as_of = latest_timestamp(
                (login.timestamp for login in clean_logins),
                (event.timestamp for event in clean_accesses),
            )
            if as_of is None:
                return []

        snapshot = _Snapshot(
            accounts={account.id: account for account in accounts},
            logins=clean_logins,
            accesses=clean_accesses,
            as_of=as_utc(as_of),
            config=config,
        )

        raw: list[AnomalyRecord] = []
        for rule in self._rules:
            raw.extend(rule(snapshot))

        result = deduplicate(rank_anomalies(raw), already_reported)
        logger.debug(f"Rule evaluation at {snapshot.as_of}: {len(raw)} raw, {len(result)} emitted")
        return result

    def _resolve_config(self, config: RuleConfig | Mapping[str, Any] | None) -> RuleConfig:
        if config is None:
            return self.config
        if isinstance(config, RuleConfig):
            return config
        return RuleConfig(**config)

    # --- Rules ---

    def _brute_force(self, snap: _Snapshot) -> list[AnomalyRecord]:
        threshold = snap.config.brute_force_failure_threshold
        failures: dict[str, int] = defaultdict(int)
        for login in snap.logins:
            if login.succeeded or login.account_id not in snap.accounts:
                continue
            if in_trailing_window(login.timestamp, snap.as_of, LOGIN_WINDOW_MINUTES):
                failures[login.account_id] += 1

        found = []
        for account_id in snap.accounts:
            count = failures.get(account_id, 0)
            if count < threshold:
                continue
            severity = Severity.CRITICAL if count >= threshold + CRITICAL_FAILURE_MARGIN else Severity.HIGH
            found.append(AnomalyRecord(
                kind=AnomalyKind.LOGIN_BRUTE_FORCE,
                severity=severity,
                description=f"Detected {count} failed logins in last {LOGIN_WINDOW_MINUTES}m.",
                detected_at=snap.as_of,
                account_id=account_id,
                metadata={"failed_count": count},
            ))
        return found

    def _sensitive_read_burst(self, snap: _Snapshot) -> list[AnomalyRecord]:
        threshold = snap.config.sensitive_burst_mb
        sensitive = snap.config.sensitive_resources
        totals: dict[str, float] = defaultdict(float)
        for event in self._recent_accesses(snap):
            if event.account_id not in snap.accounts:
                continue
            if event.parsed_action is AccessAction.READ and event.resource_name in sensitive:
                totals[event.account_id] += event.size_mb

        found = []
        for account_id in snap.accounts:
            total = totals.get(account_id, 0.0)
            if total < threshold:
                continue
            severity = Severity.HIGH if total > threshold * BURST_HIGH_FACTOR else Severity.MEDIUM
            found.append(AnomalyRecord(
                kind=AnomalyKind.SENSITIVE_READ_BURST,
                severity=severity,
                description=f"~{round(total)}MB sensitive reads in last {ACCESS_WINDOW_MINUTES}m.",
                detected_at=snap.as_of,
                account_id=account_id,
                metadata={"total_mb": total},
            ))
        return found

    def _rbac_violations(self, snap: _Snapshot) -> list[AnomalyRecord]:
        found = []
        for event in self._recent_accesses(snap):
            account = snap.accounts.get(event.account_id)
            if account is None:
                continue
            role = account.parsed_role
            if event.resource_name not in snap.config.restricted_for(role):
                continue
            found.append(AnomalyRecord(
                kind=AnomalyKind.RBAC_VIOLATION,
                severity=Severity.HIGH,
                description=(
                    f'{role.value.capitalize()} accessed restricted resource "{event.resource_name}".'
                ),
                detected_at=as_utc(event.timestamp),
                account_id=account.id,
                metadata={"resource_name": event.resource_name, "action": event.parsed_action.value},
            ))
        return found

    def _export_spikes(self, snap: _Snapshot) -> list[AnomalyRecord]:
        threshold = snap.config.export_spike_mb
        found = []
        for event in self._recent_accesses(snap):
            if event.parsed_action is not AccessAction.EXPORT or event.size_mb < threshold:
                continue
            severity = (
                Severity.CRITICAL if event.size_mb > threshold * EXPORT_CRITICAL_FACTOR else Severity.HIGH
            )
            found.append(AnomalyRecord(
                kind=AnomalyKind.EXPORT_SPIKE,
                severity=severity,
                description=(
                    f'Large data export ~{round(event.size_mb)}MB from "{event.resource_name}".'
                ),
                detected_at=as_utc(event.timestamp),
                account_id=event.account_id,
                metadata={"resource_name": event.resource_name, "size_mb": event.size_mb},
            ))
        return found

    def _new_geo_logins(self, snap: _Snapshot) -> list[AnomalyRecord]:
        if not snap.config.detect_new_geo_login:
            return []

        successes: dict[str, list[LoginAttempt]] = defaultdict(list)
        for login in snap.logins:
            if login.succeeded and login.account_id in snap.accounts:
                if as_utc(login.timestamp) <= snap.as_of:
                    successes[login.account_id].append(login)

        found = []
        for account_id, attempts in successes.items():
            attempts.sort(key=lambda a: as_utc(a.timestamp))
            for i, login in enumerate(attempts):
                if login.location is None:
                    continue
                if not in_trailing_window(login.timestamp, snap.as_of, LOGIN_WINDOW_MINUTES):
                    continue
                previous = attempts[max(0, i - GEO_HISTORY_DEPTH):i]
                seen = [p.location for p in previous if p.location is not None]
                if not seen or login.location in seen:
                    continue
                found.append(AnomalyRecord(
                    kind=AnomalyKind.NEW_GEO_LOGIN,
                    severity=Severity.MEDIUM,
                    description=f"Login from new location: {login.location} (previous: {seen[-1]})",
                    detected_at=as_utc(login.timestamp),
                    account_id=account_id,
                    metadata={"location": login.location, "previous_locations": seen[::-1][:3]},
                ))
        return found

    @staticmethod
    def _recent_accesses(snap: _Snapshot) -> Iterable[AccessEvent]:
        return trailing(snap.accesses, snap.as_of, ACCESS_WINDOW_MINUTES, key=lambda e: e.timestamp)


def rank_anomalies(records: Iterable[AnomalyRecord]) -> list[AnomalyRecord]:
    """Most recent first; ties broken by severity, most severe first."""
    return sorted(
        records,
        key=lambda r: (as_utc(r.detected_at), r.severity.rank),
        reverse=True,
    )


def deduplicate(
    records: Iterable[AnomalyRecord],
    already_reported: Collection[DedupKey] = (),
) -> list[AnomalyRecord]:
    """Keep the first record per dedup key, dropping keys already reported."""
    seen = set(already_reported)
    kept = []
    for record in records:
        key = record.dedup_key
        if key in seen:
            continue
        seen.add(key)
        kept.append(record)
    return kept


def evaluate(
    accounts: Sequence[AccountProfile],
    logins: Sequence[LoginAttempt],
    accesses: Sequence[AccessEvent],
    config: RuleConfig | Mapping[str, Any] | None = None,
    *,
    as_of: datetime | None = None,
    already_reported: Collection[DedupKey] = (),
) -> list[AnomalyRecord]:
    """Functional entry point for :meth:`AnomalyRuleEngine.evaluate`."""
    return AnomalyRuleEngine().evaluate(
        accounts, logins, accesses, config, as_of=as_of, already_reported=already_reported
    )
