"""
Usage admission controller.

Stateless policy evaluator: given an identity and its ledger (or the count of
successful entries in the current window) decides whether a turn may proceed.

Dependencies: flowchart_ai.core.admission.policy
System role: Tiered quota gate in front of inference
"""

import logging
from collections.abc import Iterable
from datetime import datetime, timezone

from flowchart_ai.configs.quota import QuotaSettings
from flowchart_ai.core.admission.policy import (
    as_utc,
    policy_table,
    window_resets_at,
    window_start,
)
from flowchart_ai.models.usage import (
    AdmissionDecision,
    Identity,
    QuotaPolicy,
    UsageLedgerEntry,
    WindowKind,
)

logger = logging.getLogger(__name__)


def denial_reason(policy: QuotaPolicy, used: int) -> str:
    if policy.window_kind == WindowKind.CALENDAR_MONTH:
        return (
            "You have reached your AI usage limit for this month. "
            f"Used: {used}/{policy.limit}. Resets next month."
        )
    return f"You have used your free AI generation. Used: {used}/{policy.limit}. Sign in to continue."


class AdmissionController:
    """
    Evaluates identities against tiered quota policies.

    Usage:
        controller = AdmissionController(settings.quota)
        decision = controller.evaluate(identity, entries)
    """

    def __init__(self, settings: QuotaSettings | None = None) -> None:
        self._policies = policy_table(settings or QuotaSettings())

    def policy_for(self, identity: Identity) -> QuotaPolicy:
        return self._policies[identity.identity_class]

    def decide(self, identity: Identity, used: int, now: datetime | None = None) -> AdmissionDecision:
        """
        Decide from a pre-computed in-window success count.

        Args:
            identity: Caller identity
            used: Successful ledger entries in the current window
            now: Evaluation instant (defaults to current UTC time)

        Returns:
            AdmissionDecision: allowed iff remaining > 0
        """
        now = as_utc(now or datetime.now(timezone.utc))
        policy = self.policy_for(identity)
        remaining = max(0, policy.limit - used)
        allowed = remaining > 0
        return AdmissionDecision(
            identity_class=identity.identity_class,
            allowed=allowed,
            remaining=remaining,
            limit=policy.limit,
            used=used,
            window_kind=policy.window_kind,
            window_resets_at=window_resets_at(policy, now),
            reason=None if allowed else denial_reason(policy, used),
        )

    def count_in_window(
        self,
        identity: Identity,
        entries: Iterable[UsageLedgerEntry],
        now: datetime | None = None,
    ) -> int:
        """Successful entries for this identity inside the current window."""
        now = as_utc(now or datetime.now(timezone.utc))
        start = window_start(self.policy_for(identity), now)
        return sum(
            1
            for entry in entries
            if entry.identity_key == identity.key
            and entry.success
            and (start is None or as_utc(entry.recorded_at) >= start)
        )

    def evaluate(
        self,
        identity: Identity,
        entries: Iterable[UsageLedgerEntry],
        now: datetime | None = None,
    ) -> AdmissionDecision:
        """
        Evaluate an identity against its ledger.

        Args:
            identity: Caller identity
            entries: Ledger entries (other identities and failures are ignored)
            now: Evaluation instant

        Returns:
            AdmissionDecision: Decision with remaining quota and window reset
        """
        now = as_utc(now or datetime.now(timezone.utc))
        decision = self.decide(identity, self.count_in_window(identity, entries, now), now)
        logger.debug(
            f"{__name__}:evaluate - Decision",
            extra={
                "identity_class": identity.identity_class.value,
                "allowed": decision.allowed,
                "remaining": decision.remaining,
            },
        )
        return decision
