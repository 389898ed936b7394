"""ApprovalStore: lifecycle of tokens issued for review decisions.

Each token moves ``pending -> approved | denied | expired`` exactly once.
There is no timer per token. Reads report overdue pending records as
expired, :meth:`grant` flips them, and :meth:`expire_overdue` flips them
in bulk (see :class:`~toolgate.approval.sweeper.ApprovalSweeper`).

``deny`` skips the expiry check that ``grant`` performs, so a pending
record whose deadline has passed can still be denied until a grant
attempt or a sweep flips it.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from toolgate.approval.models import (
    ApprovalFailure,
    ApprovalOutcome,
    ApprovalStatus,
    PendingApproval,
)
from toolgate.errors import MissingApprovalTokenError

if TYPE_CHECKING:
    from toolgate.policy.models import CallerIdentity, Decision, ToolCallContext

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

DEFAULT_TTL = 3600.0
DEFAULT_RETENTION = 24 * 60 * 60.0


def utc_now() -> datetime:
    return datetime.now(UTC)


class ApprovalStore:
    """Thread-safe in-memory map of approval token to record.

    A single lock guards every read and mutation; all operations are short
    and never await while holding it.
    """

    def __init__(
        self,
        *,
        default_ttl: float | None = DEFAULT_TTL,
        clock: Clock | None = None,
    ) -> None:
        if default_ttl is not None and default_ttl < 0:
            raise ValueError("default_ttl must be >= 0 or None")
        self._default_ttl = default_ttl
        self._clock = clock or utc_now
        self._records: dict[str, PendingApproval] = {}
        self._lock = threading.Lock()

    @property
    def default_ttl(self) -> float | None:
        return self._default_ttl

    def now(self) -> datetime:
        return self._clock()

    def create_approval(
        self,
        context: ToolCallContext,
        decision: Decision,
        ttl: float | None = None,
    ) -> PendingApproval:
        """Register a pending approval for a review decision.

        *ttl* (seconds) overrides the store default; with neither set the
        approval never expires.

        Raises:
            MissingApprovalTokenError: If *decision* carries no token.
        """
        token = decision.approval_token
        if not token:
            raise MissingApprovalTokenError(context.call_id)

        effective_ttl = ttl if ttl is not None else self._default_ttl
        if effective_ttl is not None and effective_ttl < 0:
            raise ValueError("ttl must be >= 0")

        now = self._clock()
        expires_at = now + timedelta(seconds=effective_ttl) if effective_ttl is not None else None
        approval = PendingApproval(
            token=token,
            context=context,
            decision=decision,
            created_at=now,
            expires_at=expires_at,
        )

        with self._lock:
            if token in self._records:
                raise ValueError(f"approval token {token} has already been issued")
            self._records[token] = approval

        logger.info(
            "Approval %s created for %s.%s (expires %s)",
            token,
            context.tool,
            context.action,
            expires_at.isoformat() if expires_at else "never",
        )
        return approval

    def get_approval(self, token: str) -> PendingApproval | None:
        """Return the record for *token*.

        A pending record past its deadline is reported as ``expired``; the
        stored record is left for :meth:`grant` or a sweep to flip.
        """
        with self._lock:
            approval = self._records.get(token)
        if approval is not None and approval.status == ApprovalStatus.PENDING:
            now = self._clock()
            if approval.is_overdue(now):
                return approval.model_copy(update={"status": ApprovalStatus.EXPIRED})
        return approval

    def list_pending(self) -> list[PendingApproval]:
        """Records still awaiting a decision and within their deadline, oldest first."""
        now = self._clock()
        with self._lock:
            pending = [
                a
                for a in self._records.values()
                if a.status == ApprovalStatus.PENDING and not a.is_overdue(now)
            ]
        return sorted(pending, key=lambda a: a.created_at)

    def grant(self, token: str, approver: CallerIdentity) -> ApprovalOutcome:
        """Approve a pending record, expiring it first if its deadline passed."""
        with self._lock:
            approval = self._records.get(token)
            if approval is None:
                return _not_found()
            if approval.status != ApprovalStatus.PENDING:
                return _already_processed(approval.status)

            now = self._clock()
            if approval.is_overdue(now):
                self._records[token] = approval.model_copy(
                    update={"status": ApprovalStatus.EXPIRED, "resolved_at": now}
                )
                logger.warning("Approval %s expired before it was granted", token)
                return ApprovalOutcome.failed(
                    ApprovalFailure.EXPIRED, "approval token has expired"
                )

            updated = approval.model_copy(
                update={
                    "status": ApprovalStatus.APPROVED,
                    "resolved_by": approver,
                    "resolved_at": now,
                }
            )
            self._records[token] = updated

        logger.info("Approval %s granted by %s", token, approver.id)
        return ApprovalOutcome.ok(updated)

    def deny(self, token: str, denier: CallerIdentity) -> ApprovalOutcome:
        """Deny a pending record. Does not check expiry."""
        with self._lock:
            approval = self._records.get(token)
            if approval is None:
                return _not_found()
            if approval.status != ApprovalStatus.PENDING:
                return _already_processed(approval.status)

            updated = approval.model_copy(
                update={
                    "status": ApprovalStatus.DENIED,
                    "resolved_by": denier,
                    "resolved_at": self._clock(),
                }
            )
            self._records[token] = updated

        logger.info("Approval %s denied by %s", token, denier.id)
        return ApprovalOutcome.ok(updated)

    def expire_overdue(self, now: datetime | None = None) -> int:
        """Flip every overdue pending record to ``expired``. Returns the count."""
        now = now or self._clock()
        expired = 0
        with self._lock:
            for token, approval in self._records.items():
                if approval.status == ApprovalStatus.PENDING and approval.is_overdue(now):
                    self._records[token] = approval.model_copy(
                        update={"status": ApprovalStatus.EXPIRED, "resolved_at": now}
                    )
                    expired += 1
        if expired:
            logger.info("Expired %d overdue approval(s)", expired)
        return expired

    def cleanup(self, cutoff: datetime | None = None) -> int:
        """Remove non-pending records created strictly before *cutoff*.

        *cutoff* defaults to 24 hours ago.  Pending records are never removed.
        """
        if cutoff is None:
            cutoff = self._clock() - timedelta(seconds=DEFAULT_RETENTION)
        with self._lock:
            stale = [
                token
                for token, approval in self._records.items()
                if approval.status != ApprovalStatus.PENDING and approval.created_at < cutoff
            ]
            for token in stale:
                del self._records[token]
        if stale:
            logger.info("Cleaned up %d finalized approval(s)", len(stale))
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


def _not_found() -> ApprovalOutcome:
    return ApprovalOutcome.failed(ApprovalFailure.NOT_FOUND, "approval token not found")


def _already_processed(status: ApprovalStatus) -> ApprovalOutcome:
    return ApprovalOutcome.failed(
        ApprovalFailure.ALREADY_PROCESSED,
        f"approval is already {status.value}",
        status=status,
    )
