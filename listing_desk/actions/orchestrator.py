"""
Action Orchestrator - credit-gated mutations of listings.

Every action follows the same sequence:
1. Precondition check against the cached session (credits, status, selection)
2. Record Store mutation
3. Credit Ledger decrement (credit-bearing actions only)
4. Full reload of records and balance
5. Outcome: notification, log line and event

Steps run strictly in order and a step only starts once the previous one
succeeded. When a decrement fails after its record mutation went through,
the record mutation is reversed; if that also fails the ids are queued in
``pending_reconciliation``. Errors never escape an action: each call returns
an ``ActionOutcome``.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Awaitable, Callable, Iterable

from listing_desk.actions.notifications import Notification, NotificationCenter
from listing_desk.actions.session import ListingSession
from listing_desk.config import CreditPolicy
from listing_desk.exceptions import PreconditionFailedError, ReloadError
from listing_desk.models.base import Event
from listing_desk.models.enums import CreditType, ListingStatus, ViewRole
from listing_desk.models.listing import PropertyRecord

logger = logging.getLogger(__name__)

EVENT_TOPIC = "listing-actions"
EVENT_SOURCE = "listing_desk.actions"

COPY_SUFFIX = " (Copy)"

PRECONDITION_FAILED = "precondition_failed"
REMOTE_MUTATION_FAILED = "remote_mutation_failed"
RELOAD_FAILED = "reload_failed"

TOGGLE_TARGETS = {
    ListingStatus.ACTIVE.value: ListingStatus.INACTIVE.value,
    ListingStatus.INACTIVE.value: ListingStatus.ACTIVE.value,
}

BATCH_STATUS_VERBS = {
    ListingStatus.ACTIVE.value: "activated",
    ListingStatus.INACTIVE.value: "deactivated",
}

EDITABLE_FIELDS = frozenset(
    f.name for f in fields(PropertyRecord)
) - {"id", "owner_id", "status", "is_featured", "is_premium", "views_count", "created_at", "updated_at"}


@dataclass
class ActionOutcome:
    """Result of one action as reported to the caller."""

    action: str
    ok: bool
    target_ids: tuple[str, ...] = ()
    notification: Notification | None = None
    error_kind: str | None = None
    error: Exception | None = None
    record: PropertyRecord | None = None
    compensated: bool = False

    @property
    def message(self) -> str:
        return self.notification.message if self.notification else ""


@dataclass
class _Plan:
    """What an action did, for compensation and reporting."""

    success_message: str
    failure_message: str
    record: PropertyRecord | None = None
    undo: Callable[[], Awaitable[None]] | None = None
    undo_ids: list[str] = field(default_factory=list)


def validate_listing(values: dict[str, Any]) -> None:
    """Check the numeric and required-field constraints of a listing.

    Raises
    ------
    PreconditionFailedError
        If any supplied value is out of range.
    """
    if "title" in values and not str(values["title"] or "").strip():
        raise PreconditionFailedError("A listing needs a title.")
    if "price" in values and _number(values["price"], Decimal, "Price") < 0:
        raise PreconditionFailedError("Price cannot be negative.")
    for name in ("bedrooms", "bathrooms"):
        if name in values and _number(values[name], int, name.capitalize()) < 0:
            raise PreconditionFailedError(f"{name.capitalize()} cannot be negative.")
    if "sqft" in values and _number(values["sqft"], Decimal, "Floor area") <= 0:
        raise PreconditionFailedError("Floor area must be positive.")


def _number(value: Any, kind: type, label: str) -> Any:
    if value is None or isinstance(value, bool):
        raise PreconditionFailedError(f"{label} is required.")
    try:
        return kind(str(value))
    except (InvalidOperation, ValueError, TypeError) as e:
        raise PreconditionFailedError(f"{label} must be a number, got {value!r}.") from e


def duplicate_of(record: PropertyRecord) -> PropertyRecord:
    """Unsaved copy of ``record`` with lifecycle fields reset."""
    return record.evolve(
        id="",
        title=f"{record.title}{COPY_SUFFIX}",
        status=ListingStatus.PENDING.value,
        is_featured=False,
        is_premium=False,
        views_count=0,
        created_at=None,
        updated_at=None,
    )


class ListingActions:
    """Run credit-gated listing actions against a ``ListingSession``.

    Parameters
    ----------
    session : ListingSession
        Cached records and balance; also holds the collaborators.
    policy : CreditPolicy | None
        Whether creation costs a credit and whether partial writes are
        compensated.
    notifications : NotificationCenter | None
        Where outcome messages go.
    sink : object | None
        Anything with ``publish(topic, event)``; failures are logged only.
    """

    def __init__(
        self,
        session: ListingSession,
        policy: CreditPolicy | None = None,
        notifications: NotificationCenter | None = None,
        sink: Any = None,
    ) -> None:
        self.session = session
        self.policy = policy or CreditPolicy()
        self.notifications = notifications or NotificationCenter()
        self.sink = sink
        self.in_flight: set[str] = set()
        self.pending_reconciliation: list[str] = []

    @property
    def store(self):
        return self.session.store

    @property
    def ledger(self):
        return self.session.ledger

    # =========================================================================
    # Shared sequencing
    # =========================================================================

    async def _run(
        self,
        action: str,
        targets: Iterable[str],
        body: Callable[[_Plan], Awaitable[None]],
        plan: _Plan,
        reload: bool = True,
    ) -> ActionOutcome:
        targets = tuple(targets)
        busy = [t for t in targets if t in self.in_flight]
        if busy:
            return self._finish(self._failure(
                action, targets, PRECONDITION_FAILED,
                PreconditionFailedError(f"An action is already running on {', '.join(busy)}"),
                "This property is busy, try again in a moment.",
            ))

        self.in_flight.update(targets)
        try:
            try:
                await body(plan)
            except PreconditionFailedError as e:
                logger.warning(
                    "%s rejected: %s", action, e,
                    extra=self._log_context(action, targets, PRECONDITION_FAILED),
                )
                return self._finish(self._failure(action, targets, PRECONDITION_FAILED, e, str(e)))
            except Exception as e:
                logger.error(
                    "%s failed: %s", action, e,
                    extra=self._log_context(action, targets, REMOTE_MUTATION_FAILED),
                )
                outcome = self._failure(action, targets, REMOTE_MUTATION_FAILED, e, plan.failure_message)
                outcome.record = plan.record
                outcome.compensated = await self._compensate(action, plan)
                return self._finish(outcome)

            if reload:
                try:
                    await self.session.reload()
                except ReloadError as e:
                    logger.error(
                        "%s applied but reload failed: %s", action, e,
                        extra=self._log_context(action, targets, RELOAD_FAILED),
                    )
                    return self._finish(self._failure(
                        action, targets, RELOAD_FAILED, e,
                        f"{plan.success_message}, but refreshing the list failed.",
                    ))

            logger.info("%s succeeded", action, extra=self._log_context(action, targets))
            return self._finish(ActionOutcome(
                action=action,
                ok=True,
                target_ids=targets,
                notification=self.notifications.success(plan.success_message),
                record=plan.record,
            ))
        finally:
            self.in_flight.difference_update(targets)

    def _log_context(self, action: str, targets: tuple[str, ...], error_kind: str | None = None) -> dict:
        return {
            "action": action,
            "targets": list(targets),
            "role": self.session.role.value,
            "owner_id": self.session.owner_id,
            "error_kind": error_kind,
        }

    async def _compensate(self, action: str, plan: _Plan) -> bool:
        if plan.undo is None or not self.policy.compensate_partial:
            return False
        try:
            await plan.undo()
        except Exception as e:
            logger.error("Compensation for %s failed, queued %s: %s", action, plan.undo_ids, e)
            self.pending_reconciliation.extend(plan.undo_ids)
            return False
        logger.info("Compensated %s for %s", action, plan.undo_ids)
        return True

    def _failure(
        self,
        action: str,
        targets: tuple[str, ...],
        kind: str,
        error: Exception,
        message: str,
    ) -> ActionOutcome:
        if kind == PRECONDITION_FAILED:
            notification = self.notifications.warning(message)
        else:
            notification = self.notifications.error(message)
        return ActionOutcome(
            action=action,
            ok=False,
            target_ids=targets,
            notification=notification,
            error_kind=kind,
            error=error,
        )

    def _finish(self, outcome: ActionOutcome) -> ActionOutcome:
        if self.sink is not None:
            event = Event(
                event_id=uuid.uuid4().hex,
                event_type=f"listing.{outcome.action}",
                event_time=datetime.now(timezone.utc),
                source=EVENT_SOURCE,
                subject=outcome.target_ids[0] if len(outcome.target_ids) == 1 else (self.session.owner_id or ""),
                data={
                    "ok": outcome.ok,
                    "target_ids": list(outcome.target_ids),
                    "error_kind": outcome.error_kind,
                    "message": outcome.message,
                    "compensated": outcome.compensated,
                },
                metadata={"role": self.session.role.value},
            )
            try:
                self.sink.publish(EVENT_TOPIC, event)
            except Exception as e:
                logger.warning("Could not publish %s event: %s", outcome.action, e)
        return outcome

    # =========================================================================
    # Precondition helpers
    # =========================================================================

    def _require_record(self, record_id: str) -> PropertyRecord:
        record = self.session.find(record_id)
        if record is None:
            raise PreconditionFailedError(f"Property {record_id} is not loaded.")
        return record

    def _require_owner(self) -> str:
        if self.session.role != ViewRole.AGENT or not self.session.owner_id:
            raise PreconditionFailedError("Only an agent can spend credits.")
        return self.session.owner_id

    def _require_credits(self, credit_type: CreditType, amount: int, purpose: str) -> None:
        available = self.session.balance.available(credit_type.column)
        if available <= 0:
            raise PreconditionFailedError(f"You need {credit_type.value} credits to {purpose}.")
        if available < amount:
            raise PreconditionFailedError(
                f"You need {amount} {credit_type.value} credits to {purpose}, you have {available}."
            )

    def _require_selection(self, selection: list[str]) -> None:
        if not selection:
            raise PreconditionFailedError("Select at least one property.")

    def _require_admin(self, purpose: str = "review listings") -> None:
        if self.session.role != ViewRole.ADMIN:
            raise PreconditionFailedError(f"Only an admin can {purpose}.")

    async def _insert_charged(
        self, plan: _Plan, record: PropertyRecord, charge: bool, reason: str
    ) -> None:
        owner_id = self.session.owner_id
        created = await self.store.insert(record)
        plan.record = created
        if charge:
            plan.undo = lambda: self.store.delete(created.id)
            plan.undo_ids = [created.id]
            await self.ledger.decrement(owner_id, CreditType.LISTING.value, 1, reason=reason)

    # =========================================================================
    # Single-record actions
    # =========================================================================

    async def create(self, listing: PropertyRecord) -> ActionOutcome:
        """Insert a new pending listing owned by the session's agent."""
        plan = _Plan("Property submitted for review", "Failed to create property")

        async def body(plan: _Plan) -> None:
            owner_id = self._require_owner()
            self._require_credits(CreditType.LISTING, 1, "create a property")
            validate_listing(listing.descriptive_fields())
            draft = listing.evolve(
                id="",
                owner_id=owner_id,
                status=ListingStatus.PENDING.value,
                is_featured=False,
                is_premium=False,
                views_count=0,
                created_at=None,
                updated_at=None,
            )
            await self._insert_charged(
                plan, draft, self.policy.create_deducts_credit, reason="Listing created"
            )

        return await self._run("create", (), body, plan)

    async def edit(self, record_id: str, **changes) -> ActionOutcome:
        """Update descriptive fields of a loaded listing."""
        plan = _Plan("Property updated successfully", "Failed to update property")

        async def body(plan: _Plan) -> None:
            self._require_record(record_id)
            unknown = set(changes) - EDITABLE_FIELDS
            if unknown:
                raise PreconditionFailedError(f"Cannot edit {', '.join(sorted(unknown))}.")
            if not changes:
                raise PreconditionFailedError("Nothing to update.")
            validate_listing(changes)
            await self.store.update(record_id, **changes)

        return await self._run("edit", (record_id,), body, plan)

    async def duplicate(self, record_id: str) -> ActionOutcome:
        """Copy a listing as a new pending one, spending one listing credit."""
        plan = _Plan("Property duplicated successfully", "Failed to duplicate property")

        async def body(plan: _Plan) -> None:
            self._require_owner()
            self._require_credits(CreditType.LISTING, 1, "duplicate a property")
            source = self._require_record(record_id)
            await self._insert_charged(
                plan, duplicate_of(source), charge=True, reason=f"Duplicated {record_id}"
            )

        return await self._run("duplicate", (record_id,), body, plan)

    async def feature(self, record_id: str) -> ActionOutcome:
        """Mark an active listing as featured, spending one boosting credit."""
        plan = _Plan("Property featured successfully", "Failed to boost property")

        async def body(plan: _Plan) -> None:
            owner_id = self._require_owner()
            self._require_credits(CreditType.BOOSTING, 1, "feature a property")
            record = self._require_record(record_id)
            if record.status != ListingStatus.ACTIVE.value:
                raise PreconditionFailedError("Only active properties can be featured.")
            await self.store.update(record_id, is_featured=True)
            plan.undo = lambda: self.store.update(record_id, is_featured=record.is_featured)
            plan.undo_ids = [record_id]
            await self.ledger.decrement(
                owner_id, CreditType.BOOSTING.value, 1, reason=f"Featured {record_id}"
            )

        return await self._run("feature", (record_id,), body, plan)

    async def toggle_status(self, record_id: str) -> ActionOutcome:
        """Flip an active listing to inactive or an inactive one to active."""
        plan = _Plan("Property status updated", "Failed to update property status")

        async def body(plan: _Plan) -> None:
            record = self._require_record(record_id)
            new_status = TOGGLE_TARGETS.get(record.status)
            if new_status is None:
                raise PreconditionFailedError(
                    f"A {record.status} property cannot be activated or deactivated."
                )
            await self.store.update(record_id, status=new_status)
            plan.success_message = (
                "Property activated" if new_status == ListingStatus.ACTIVE.value
                else "Property deactivated"
            )

        return await self._run("toggle_status", (record_id,), body, plan)

    async def delete(self, record_id: str) -> ActionOutcome:
        plan = _Plan("Property deleted successfully", "Failed to delete property")

        async def body(plan: _Plan) -> None:
            await self.store.delete(record_id)

        return await self._run("delete", (record_id,), body, plan)

    async def approve(self, record_id: str) -> ActionOutcome:
        """Admin: publish a pending listing."""
        return await self._review(record_id, ListingStatus.ACTIVE, "approve", "approved")

    async def reject(self, record_id: str) -> ActionOutcome:
        """Admin: turn down a pending listing."""
        return await self._review(record_id, ListingStatus.INACTIVE, "reject", "rejected")

    async def _review(
        self, record_id: str, status: ListingStatus, action: str, done: str
    ) -> ActionOutcome:
        plan = _Plan(f"Property {done}", f"Failed to {action} property")

        async def body(plan: _Plan) -> None:
            self._require_admin()
            record = self._require_record(record_id)
            if record.status != ListingStatus.PENDING.value:
                raise PreconditionFailedError(f"Only pending properties can be {done}.")
            await self.store.update(record_id, status=status.value)

        return await self._run(action, (record_id,), body, plan)

    async def record_view(self, record_id: str) -> ActionOutcome:
        """Count one view of a listing; the cache is not refreshed."""
        plan = _Plan("View recorded", "Failed to record view")

        async def body(plan: _Plan) -> None:
            await self.store.increment_views(record_id)

        return await self._run("record_view", (record_id,), body, plan, reload=False)

    # =========================================================================
    # Batch actions
    # =========================================================================

    async def batch_set_status(self, record_ids: Iterable[str], status: ListingStatus | str) -> ActionOutcome:
        """Set one status on every selected listing in a single call."""
        selection = list(dict.fromkeys(record_ids))
        plan = _Plan(f"{len(selection)} properties updated", "Failed to update properties")

        async def body(plan: _Plan) -> None:
            self._require_selection(selection)
            try:
                new_status = ListingStatus(status)
            except ValueError as e:
                raise PreconditionFailedError(f"Unknown status {status!r}.") from e
            await self.store.update_many(selection, status=new_status.value)
            verb = BATCH_STATUS_VERBS.get(new_status.value, f"set to {new_status.value}")
            plan.success_message = f"{len(selection)} properties {verb}"

        return await self._run("batch_status", selection, body, plan)

    async def batch_activate(self, record_ids: Iterable[str]) -> ActionOutcome:
        return await self.batch_set_status(record_ids, ListingStatus.ACTIVE)

    async def batch_deactivate(self, record_ids: Iterable[str]) -> ActionOutcome:
        return await self.batch_set_status(record_ids, ListingStatus.INACTIVE)

    async def batch_feature(self, record_ids: Iterable[str]) -> ActionOutcome:
        """Feature every selected listing, spending one boosting credit each."""
        selection = list(dict.fromkeys(record_ids))
        plan = _Plan(f"{len(selection)} properties featured", "Failed to boost properties")

        async def body(plan: _Plan) -> None:
            self._require_selection(selection)
            owner_id = self._require_owner()
            self._require_credits(CreditType.BOOSTING, len(selection), "feature these properties")
            featured_before = {r.id for r in self.session.records if r.is_featured}
            newly_featured = [rid for rid in selection if rid not in featured_before]
            await self.store.update_many(selection, is_featured=True)
            if newly_featured:
                plan.undo = lambda: self.store.update_many(newly_featured, is_featured=False)
                plan.undo_ids = newly_featured
            await self.ledger.decrement(
                owner_id, CreditType.BOOSTING.value, len(selection),
                reason=f"Featured {len(selection)} properties",
            )

        return await self._run("batch_feature", selection, body, plan)

    async def batch_delete(self, record_ids: Iterable[str], confirmed: bool = False) -> ActionOutcome:
        """Delete every selected listing; requires explicit confirmation."""
        selection = list(dict.fromkeys(record_ids))
        plan = _Plan(f"{len(selection)} properties deleted", "Failed to delete properties")

        async def body(plan: _Plan) -> None:
            self._require_selection(selection)
            if not confirmed:
                raise PreconditionFailedError("Confirm deletion of the selected properties.")
            await self.store.delete_many(selection)

        return await self._run("batch_delete", selection, body, plan)

    # =========================================================================
    # Credit administration
    # =========================================================================

    async def adjust_credits(
        self,
        owner_ids: Iterable[str],
        credit_type: CreditType | str,
        delta: int,
        reason: str = "",
    ) -> ActionOutcome:
        """Admin: add (or with a negative ``delta`` remove) credits for owners.

        One ledger call is made per owner. If one of them fails, the owners
        already adjusted are reversed so the batch applies all or nothing.
        """
        selection = list(dict.fromkeys(owner_ids))
        noun = "user" if len(selection) == 1 else "users"
        plan = _Plan(f"Credits updated for {len(selection)} {noun}", "Failed to update credits")

        async def body(plan: _Plan) -> None:
            self._require_admin("adjust credits")
            if not selection:
                raise PreconditionFailedError("Select at least one user.")
            try:
                credit = CreditType(credit_type)
            except ValueError as e:
                raise PreconditionFailedError(f"Unknown credit type {credit_type!r}.") from e
            amount = _number(delta, int, "Credit change")
            if amount == 0:
                raise PreconditionFailedError("Credit change cannot be zero.")

            note = reason or (
                f"Admin adjustment: {'added' if amount > 0 else 'removed'} {abs(amount)} credits"
            )
            performed_by = self.session.owner_id
            applied: list[str] = []

            async def reverse() -> None:
                for owner_id in applied:
                    await self.ledger.adjust(
                        owner_id, credit.value, -amount,
                        performed_by=performed_by, reason=f"Reversal: {note}",
                    )

            for owner_id in selection:
                await self.ledger.adjust(
                    owner_id, credit.value, amount, performed_by=performed_by, reason=note
                )
                applied.append(owner_id)
                plan.undo = reverse
                plan.undo_ids = applied

        return await self._run("adjust_credits", selection, body, plan)
