"""Order lifecycle statuses and the policy that decides which moves are allowed.

By default the policy is permissive: an admin may move an order from any
known status to any other known status. The strict policy checks moves
against ``TRANSITIONS`` instead.
"""

from __future__ import annotations

ORDER_CREATED = "order_created"
REQUEST_UNDER_REVIEW = "request_under_review"
REQUEST_APPROVED = "request_approved"
REQUEST_REJECTED = "request_rejected"
MEETING_SCHEDULED = "meeting_scheduled"
MEETING_COMPLETED = "meeting_completed"
MEETING_MISSED_CLIENT = "meeting_missed_client"
MEETING_MISSED_OUR_TEAM = "meeting_missed_our_team"
RESCHEDULING_REQUIRED = "rescheduling_required"
CONFIGURATION_IN_PROGRESS = "configuration_in_progress"
CONFIGURATION_COMPLETED = "configuration_completed"
CONFIGURATION_BLOCKED = "configuration_blocked"
TESTING_IN_PROGRESS = "testing_in_progress"
TESTING_COMPLETED = "testing_completed"
TESTING_FAILED = "testing_failed"
PENDING_CLIENT_APPROVAL = "pending_client_approval"
APPROVED_BY_CLIENT = "approved_by_client"
REJECTED_BY_CLIENT = "rejected_by_client"
INVOICE_SENT = "invoice_sent"
PAYMENT_PENDING = "payment_pending"
PAYMENT_COMPLETED = "payment_completed"
PAYMENT_FAILED = "payment_failed"
VENDOR_PAYMENT_PENDING = "vendor_payment_pending"
VENDOR_PAYMENT_COMPLETED = "vendor_payment_completed"
ORDER_COMPLETED_SUCCESSFULLY = "order_completed_successfully"
ORDER_CANCELLED_CLIENT = "order_cancelled_client"
ORDER_CANCELLED_INTERNAL = "order_cancelled_internal"
ORDER_ON_HOLD = "order_on_hold"

# Lifecycle order; drives admin dropdowns.
ORDER_STATUSES = (
    ORDER_CREATED,
    REQUEST_UNDER_REVIEW,
    REQUEST_APPROVED,
    REQUEST_REJECTED,
    MEETING_SCHEDULED,
    MEETING_COMPLETED,
    MEETING_MISSED_CLIENT,
    MEETING_MISSED_OUR_TEAM,
    RESCHEDULING_REQUIRED,
    CONFIGURATION_IN_PROGRESS,
    CONFIGURATION_COMPLETED,
    CONFIGURATION_BLOCKED,
    TESTING_IN_PROGRESS,
    TESTING_COMPLETED,
    TESTING_FAILED,
    PENDING_CLIENT_APPROVAL,
    APPROVED_BY_CLIENT,
    REJECTED_BY_CLIENT,
    INVOICE_SENT,
    PAYMENT_PENDING,
    PAYMENT_COMPLETED,
    PAYMENT_FAILED,
    VENDOR_PAYMENT_PENDING,
    VENDOR_PAYMENT_COMPLETED,
    ORDER_COMPLETED_SUCCESSFULLY,
    ORDER_CANCELLED_CLIENT,
    ORDER_CANCELLED_INTERNAL,
    ORDER_ON_HOLD,
)

TERMINAL_STATUSES = frozenset({
    REQUEST_REJECTED,
    MEETING_MISSED_CLIENT,
    MEETING_MISSED_OUR_TEAM,
    REJECTED_BY_CLIENT,
    ORDER_COMPLETED_SUCCESSFULLY,
    ORDER_CANCELLED_CLIENT,
    ORDER_CANCELLED_INTERNAL,
})

# The ledger is not generated while an order sits in one of these.
PRE_LEDGER_STATUSES = frozenset({ORDER_CREATED, REQUEST_UNDER_REVIEW})

CANCELLED_STATUSES = frozenset(TERMINAL_STATUSES - {ORDER_COMPLETED_SUCCESSFULLY})

STATUS_LABELS = {s: s.replace("_", " ").capitalize() for s in ORDER_STATUSES}
STATUS_LABELS.update({
    MEETING_MISSED_OUR_TEAM: "Meeting missed (our team)",
    MEETING_MISSED_CLIENT: "Meeting missed (client)",
    ORDER_CANCELLED_CLIENT: "Order cancelled by client",
    ORDER_CANCELLED_INTERNAL: "Order cancelled internally",
})

_FORWARD = {
    ORDER_CREATED: {REQUEST_UNDER_REVIEW},
    REQUEST_UNDER_REVIEW: {REQUEST_APPROVED, REQUEST_REJECTED},
    REQUEST_APPROVED: {MEETING_SCHEDULED},
    MEETING_SCHEDULED: {MEETING_COMPLETED, MEETING_MISSED_CLIENT, MEETING_MISSED_OUR_TEAM, RESCHEDULING_REQUIRED},
    RESCHEDULING_REQUIRED: {MEETING_SCHEDULED},
    MEETING_COMPLETED: {CONFIGURATION_IN_PROGRESS},
    CONFIGURATION_IN_PROGRESS: {CONFIGURATION_COMPLETED, CONFIGURATION_BLOCKED},
    CONFIGURATION_BLOCKED: {CONFIGURATION_IN_PROGRESS},
    CONFIGURATION_COMPLETED: {TESTING_IN_PROGRESS},
    TESTING_IN_PROGRESS: {TESTING_COMPLETED, TESTING_FAILED},
    TESTING_FAILED: {CONFIGURATION_IN_PROGRESS, TESTING_IN_PROGRESS},
    TESTING_COMPLETED: {PENDING_CLIENT_APPROVAL},
    PENDING_CLIENT_APPROVAL: {APPROVED_BY_CLIENT, REJECTED_BY_CLIENT},
    APPROVED_BY_CLIENT: {INVOICE_SENT},
    INVOICE_SENT: {PAYMENT_PENDING},
    PAYMENT_PENDING: {PAYMENT_COMPLETED, PAYMENT_FAILED},
    PAYMENT_FAILED: {PAYMENT_PENDING},
    PAYMENT_COMPLETED: {VENDOR_PAYMENT_PENDING},
    VENDOR_PAYMENT_PENDING: {VENDOR_PAYMENT_COMPLETED},
    VENDOR_PAYMENT_COMPLETED: {ORDER_COMPLETED_SUCCESSFULLY},
}

_SIDE_EXITS = {ORDER_ON_HOLD, ORDER_CANCELLED_CLIENT, ORDER_CANCELLED_INTERNAL}


def _build_transitions() -> dict[str, frozenset[str]]:
    table: dict[str, frozenset[str]] = {}
    non_terminal = [s for s in ORDER_STATUSES if s not in TERMINAL_STATUSES]
    for status in ORDER_STATUSES:
        if status in TERMINAL_STATUSES:
            table[status] = frozenset()
        elif status == ORDER_ON_HOLD:
            table[status] = frozenset(set(non_terminal) - {ORDER_ON_HOLD} | {ORDER_CANCELLED_CLIENT, ORDER_CANCELLED_INTERNAL})
        else:
            table[status] = frozenset(_FORWARD.get(status, set()) | _SIDE_EXITS)
    return table


TRANSITIONS = _build_transitions()

PERMISSIVE = "permissive"
STRICT = "strict"
POLICY_MODES = (PERMISSIVE, STRICT)


class InvalidTransition(Exception):
    def __init__(self, current: str, target: str, reason: str = ""):
        self.current = current
        self.target = target
        message = reason or f"Cannot move order from {current} to {target}"
        super().__init__(message)
        self.message = message


def is_known_status(status: str | None) -> bool:
    return status in TRANSITIONS


def is_terminal(status: str | None) -> bool:
    return status in TERMINAL_STATUSES


def requires_ledger(status: str | None) -> bool:
    return bool(status) and status not in PRE_LEDGER_STATUSES


def allowed_next(status: str) -> frozenset[str]:
    return TRANSITIONS.get(status, frozenset())


class OrderStatusPolicy:
    def __init__(self, mode: str = PERMISSIVE):
        mode = (mode or PERMISSIVE).strip().lower()
        if mode not in POLICY_MODES:
            raise ValueError(f"Unknown order status policy: {mode}")
        self.mode = mode

    @property
    def is_strict(self) -> bool:
        return self.mode == STRICT

    def can_transition(self, current: str, target: str) -> bool:
        try:
            self.check(current, target)
        except InvalidTransition:
            return False
        return True

    def check(self, current: str, target: str) -> None:
        if not is_known_status(target):
            raise InvalidTransition(current, target, f"Unknown status: {target}")
        if current == target:
            return
        if not self.is_strict:
            return
        if target not in allowed_next(current):
            raise InvalidTransition(current, target)

    def options_for(self, current: str) -> list[str]:
        """Statuses offered to an admin for an order currently in ``current``."""
        if not self.is_strict:
            return list(ORDER_STATUSES)
        allowed = allowed_next(current)
        return [s for s in ORDER_STATUSES if s in allowed]


def describe_statuses() -> list[dict]:
    return [
        {
            "value": s,
            "label": STATUS_LABELS[s],
            "terminal": s in TERMINAL_STATUSES,
            "generates_ledger": requires_ledger(s),
        }
        for s in ORDER_STATUSES
    ]
