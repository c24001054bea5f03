"""
Bill status transitions.

    Pending Approval -> Unpaid -> Paid
                          |        ^
                          v        |
                       Overdue ----+

Paid is terminal. Approval and payment go through the functions below;
only the administrative bill edit may write ``status`` directly.
"""

from apps.billing.models import BillStatus
from apps.core.exceptions import IneligibleTransitionError

ALLOWED_TRANSITIONS = {
    BillStatus.PENDING_APPROVAL: frozenset({BillStatus.UNPAID}),
    BillStatus.UNPAID: frozenset({BillStatus.PAID, BillStatus.OVERDUE}),
    BillStatus.OVERDUE: frozenset({BillStatus.PAID}),
    BillStatus.PAID: frozenset(),
}


def can_transition(current, target) -> bool:
    return BillStatus(target) in ALLOWED_TRANSITIONS.get(BillStatus(current), ())


def transition(bill, target):
    """Move ``bill`` to ``target`` or raise IneligibleTransitionError."""
    if not can_transition(bill.status, target):
        raise IneligibleTransitionError(
            detail=f"Bill #{bill.pk} cannot move from '{bill.status}' to '{target}'."
        )
    bill.status = BillStatus(target)
    return bill


def approve(bill):
    """
    Mark the bill approved. A bill still pending approval becomes Unpaid;
    any other status is kept, so approving twice is harmless.
    """
    bill.approved = True
    if bill.status == BillStatus.PENDING_APPROVAL:
        transition(bill, BillStatus.UNPAID)
    return bill


def settle(bill):
    """
    Mark an approved bill that is not yet Paid as Paid.

    An approved bill left in Pending Approval by an admin edit is walked
    through Unpaid first.

    Raises:
        IneligibleTransitionError: If the bill is not approved or already Paid.
    """
    if not bill.approved:
        raise IneligibleTransitionError(
            detail=f"Bill #{bill.pk} has not been approved."
        )
    if bill.status == BillStatus.PENDING_APPROVAL:
        transition(bill, BillStatus.UNPAID)
    return transition(bill, BillStatus.PAID)


def mark_overdue(bill):
    """Promote an approved Unpaid bill past its due date to Overdue."""
    if not bill.approved:
        raise IneligibleTransitionError(
            detail=f"Bill #{bill.pk} has not been approved."
        )
    return transition(bill, BillStatus.OVERDUE)


def override_warnings(bill) -> list:
    """
    Describe what a directly edited bill breaks, for logging.

    Admin edits are trusted, so nothing here is enforced.
    """
    warnings = []
    if bill.status == BillStatus.PAID and not bill.approved:
        warnings.append('marked Paid without approval')
    if bill.status in (BillStatus.UNPAID, BillStatus.OVERDUE) and not bill.approved:
        warnings.append(f"status '{bill.status}' without approval")
    if bill.approved and bill.status == BillStatus.PENDING_APPROVAL:
        warnings.append('approved but still Pending Approval')
    if bill.current_reading is not None and bill.previous_reading is not None:
        if bill.current_reading <= bill.previous_reading:
            warnings.append('current reading not above previous reading')
        elif bill.consumption != bill.current_reading - bill.previous_reading:
            warnings.append('consumption does not match readings')
    return warnings
