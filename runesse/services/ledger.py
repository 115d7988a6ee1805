"""
Ledger helper — appends audit entries for request lifecycle events.
Entries are added to the current session; the caller's commit persists
them together with the state change they describe.
"""

import logging
from decimal import Decimal

from runesse import repository
from runesse.errors import NotFoundError
from runesse.models import LedgerEntry
from runesse.schemas import ReimbursementInput, parse

logger = logging.getLogger(__name__)


def record_ledger_entry(event_type, reference_id=None, reference_type="REQUEST",
                        scope="USER_TRANSACTION", amount=None, currency="INR",
                        account_key=None, actor_email=None, description=None, meta=None):
    if amount is not None and not isinstance(amount, Decimal):
        amount = Decimal(str(amount))

    entry = LedgerEntry(
        scope=scope,
        event_type=event_type,
        amount=amount,
        currency=currency or "INR",
        account_key=account_key,
        reference_type=reference_type,
        reference_id=reference_id,
        actor_email=actor_email,
        description=description,
        meta=meta or {},
    )
    repository.add(entry)
    return entry


def get_request_ledger(request_id):
    if repository.get_request(request_id) is None:
        raise NotFoundError()
    return [entry.to_dict() for entry in repository.list_ledger_entries(request_id)]


def record_reimbursement(request_id=None, amount=None, currency="INR", method=None,
                         utr=None, paid_at=None, admin_email=None):
    """
    Admin paid the cardholder back outside the platform (NEFT / IMPS / UPI).
    Only the ledger changes; the request status is left alone.
    """
    data = parse(ReimbursementInput, {
        "request_id": request_id,
        "amount": amount,
        "currency": currency or "INR",
        "method": method,
        "utr": utr,
        "paid_at": paid_at,
    })

    req = repository.get_request(data.request_id)
    if req is None:
        raise NotFoundError()

    entry = record_ledger_entry(
        event_type="MANUAL_REIMBURSEMENT_COMPLETED",
        reference_id=req.id,
        amount=data.amount,
        currency=data.currency,
        account_key="PLATFORM:RUNESSE_CURRENT_ACCOUNT",
        actor_email=admin_email,
        description="Admin recorded reimbursement to cardholder",
        meta={
            "buyerEmail": req.buyer_email,
            "matchedCardholderEmail": req.matched_cardholder_email,
            "method": data.method,
            "utr": data.utr,
            "paidAt": data.paid_at,
        },
    )
    repository.commit(f"recording reimbursement for request {req.id}")
    logger.info("Recorded reimbursement of %s %s for request %s", data.amount, data.currency, req.id)
    return entry
