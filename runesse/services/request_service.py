"""
Request Service — lifecycle of a buyer's purchase request

    PENDING --claim (take/match)--> MATCHED --set status--> COMPLETED | CANCELLED
    PENDING --buyer cancel--> CANCELLED
    MATCHED --cardholder cancel--> CANCELLED

Every transition is written as a compare-and-swap on the status that was
read, so two callers racing on the same request cannot both succeed.
"""

import logging
from datetime import datetime, timezone

from runesse import repository
from runesse.errors import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from runesse.models import Request
from runesse.schemas import CreateRequestInput, SETTABLE_STATUSES, parse
from runesse.services.ledger import record_ledger_entry

logger = logging.getLogger(__name__)

CARDHOLDER = "CARDHOLDER"
ADMIN = "ADMIN"

DEFAULT_PLACEHOLDER_CARDHOLDER = "cardholder@demo.runesse"

CLAIM_EVENTS = {
    CARDHOLDER: ("CARDHOLDER_ACCEPTED", "Cardholder accepted request"),
    ADMIN: ("ADMIN_MATCHED", "Admin matched request to a cardholder"),
}

STATUS_EVENTS = {
    "COMPLETED": ("ADMIN_MARKED_COMPLETED", "Admin marked request as completed"),
    "CANCELLED": ("ADMIN_REJECTED_REQUEST", "Admin cancelled the request"),
}


def _now():
    return datetime.now(timezone.utc)


def _require_id(request_id):
    if not request_id or not isinstance(request_id, str):
        raise ValidationError("Missing or invalid requestId")


def _load(request_id):
    _require_id(request_id)
    existing = repository.get_request(request_id)
    if existing is None:
        raise NotFoundError()
    return existing


def _same_email(a, b):
    return (a or "").strip().lower() == (b or "").strip().lower()


def normalize_status(new_status):
    if not new_status or not isinstance(new_status, str):
        raise ValidationError("Invalid status")
    status = new_status.strip().upper()
    if status not in SETTABLE_STATUSES:
        raise ValidationError("Invalid status")
    return status


def _apply_transition(existing, values, event_type, description, actor_email=None, meta=None):
    """
    Write values only if the request still has the status we read, then
    append the ledger entry in the same commit.
    """
    request_id = existing.id
    previous_status = existing.status
    buyer_email = existing.buyer_email

    updated = repository.update_request_if_status(request_id, previous_status, values)
    if not updated:
        repository.rollback()
        logger.warning("Request %s changed before %s could be applied", request_id, values.get("status"))
        raise ConflictError("Request was updated by another caller, reload and retry")

    record_ledger_entry(
        event_type=event_type,
        reference_id=request_id,
        account_key=f"REQ:{request_id}",
        actor_email=actor_email,
        description=description,
        meta={
            "previousStatus": previous_status,
            "newStatus": values["status"],
            "buyerEmail": buyer_email,
            **(meta or {}),
        },
    )
    repository.commit(f"moving request {request_id} to {values['status']}")
    logger.info("Request %s: %s -> %s", request_id, previous_status, values["status"])
    return repository.get_request(request_id)


def create_request(buyer_email=None, product_link=None, product_name=None, checkout_price=None,
                   notes=None, requested_issuer=None, requested_network=None,
                   requested_card_label=None, delivery_address_text=None,
                   delivery_mobile=None, caller_email=None):
    """
    Buyer submits a new request. The authenticated caller's email wins over
    the buyerEmail in the body.
    """
    data = parse(CreateRequestInput, {
        "buyer_email": caller_email or buyer_email,
        "product_link": product_link,
        "product_name": product_name,
        "checkout_price": checkout_price,
        "notes": notes,
        "requested_issuer": requested_issuer,
        "requested_network": requested_network,
        "requested_card_label": requested_card_label,
        "delivery_address_text": delivery_address_text,
        "delivery_mobile": delivery_mobile,
    })
    if not data.buyer_email:
        raise ValidationError("buyerEmail is required")

    buyer = repository.find_user_by_email(data.buyer_email)

    req = Request(
        buyer_email=data.buyer_email,
        buyer_id=buyer.id if buyer else None,
        product_link=data.product_link,
        product_name=data.product_name or None,
        checkout_price=data.checkout_price,
        notes=data.notes or None,
        requested_issuer=data.requested_issuer or None,
        requested_network=data.requested_network or None,
        requested_card_label=data.requested_card_label or None,
        delivery_address_text=data.delivery_address_text or None,
        delivery_mobile=data.delivery_mobile or None,
        status="PENDING",
    )
    repository.add(req)
    # Flush so the generated id is available to the ledger entry
    repository.flush("creating request")

    record_ledger_entry(
        event_type="REQUEST_CREATED",
        reference_id=req.id,
        actor_email=data.buyer_email,
        description="Buyer created a new request",
        meta={
            "buyerEmail": data.buyer_email,
            "productLink": data.product_link,
            "productName": data.product_name,
            "checkoutPrice": str(data.checkout_price) if data.checkout_price is not None else None,
            "requestedIssuer": data.requested_issuer,
            "requestedNetwork": data.requested_network,
            "requestedCardLabel": data.requested_card_label,
        },
    )
    repository.commit("creating request")
    logger.info("Request %s created for %s", req.id, data.buyer_email)
    return req


def _card_owner(card_id, cardholder_email):
    """The cardholder a taken request is matched to when a saved card is chosen."""
    card = repository.get_saved_card(card_id)
    if card is None or not card.is_active:
        raise ValidationError("That card is no longer available")
    owner = (card.cardholder_email or "").strip().lower()
    if not owner:
        raise ValidationError("Could not determine cardholder email for this card")
    if cardholder_email and not _same_email(owner, cardholder_email):
        raise ForbiddenError("Card belongs to another cardholder")
    return owner


def claim_request(request_id, role=CARDHOLDER, cardholder_email=None, card_id=None,
                  placeholder_email=None, actor_email=None):
    """
    Move a PENDING request to MATCHED. Shared by the cardholder "take" and
    the admin "match" paths; only the matched cardholder identity and the
    ledger event differ between the two roles.
    """
    if role not in CLAIM_EVENTS:
        raise ValueError(f"Unknown role: {role}")

    existing = _load(request_id)
    if existing.status != "PENDING":
        raise InvalidStateError("Request is not available to take")

    now = _now()
    values = {"status": "MATCHED", "matched_at": now, "updated_at": now}
    if role == ADMIN:
        values["matched_cardholder_email"] = (
            existing.matched_cardholder_email
            or placeholder_email
            or DEFAULT_PLACEHOLDER_CARDHOLDER
        )
    else:
        if card_id:
            cardholder_email = _card_owner(card_id, cardholder_email)
        if cardholder_email:
            if _same_email(existing.buyer_email, cardholder_email):
                raise ValidationError("Buyer and cardholder cannot be the same person")
            values["matched_cardholder_email"] = cardholder_email
    if card_id:
        values["matched_card_id"] = card_id

    event_type, description = CLAIM_EVENTS[role]
    return _apply_transition(
        existing,
        values,
        event_type,
        description,
        actor_email=actor_email or cardholder_email,
        meta={
            "matchedCardholderEmail": values.get("matched_cardholder_email", existing.matched_cardholder_email),
            "cardId": card_id,
            "actor": role,
        },
    )


def take_request(request_id, cardholder_email=None, card_id=None):
    return claim_request(request_id, role=CARDHOLDER, cardholder_email=cardholder_email, card_id=card_id)


def match_request(request_id, placeholder_email=None, admin_email=None):
    return claim_request(request_id, role=ADMIN, placeholder_email=placeholder_email,
                         actor_email=admin_email)


def set_status(request_id, new_status, admin_email=None):
    """
    Admin override to COMPLETED or CANCELLED from any status.
    Re-applying the current status is a no-op and writes nothing, including
    when another admin got there first between our read and our write.
    """
    _require_id(request_id)
    status = normalize_status(new_status)
    existing = _load(request_id)

    if existing.status == status:
        return existing

    event_type, description = STATUS_EVENTS[status]
    now = _now()
    try:
        return _apply_transition(
            existing,
            {"status": status, "updated_at": now},
            event_type,
            description,
            actor_email=admin_email,
            meta={"actor": ADMIN},
        )
    except ConflictError:
        current = repository.get_request(request_id)
        if current is not None and current.status == status:
            return current
        raise


def cancel_as_buyer(request_id, reason=None, buyer_email=None):
    if not buyer_email:
        raise UnauthorizedError("Unauthenticated buyer")
    existing = _load(request_id)
    if not _same_email(existing.buyer_email, buyer_email):
        raise ForbiddenError("Request belongs to another buyer")
    if existing.status != "PENDING":
        raise InvalidStateError(
            "Request cannot be cancelled in its current status (already matched or completed)."
        )

    return _apply_transition(
        existing,
        {"status": "CANCELLED", "updated_at": _now()},
        "REQUEST_CANCELLED",
        "Buyer cancelled the request",
        actor_email=buyer_email,
        meta={"reason": reason, "actor": "BUYER"},
    )


def cancel_as_cardholder(request_id, reason=None, cardholder_email=None):
    if not cardholder_email:
        raise UnauthorizedError("Unauthenticated cardholder")
    existing = _load(request_id)
    if existing.status != "MATCHED":
        raise InvalidStateError("Request cannot be cancelled in its current status (not matched).")
    if not _same_email(existing.matched_cardholder_email, cardholder_email):
        raise ForbiddenError("Request is matched to another cardholder")

    return _apply_transition(
        existing,
        {"status": "CANCELLED", "updated_at": _now()},
        "REQUEST_CANCELLED",
        "Cardholder cancelled the request after accepting",
        actor_email=cardholder_email,
        meta={
            "reason": reason,
            "actor": CARDHOLDER,
            "matchedCardholderEmail": existing.matched_cardholder_email,
        },
    )
