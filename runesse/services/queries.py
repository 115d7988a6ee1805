"""
Read-only projections for the buyer, cardholder and admin screens.
Delivery details are only ever returned on the admin projection
or to the cardholder the request is matched to.
"""

from runesse import repository
from runesse.errors import NotFoundError, UnauthorizedError

INBOX_LIMIT = 200


def list_public_requests():
    return [r.to_dict(include_sensitive=False) for r in repository.list_requests()]


def list_admin_requests():
    return [r.to_dict() for r in repository.list_requests()]


def get_admin_request(request_id):
    req = repository.get_request(request_id)
    if req is None:
        raise NotFoundError()
    return req.to_dict()


def list_active_cards():
    return [card.to_public_dict() for card in repository.list_active_cards()]


def list_buyer_requests(buyer_email):
    """Requests of the User with this email; an unknown email has none."""
    if not buyer_email:
        return []
    user = repository.find_user_by_email(buyer_email)
    if user is None:
        return []
    requests = repository.list_requests(buyer_id=user.id, buyer_email=user.email)
    return [r.to_dict(include_sensitive=False) for r in requests]


def get_cardholder_request(request_id, cardholder_email):
    """
    Returns (request dict, can_see_address). The delivery address is shown
    only while the request is MATCHED to this cardholder.
    """
    if not cardholder_email:
        raise UnauthorizedError("Unauthorized")

    req = repository.get_request(request_id)
    if req is None:
        raise NotFoundError()

    can_see_address = (
        (req.status or "").upper() == "MATCHED"
        and (req.matched_cardholder_email or "").lower() == cardholder_email.lower()
    )
    return req.to_dict(include_sensitive=can_see_address), can_see_address


def _norm(value):
    return (value or "").strip().upper()


def card_satisfies(card, req):
    """Unset preferences on the request match any card."""
    wanted = (
        (_norm(req.requested_issuer), _norm(card.issuer)),
        (_norm(req.requested_network), _norm(card.network)),
        (_norm(req.requested_card_label), _norm(card.label)),
    )
    return all(not want or want == have for want, have in wanted)


def get_cardholder_inbox(cardholder_email):
    if not cardholder_email:
        raise UnauthorizedError("Unauthenticated cardholder")

    cards = repository.list_active_cards(cardholder_email=cardholder_email)
    open_requests = repository.list_requests(status="PENDING", unmatched=True, limit=INBOX_LIMIT)
    inbox = [
        req for req in open_requests
        if any(card_satisfies(card, req) for card in cards)
    ]
    mine = repository.list_requests(matched_cardholder_email=cardholder_email, limit=INBOX_LIMIT)

    return {
        "savedCards": [card.to_public_dict() for card in cards],
        "inbox": [r.to_dict(include_sensitive=False) for r in inbox],
        "myRequests": [r.to_dict(include_sensitive=r.status == "MATCHED") for r in mine],
    }
