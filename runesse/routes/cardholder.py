from flask import Blueprint, current_app, jsonify, request
from runesse.auth import get_caller_email
from runesse.schemas import CancelInput, ClaimInput, parse
from runesse.services.queries import get_cardholder_inbox, get_cardholder_request
from runesse.services.request_service import cancel_as_cardholder, take_request

cardholder_bp = Blueprint("cardholder", __name__)


@cardholder_bp.route("/requests/take", methods=["POST"])
def take():
    """
    Cardholder takes a PENDING request
    ---
    tags:
      - Cardholder
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - requestId
          properties:
            requestId:
              type: string
            cardId:
              type: string
    responses:
      200:
        description: Request is now MATCHED
      400:
        description: Missing id, request not available to take, card unavailable, or buyer taking their own request
      403:
        description: Card belongs to another cardholder
      404:
        description: Request not found
      409:
        description: Another cardholder took the request first
    """
    payload = parse(ClaimInput, request.get_json(silent=True))
    email = get_caller_email()
    cardholder_email = email
    if cardholder_email is None and not payload.card_id:
        cardholder_email = current_app.config["PLACEHOLDER_CARDHOLDER_EMAIL"]
    updated = take_request(payload.request_id, cardholder_email=cardholder_email, card_id=payload.card_id)
    is_owner = email is not None and (updated.matched_cardholder_email or "").lower() == email.lower()
    return jsonify({"ok": True, "request": updated.to_dict(include_sensitive=is_owner)}), 200


@cardholder_bp.route("/requests/cancel", methods=["POST"])
def cancel():
    """
    Cardholder backs out of a request they took
    ---
    tags:
      - Cardholder
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - requestId
          properties:
            requestId:
              type: string
            reason:
              type: string
    responses:
      200:
        description: Request cancelled
      400:
        description: Missing id or request is not MATCHED
      401:
        description: No cardholder identity
      403:
        description: Request is matched to another cardholder
      404:
        description: Request not found
    """
    payload = parse(CancelInput, request.get_json(silent=True))
    updated = cancel_as_cardholder(payload.request_id, reason=payload.reason,
                                   cardholder_email=get_caller_email())
    return jsonify({"ok": True, "request": updated.to_dict(include_sensitive=False)}), 200


@cardholder_bp.route("/requests/inbox", methods=["GET"])
def inbox():
    """
    Open requests the calling cardholder's cards can fulfil
    ---
    tags:
      - Cardholder
    security:
      - Bearer: []
    responses:
      200:
        description: Saved cards, matching open requests and the cardholder's own requests
      401:
        description: No cardholder identity
    """
    data = get_cardholder_inbox(get_caller_email())
    return jsonify({"ok": True, **data}), 200


@cardholder_bp.route("/requests/<request_id>", methods=["GET"])
def request_detail(request_id):
    """
    Single request as seen by a cardholder
    ---
    tags:
      - Cardholder
    parameters:
      - in: path
        name: request_id
        required: true
        type: string
    security:
      - Bearer: []
    responses:
      200:
        description: Request; delivery details only for the matched cardholder
      401:
        description: No cardholder identity
      404:
        description: Request not found
    """
    data, can_see_address = get_cardholder_request(request_id, get_caller_email())
    return jsonify({"ok": True, "request": data, "canSeeAddress": can_see_address}), 200
