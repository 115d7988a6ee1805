from flask import Blueprint, current_app, jsonify, request
from runesse.auth import get_caller_email
from runesse.schemas import CancelInput, parse
from runesse.services.queries import list_active_cards, list_buyer_requests
from runesse.services.request_service import cancel_as_buyer

buyer_bp = Blueprint("buyer", __name__)


@buyer_bp.route("/requests", methods=["GET"])
def my_requests():
    """
    List the calling buyer's requests
    ---
    tags:
      - Buyer
    security:
      - Bearer: []
    responses:
      200:
        description: Requests of the buyer; empty when the buyer has no account
    """
    email = get_caller_email() or current_app.config["BUYER_DEMO_EMAIL"]
    return jsonify({"ok": True, "requests": list_buyer_requests(email)}), 200


@buyer_bp.route("/requests/cancel", methods=["POST"])
def cancel_request():
    """
    Buyer cancels a request that no cardholder has taken yet
    ---
    tags:
      - Buyer
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
        description: Missing id or request no longer PENDING
      401:
        description: No buyer identity
      403:
        description: Request belongs to another buyer
      404:
        description: Request not found
    """
    payload = parse(CancelInput, request.get_json(silent=True))
    updated = cancel_as_buyer(payload.request_id, reason=payload.reason, buyer_email=get_caller_email())
    return jsonify({"ok": True, "request": updated.to_dict(include_sensitive=False)}), 200


@buyer_bp.route("/cards", methods=["GET"])
def available_cards():
    """
    Active saved cards buyers can ask for
    ---
    tags:
      - Buyer
    responses:
      200:
        description: Public view of active cards, newest first
    """
    return jsonify({"ok": True, "cards": list_active_cards()}), 200
