from flask import Blueprint, jsonify, request
from runesse.auth import get_caller_email
from runesse.schemas import CreateRequestInput, parse
from runesse.services.queries import list_public_requests
from runesse.services.request_service import create_request

requests_bp = Blueprint("requests", __name__)


@requests_bp.route("", methods=["POST"])
def create_request_route():
    """
    Create a purchase request
    ---
    tags:
      - Requests
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - productLink
          properties:
            buyerEmail:
              type: string
              description: Ignored when a bearer token identifies the buyer
            productLink:
              type: string
            productName:
              type: string
            checkoutPrice:
              type: number
            notes:
              type: string
            requestedIssuer:
              type: string
            requestedNetwork:
              type: string
            requestedCardLabel:
              type: string
            deliveryAddressText:
              type: string
            deliveryMobile:
              type: string
    responses:
      201:
        description: Request created with status PENDING
      400:
        description: Missing or invalid fields
    """
    payload = parse(CreateRequestInput, request.get_json(silent=True))
    created = create_request(caller_email=get_caller_email(), **payload.model_dump())
    return jsonify({
        "ok": True,
        "requestId": created.id,
        "request": created.to_dict(include_sensitive=False),
    }), 201


@requests_bp.route("", methods=["GET"])
def list_requests_route():
    """
    List all requests without delivery details
    ---
    tags:
      - Requests
    responses:
      200:
        description: Requests, newest first
      500:
        description: Store failure
    """
    return jsonify({"ok": True, "requests": list_public_requests()}), 200
