from flask import Blueprint, current_app, jsonify, request
from runesse.auth import current_admin_email, get_caller_email, trusted_device_required
from runesse.schemas import RegisterDeviceInput, ReimbursementInput, RequestRefInput, StatusInput, parse
from runesse.services.device_trust import check_trusted_device, register_device
from runesse.services.ledger import get_request_ledger, record_reimbursement
from runesse.services.queries import get_admin_request, list_admin_requests
from runesse.services.request_service import match_request, set_status

admin_bp = Blueprint("admin", __name__)

ONE_YEAR = 60 * 60 * 24 * 365


# --- Device trust -------------------------------------------------------

@admin_bp.route("/device-trust/check", methods=["GET"])
def device_trust_check():
    """
    Is this browser a trusted admin device?
    ---
    tags:
      - Admin
    responses:
      200:
        description: "{ok: true} when trusted, {ok: false} otherwise"
      500:
        description: Store failure
    """
    cookie_value = request.cookies.get(current_app.config["ADMIN_DEVICE_COOKIE"])
    device = check_trusted_device(cookie_value, current_app.config["ADMIN_EMAILS"])
    return jsonify({"ok": device is not None}), 200


@admin_bp.route("/device-trust/register", methods=["POST"])
def device_trust_register():
    """
    Register the current browser as a trusted admin device
    ---
    tags:
      - Admin
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: false
        schema:
          type: object
          properties:
            label:
              type: string
    responses:
      201:
        description: Device registered, cookie set
      403:
        description: Caller is not an allow-listed admin
    """
    payload = parse(RegisterDeviceInput, request.get_json(silent=True))
    device = register_device(get_caller_email(), current_app.config["ADMIN_EMAILS"], label=payload.label)

    resp = jsonify({"ok": True})
    resp.set_cookie(
        current_app.config["ADMIN_DEVICE_COOKIE"],
        device.device_id,
        max_age=ONE_YEAR,
        httponly=True,
        secure=current_app.config["SESSION_COOKIE_SECURE"],
        samesite="Lax",
        path="/",
    )
    return resp, 201


# --- Requests -----------------------------------------------------------

@admin_bp.route("/requests", methods=["GET"])
@trusted_device_required
def requests_list():
    """
    All requests with every field
    ---
    tags:
      - Admin
    responses:
      200:
        description: Requests, newest first
      403:
        description: Untrusted device
    """
    return jsonify({"ok": True, "requests": list_admin_requests()}), 200


@admin_bp.route("/requests/<request_id>", methods=["GET"])
@trusted_device_required
def request_detail(request_id):
    """
    Single request with every field
    ---
    tags:
      - Admin
    parameters:
      - in: path
        name: request_id
        required: true
        type: string
    responses:
      200:
        description: Request
      403:
        description: Untrusted device
      404:
        description: Request not found
    """
    return jsonify({"ok": True, "request": get_admin_request(request_id)}), 200


@admin_bp.route("/requests/<request_id>/ledger", methods=["GET"])
@trusted_device_required
def request_ledger(request_id):
    """
    Ledger entries recorded against a request
    ---
    tags:
      - Admin
    parameters:
      - in: path
        name: request_id
        required: true
        type: string
    responses:
      200:
        description: Entries, oldest first
      404:
        description: Request not found
    """
    return jsonify({"ok": True, "items": get_request_ledger(request_id)}), 200


@admin_bp.route("/requests/match", methods=["POST"])
@trusted_device_required
def requests_match():
    """
    Match a PENDING request to a cardholder
    ---
    tags:
      - Admin
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
    responses:
      200:
        description: Request is now MATCHED
      400:
        description: Missing id or request is not PENDING
      404:
        description: Request not found
      409:
        description: Request changed concurrently
    """
    payload = parse(RequestRefInput, request.get_json(silent=True))
    updated = match_request(
        payload.request_id,
        placeholder_email=current_app.config["PLACEHOLDER_CARDHOLDER_EMAIL"],
        admin_email=current_admin_email(),
    )
    return jsonify({"ok": True, "request": updated.to_dict()}), 200


@admin_bp.route("/requests/status", methods=["POST"])
@trusted_device_required
def requests_status():
    """
    Mark a request COMPLETED or CANCELLED
    ---
    tags:
      - Admin
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - requestId
            - newStatus
          properties:
            requestId:
              type: string
            newStatus:
              type: string
              enum: [COMPLETED, CANCELLED]
    responses:
      200:
        description: Request updated (or already in that status)
      400:
        description: Missing id or invalid status
      404:
        description: Request not found
    """
    payload = parse(StatusInput, request.get_json(silent=True))
    updated = set_status(payload.request_id, payload.new_status, admin_email=current_admin_email())
    return jsonify({"ok": True, "request": updated.to_dict()}), 200


@admin_bp.route("/reimbursements", methods=["POST"])
@trusted_device_required
def reimbursements_record():
    """
    Record a manual reimbursement paid to the cardholder
    ---
    tags:
      - Admin
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - requestId
            - amount
          properties:
            requestId:
              type: string
            amount:
              type: number
            currency:
              type: string
              default: INR
            method:
              type: string
            utr:
              type: string
            paidAt:
              type: string
    responses:
      200:
        description: Reimbursement recorded in the ledger
      400:
        description: Missing id or invalid amount
      404:
        description: Request not found
    """
    payload = parse(ReimbursementInput, request.get_json(silent=True))
    entry = record_reimbursement(admin_email=current_admin_email(), **payload.model_dump())
    return jsonify({"ok": True, "entry": entry.to_dict()}), 200
