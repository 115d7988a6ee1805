from functools import wraps

from flask import current_app, g, request
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from runesse.errors import UntrustedDeviceError
from runesse.services.device_trust import check_trusted_device


def get_caller_email():
    """Email of the bearer-token holder, or None when no token was sent."""
    verify_jwt_in_request(optional=True)
    return get_jwt_identity()


def trusted_device_required(fn):
    """Reject admin calls that do not come from a trusted device."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        g.admin_device = None
        if current_app.config["ADMIN_DEVICE_GUARD"]:
            cookie_value = request.cookies.get(current_app.config["ADMIN_DEVICE_COOKIE"])
            device = check_trusted_device(cookie_value, current_app.config["ADMIN_EMAILS"])
            if device is None:
                raise UntrustedDeviceError()
            g.admin_device = device
        return fn(*args, **kwargs)
    return wrapper


def current_admin_email():
    device = g.get("admin_device")
    return device.admin_email if device is not None else None
