"""
A browser is a trusted admin device when its cookie matches a non-revoked
AdminDevice row owned by an allow-listed admin email.
"""

import logging
import uuid
from datetime import datetime, timezone

from runesse import repository
from runesse.errors import ForbiddenError, StoreError
from runesse.models import AdminDevice

logger = logging.getLogger(__name__)


def check_trusted_device(cookie_value, admin_emails):
    """
    Returns the trusted AdminDevice for cookie_value, or None.
    Updating last_seen_at is best-effort and never fails the check.
    """
    if not cookie_value or not admin_emails:
        return None

    device = repository.find_trusted_device(cookie_value, admin_emails)
    if device is None:
        return None

    device_id = device.id
    try:
        device.last_seen_at = datetime.now(timezone.utc)
        repository.commit("updating admin device last_seen_at")
    except StoreError:
        logger.warning("Could not update last_seen_at for admin device %s", device_id)

    return device


def register_device(admin_email, admin_emails, label=None):
    """Create a new trusted device for an allow-listed admin and return it."""
    if not admin_email or admin_email not in admin_emails:
        raise ForbiddenError("Only an allow-listed admin can register a device")

    device = AdminDevice(
        admin_email=admin_email,
        device_id=str(uuid.uuid4()),
        label=label or "Trusted device",
        is_revoked=False,
    )
    repository.add(device)
    repository.commit("registering admin device")
    logger.info("Registered admin device %s for %s", device.id, admin_email)
    return device
