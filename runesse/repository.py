"""
All reads and writes against the relational store.
SQLAlchemy failures are rolled back, logged and surfaced as StoreError.
"""

import logging
from contextlib import contextmanager
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from runesse.errors import StoreError
from runesse.extensions import db
from runesse.models import AdminDevice, LedgerEntry, Request, SavedCard, User

logger = logging.getLogger(__name__)


@contextmanager
def store_guard(action):
    try:
        yield
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Store failure while %s", action)
        raise StoreError() from exc


def get_request(request_id):
    with store_guard("loading request"):
        return db.session.get(Request, request_id)


def find_user_by_email(email):
    with store_guard("loading user"):
        return User.query.filter_by(email=email).first()


def list_requests(buyer_id=None, buyer_email=None, status=None, unmatched=False,
                  matched_cardholder_email=None, limit=None):
    query = Request.query
    if buyer_id or buyer_email:
        clauses = []
        if buyer_id:
            clauses.append(Request.buyer_id == buyer_id)
        if buyer_email:
            clauses.append(Request.buyer_email == buyer_email)
        query = query.filter(or_(*clauses))
    if status:
        query = query.filter(Request.status == status)
    if unmatched:
        query = query.filter(Request.matched_cardholder_email.is_(None))
    if matched_cardholder_email:
        query = query.filter(Request.matched_cardholder_email == matched_cardholder_email)
    query = query.order_by(Request.created_at.desc())
    if limit:
        query = query.limit(limit)

    with store_guard("listing requests"):
        return query.all()


def get_saved_card(card_id):
    with store_guard("loading saved card"):
        return db.session.get(SavedCard, card_id)


def list_active_cards(cardholder_email=None):
    query = SavedCard.query.filter_by(is_active=True)
    if cardholder_email:
        query = query.filter_by(cardholder_email=cardholder_email)
    with store_guard("listing saved cards"):
        return query.order_by(SavedCard.created_at.desc()).all()


def list_ledger_entries(reference_id, limit=100):
    with store_guard("listing ledger entries"):
        return (
            LedgerEntry.query
            .filter_by(reference_type="REQUEST", reference_id=reference_id)
            .order_by(LedgerEntry.created_at.asc())
            .limit(limit)
            .all()
        )


def update_request_if_status(request_id, expected_status, values):
    """
    Compare-and-swap on Request.status.
    Returns the number of rows updated: 0 means another caller moved the
    request away from expected_status after it was read.
    Does not commit.
    """
    with store_guard("updating request"):
        return (
            db.session.query(Request)
            .filter(Request.id == request_id, Request.status == expected_status)
            .update(values, synchronize_session=False)
        )


def find_trusted_device(device_id, admin_emails):
    with store_guard("loading admin device"):
        return AdminDevice.query.filter(
            AdminDevice.admin_email.in_(list(admin_emails)),
            AdminDevice.device_id == device_id,
            AdminDevice.is_revoked.is_(False),
        ).first()


def add(*rows):
    for row in rows:
        db.session.add(row)


def flush(action):
    with store_guard(action):
        db.session.flush()


def commit(action):
    with store_guard(action):
        db.session.commit()


def rollback():
    db.session.rollback()
