"""
LedgerEntry Model — append-only audit trail
Operational events carry no amount; manual reimbursements do.
"""

import uuid
from datetime import datetime, timezone
from runesse.extensions import db

LEDGER_SCOPES = ("USER_TRANSACTION", "PLATFORM")

LEDGER_EVENT_TYPES = (
    "REQUEST_CREATED",
    "CARDHOLDER_ACCEPTED",
    "ADMIN_MATCHED",
    "REQUEST_CANCELLED",
    "ADMIN_MARKED_COMPLETED",
    "ADMIN_REJECTED_REQUEST",
    "MANUAL_REIMBURSEMENT_COMPLETED",
)


class LedgerEntry(db.Model):
    __tablename__ = "ledger_entries"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    scope = db.Column(
        db.Enum(*LEDGER_SCOPES, name="ledger_scope"),
        nullable=False,
        default="USER_TRANSACTION"
    )
    event_type = db.Column(db.Enum(*LEDGER_EVENT_TYPES, name="ledger_event_type"), nullable=False)
    amount = db.Column(db.Numeric(12, 2), nullable=True)
    currency = db.Column(db.String(3), nullable=False, default="INR")
    account_key = db.Column(db.String(100), nullable=True)
    reference_type = db.Column(db.String(50), nullable=True)
    reference_id = db.Column(db.String(36), nullable=True, index=True)
    actor_email = db.Column(db.String(255), nullable=True)
    description = db.Column(db.Text, nullable=True)
    meta = db.Column(db.JSON, nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc)
    )

    def to_dict(self):
        return {
            "id":            self.id,
            "scope":         self.scope,
            "eventType":     self.event_type,
            "amount":        float(self.amount) if self.amount is not None else None,
            "currency":      self.currency,
            "accountKey":    self.account_key,
            "referenceType": self.reference_type,
            "referenceId":   self.reference_id,
            "actorEmail":    self.actor_email,
            "description":   self.description,
            "meta":          self.meta,
            "createdAt":     self.created_at.isoformat() if self.created_at else None,
        }
