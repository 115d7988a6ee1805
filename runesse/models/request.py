"""
Request Model — purchase request raised by a buyer
Status: PENDING | MATCHED | COMPLETED | CANCELLED
"""

import uuid
from datetime import datetime, timezone
from runesse.extensions import db

REQUEST_STATUSES = ("PENDING", "MATCHED", "COMPLETED", "CANCELLED")

# Only the admin projection and the matched cardholder may see these
SENSITIVE_FIELDS = ("deliveryAddressText", "deliveryMobile")


class Request(db.Model):
    __tablename__ = "requests"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    buyer_email = db.Column(db.String(255), nullable=False, index=True)
    buyer_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=True)

    product_link = db.Column(db.Text, nullable=False)
    product_name = db.Column(db.String(255), nullable=True)
    checkout_price = db.Column(db.Numeric(12, 2), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    requested_issuer = db.Column(db.String(100), nullable=True)
    requested_network = db.Column(db.String(50), nullable=True)
    requested_card_label = db.Column(db.String(100), nullable=True)

    delivery_address_text = db.Column(db.Text, nullable=True)
    delivery_mobile = db.Column(db.String(20), nullable=True)

    status = db.Column(
        db.Enum(*REQUEST_STATUSES, name="request_status"),
        nullable=False,
        default="PENDING"
    )
    matched_cardholder_email = db.Column(db.String(255), nullable=True)
    matched_card_id = db.Column(db.String(36), nullable=True)
    matched_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc)
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc)
    )

    def to_dict(self, include_sensitive=True):
        data = {
            "id":                     self.id,
            "buyerEmail":             self.buyer_email,
            "buyerId":                self.buyer_id,
            "productLink":            self.product_link,
            "productName":            self.product_name,
            "checkoutPrice":          float(self.checkout_price) if self.checkout_price is not None else None,
            "notes":                  self.notes,
            "requestedIssuer":        self.requested_issuer,
            "requestedNetwork":       self.requested_network,
            "requestedCardLabel":     self.requested_card_label,
            "deliveryAddressText":    self.delivery_address_text,
            "deliveryMobile":         self.delivery_mobile,
            "status":                 self.status,
            "matchedCardholderEmail": self.matched_cardholder_email,
            "matchedCardId":          self.matched_card_id,
            "matchedAt":              self.matched_at.isoformat() if self.matched_at else None,
            "createdAt":              self.created_at.isoformat() if self.created_at else None,
            "updatedAt":              self.updated_at.isoformat() if self.updated_at else None,
        }
        if not include_sensitive:
            for field in SENSITIVE_FIELDS:
                data[field] = None
        return data


# Older screens still refer to the table by this name
BuyerRequest = Request
