import uuid
from datetime import datetime, timezone
from runesse.extensions import db


class SavedCard(db.Model):
    __tablename__ = "saved_cards"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    cardholder_email = db.Column(db.String(255), nullable=True, index=True)
    label = db.Column(db.String(100), nullable=True)
    issuer = db.Column(db.String(100), nullable=True)
    brand = db.Column(db.String(50), nullable=True)
    network = db.Column(db.String(50), nullable=True)
    country = db.Column(db.String(2), nullable=True)
    last4 = db.Column(db.String(4), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc)
    )

    def to_public_dict(self):
        return {
            "id": self.id,
            "label": self.label,
            "issuer": self.issuer,
            "brand": self.brand,
            "network": self.network,
            "country": self.country,
            "last4": self.last4,
        }
