import uuid
from datetime import datetime, timezone
from runesse.extensions import db


class AdminDevice(db.Model):
    __tablename__ = "admin_devices"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    admin_email = db.Column(db.String(255), nullable=False, index=True)
    device_id = db.Column(db.String(64), unique=True, nullable=False)
    label = db.Column(db.String(100), nullable=True)
    is_revoked = db.Column(db.Boolean, nullable=False, default=False)
    last_seen_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc)
    )

    def to_dict(self):
        return {
            "id": self.id,
            "adminEmail": self.admin_email,
            "label": self.label,
            "isRevoked": self.is_revoked,
            "lastSeenAt": self.last_seen_at.isoformat() if self.last_seen_at else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
