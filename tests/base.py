import unittest

from flask_jwt_extended import create_access_token

from runesse.app import create_app
from runesse.extensions import db
from runesse.models import AdminDevice, SavedCard, User

ADMIN_EMAIL = "admin@demo.runesse"
DEVICE_COOKIE = "runesse_admin_device"


class RunesseTestCase(unittest.TestCase):
    config = {}

    def setUp(self):
        self.app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite://",
            "JWT_SECRET_KEY": "test-secret-key-that-is-long-enough-for-hs256",
            "SESSION_COOKIE_SECURE": False,
            "ADMIN_EMAILS": ADMIN_EMAIL,
            **self.config,
        })
        self.ctx = self.app.app_context()
        self.ctx.push()
        db.create_all()
        self.client = self.app.test_client()

    def tearDown(self):
        db.session.remove()
        db.drop_all()
        self.ctx.pop()

    # --- helpers --------------------------------------------------------

    def auth(self, email):
        return {"Authorization": f"Bearer {create_access_token(identity=email)}"}

    def add_user(self, email):
        user = User(email=email)
        db.session.add(user)
        db.session.commit()
        return user

    def add_card(self, cardholder_email="holder@x.com", **fields):
        card = SavedCard(cardholder_email=cardholder_email, **fields)
        db.session.add(card)
        db.session.commit()
        return card

    def add_device(self, device_id="device-1", admin_email=ADMIN_EMAIL, is_revoked=False):
        device = AdminDevice(admin_email=admin_email, device_id=device_id, is_revoked=is_revoked)
        db.session.add(device)
        db.session.commit()
        return device

    def trust_device(self, device_id="device-1", client=None):
        (client or self.client).set_cookie(DEVICE_COOKIE, device_id)
