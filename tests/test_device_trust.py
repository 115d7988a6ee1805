import unittest
from unittest import mock

from runesse import repository
from runesse.extensions import db
from runesse.errors import ForbiddenError, StoreError
from runesse.models import AdminDevice
from runesse.services.device_trust import check_trusted_device, register_device
from tests.base import ADMIN_EMAIL, RunesseTestCase

ADMINS = (ADMIN_EMAIL,)


class TestCheckTrustedDevice(RunesseTestCase):
    def test_no_cookie(self):
        self.add_device("device-1")
        self.assertIsNone(check_trusted_device(None, ADMINS))
        self.assertIsNone(check_trusted_device("", ADMINS))

    def test_revoked_device(self):
        self.add_device("device-1", is_revoked=True)
        self.assertIsNone(check_trusted_device("device-1", ADMINS))

    def test_mismatched_device_id(self):
        self.add_device("device-1")
        self.assertIsNone(check_trusted_device("device-2", ADMINS))

    def test_mismatched_admin_email(self):
        self.add_device("device-1", admin_email="someone-else@demo.runesse")
        self.assertIsNone(check_trusted_device("device-1", ADMINS))

    def test_trusted_device_updates_last_seen(self):
        self.add_device("device-1")

        device = check_trusted_device("device-1", ADMINS)

        self.assertIsNotNone(device)
        self.assertEqual(device.admin_email, ADMIN_EMAIL)
        stored = AdminDevice.query.filter_by(device_id="device-1").one()
        self.assertIsNotNone(stored.last_seen_at)
        self.assertFalse(stored.is_revoked)

    def test_allow_list_can_hold_several_admins(self):
        self.add_device("device-1", admin_email="ops@demo.runesse")
        self.assertIsNone(check_trusted_device("device-1", ADMINS))
        self.assertIsNotNone(check_trusted_device("device-1", ADMINS + ("ops@demo.runesse",)))

    def test_last_seen_failure_does_not_fail_the_check(self):
        self.add_device("device-1")
        with mock.patch.object(repository, "commit", side_effect=StoreError()):
            device = check_trusted_device("device-1", ADMINS)
        self.assertIsNotNone(device)

    def test_last_seen_failure_logs_without_touching_the_store_again(self):
        stored = self.add_device("device-1")
        stored_id = stored.id

        def failing_commit(action):
            # The store guard rolls back, expiring every loaded row
            db.session.rollback()
            db.session.expunge_all()
            raise StoreError()

        with mock.patch.object(repository, "commit", side_effect=failing_commit):
            with self.assertLogs("runesse.services.device_trust", level="WARNING") as logs:
                device = check_trusted_device("device-1", ADMINS)

        self.assertIsNotNone(device)
        self.assertIn(str(stored_id), logs.output[0])

    def test_lookup_failure_propagates(self):
        with mock.patch.object(repository, "find_trusted_device", side_effect=StoreError()):
            with self.assertRaises(StoreError):
                check_trusted_device("device-1", ADMINS)


class TestRegisterDevice(RunesseTestCase):
    def test_register_for_allow_listed_admin(self):
        device = register_device(ADMIN_EMAIL, ADMINS, label="Office laptop")

        self.assertEqual(device.label, "Office laptop")
        self.assertFalse(device.is_revoked)
        self.assertIsNotNone(check_trusted_device(device.device_id, ADMINS))

    def test_register_rejects_other_callers(self):
        with self.assertRaises(ForbiddenError):
            register_device("buyer@x.com", ADMINS)
        with self.assertRaises(ForbiddenError):
            register_device(None, ADMINS)


if __name__ == "__main__":
    unittest.main()
