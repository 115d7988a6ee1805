from runesse.models.user import User
from runesse.models.request import Request, BuyerRequest, REQUEST_STATUSES
from runesse.models.saved_card import SavedCard
from runesse.models.admin_device import AdminDevice
from runesse.models.ledger_entry import LedgerEntry
