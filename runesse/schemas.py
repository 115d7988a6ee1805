"""
Request body schemas. Wire names are camelCase, attributes snake_case.
"""

from decimal import Decimal
from typing import Optional

import pydantic
from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator
from pydantic.alias_generators import to_camel

from runesse.errors import ValidationError

SETTABLE_STATUSES = ("COMPLETED", "CANCELLED")


class Schema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _blank_to_none(value):
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, bool):
        raise ValueError("must be a number")
    return value


class CreateRequestInput(Schema):
    buyer_email: Optional[StrictStr] = None
    product_link: StrictStr = Field(min_length=1)
    product_name: Optional[StrictStr] = None
    checkout_price: Optional[Decimal] = Field(default=None, ge=0)
    notes: Optional[StrictStr] = None
    requested_issuer: Optional[StrictStr] = None
    requested_network: Optional[StrictStr] = None
    requested_card_label: Optional[StrictStr] = None
    delivery_address_text: Optional[StrictStr] = None
    delivery_mobile: Optional[StrictStr] = None

    @field_validator("checkout_price", mode="before")
    @classmethod
    def parse_price(cls, value):
        return _blank_to_none(value)


class RequestRefInput(Schema):
    request_id: StrictStr = Field(min_length=1)


class ClaimInput(RequestRefInput):
    card_id: Optional[StrictStr] = None


class CancelInput(RequestRefInput):
    reason: Optional[StrictStr] = None


class StatusInput(RequestRefInput):
    new_status: StrictStr

    @field_validator("new_status")
    @classmethod
    def normalize_status(cls, value):
        status = value.strip().upper()
        if status not in SETTABLE_STATUSES:
            raise ValueError("Invalid status")
        return status


class ReimbursementInput(RequestRefInput):
    amount: Decimal = Field(gt=0)
    currency: StrictStr = "INR"
    method: Optional[StrictStr] = None
    utr: Optional[StrictStr] = None
    paid_at: Optional[StrictStr] = None

    @field_validator("amount", mode="before")
    @classmethod
    def parse_amount(cls, value):
        return _blank_to_none(value)


class RegisterDeviceInput(Schema):
    label: Optional[StrictStr] = None


def _describe(error):
    field = ".".join(str(part) for part in error["loc"])
    message = error["msg"]
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return f"{field}: {message}" if field else message


def parse(schema, data):
    """Validate a JSON body against schema, raising the service ValidationError."""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    try:
        return schema.model_validate(data)
    except pydantic.ValidationError as exc:
        raise ValidationError(_describe(exc.errors()[0])) from exc
