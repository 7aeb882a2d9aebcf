"""
test_schemas_webhooks.py — Tests for webhook payload validation.

Called by: pytest
Depends on: debtwatch/schemas/webhooks.py
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from debtwatch.schemas.webhooks import (
    LogActivityRequest,
    SyncClientsRequest,
    UpdatePaymentRequest,
    XeroClient,
)


def test_camel_case_aliases():
    p = UpdatePaymentRequest(xeroContactId="x-1", newBalance=500, paymentAmount=300.5)
    assert p.xero_contact_id == "x-1"
    assert p.new_balance == Decimal("500")
    assert p.payment_amount == Decimal("300.5")


def test_snake_case_also_accepted():
    p = UpdatePaymentRequest(xero_contact_id="x-1", new_balance=1, payment_amount=1)
    assert p.xero_contact_id == "x-1"


def test_blank_contact_id_rejected():
    with pytest.raises(ValidationError, match="xeroContactId is required"):
        UpdatePaymentRequest(xeroContactId="   ", newBalance=1, paymentAmount=1)


def test_blank_name_rejected():
    with pytest.raises(ValidationError, match="Client name is required"):
        XeroClient(xeroContactId="x-1", name=" ", email="a@b.c", currentBalance=0)


def test_optional_client_fields_default_none():
    c = XeroClient(xeroContactId="x-1", name="A", email="a@b.c", currentBalance=0)
    assert c.phone is None
    assert c.company is None


def test_clients_must_be_a_list():
    with pytest.raises(ValidationError):
        SyncClientsRequest(clients={"xeroContactId": "x-1"})


@pytest.mark.parametrize("kind", ["call", "sms", "email", "suspension"])
def test_activity_types(kind):
    assert LogActivityRequest(xeroContactId="x", activityType=kind).activity_type == kind


@pytest.mark.parametrize("kind", ["payment", "CALL", "visit"])
def test_activity_type_rejected(kind):
    with pytest.raises(ValidationError):
        LogActivityRequest(xeroContactId="x", activityType=kind)


@pytest.mark.parametrize("amount", [1e30, "-1E+11", "10000000000", "NaN", "Infinity"])
def test_amounts_outside_money_column_rejected(amount):
    with pytest.raises(ValidationError):
        UpdatePaymentRequest(xeroContactId="x-1", newBalance=amount, paymentAmount=1)
    with pytest.raises(ValidationError):
        XeroClient(xeroContactId="x-1", name="A", email="a@b.c", currentBalance=amount)


def test_largest_money_value_accepted():
    p = UpdatePaymentRequest(xeroContactId="x-1", newBalance="9999999999.99", paymentAmount="-9999999999.99")
    assert p.new_balance == Decimal("9999999999.99")
