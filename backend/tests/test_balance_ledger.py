"""
Debt payment tests.

A payment must be positive and no larger than the current balance; a
rejected payment leaves the balance and the payment log untouched.
"""

import re

import pytest

from posledger.errors import InvalidPaymentError, InvoiceValidationError
from posledger.extensions import db
from posledger.models import Customer, DebtPayment, Supplier
from posledger.services import balance_ledger


@pytest.fixture
def indebted_customer(db_session):
    c = Customer(name="Sara", balance_cents=500, total_purchases_cents=500)
    db_session.add(c)
    db_session.commit()
    return c


def test_full_payment_clears_balance(indebted_customer):
    receipt = balance_ledger.apply_payment(indebted_customer.id, 500)

    assert receipt["previous_balance_cents"] == 500
    assert receipt["amount_cents"] == 500
    assert receipt["new_balance_cents"] == 0
    assert receipt["party_name"] == "Sara"
    assert re.fullmatch(r"REC\d{8}", receipt["receipt_number"])
    assert receipt["timestamp"].endswith("Z")

    assert db.session.get(Customer, indebted_customer.id).balance_cents == 0


def test_partial_payment(indebted_customer):
    receipt = balance_ledger.apply_payment(indebted_customer.id, 120, notes="cash at counter")

    assert receipt["new_balance_cents"] == 380
    payment = db.session.query(DebtPayment).one()
    assert payment.previous_balance_cents == 500
    assert payment.new_balance_cents == 380
    assert payment.notes == "cash at counter"


def test_overpayment_rejected_and_balance_kept(indebted_customer):
    with pytest.raises(InvalidPaymentError) as exc:
        balance_ledger.apply_payment(indebted_customer.id, 600)

    assert exc.value.details == {"amount_cents": 600, "balance_cents": 500}
    assert db.session.get(Customer, indebted_customer.id).balance_cents == 500
    assert db.session.query(DebtPayment).count() == 0


@pytest.mark.parametrize("amount", [0, -10])
def test_non_positive_amount_rejected(indebted_customer, amount):
    with pytest.raises(InvalidPaymentError):
        balance_ledger.apply_payment(indebted_customer.id, amount)
    assert db.session.get(Customer, indebted_customer.id).balance_cents == 500


@pytest.mark.parametrize("amount", [10.5, "100", None, True])
def test_non_integer_amount_rejected(indebted_customer, amount):
    with pytest.raises(InvalidPaymentError):
        balance_ledger.apply_payment(indebted_customer.id, amount)


def test_unknown_customer(db_session):
    with pytest.raises(InvoiceValidationError):
        balance_ledger.apply_payment(4242, 10)


def test_unknown_party_type(db_session):
    with pytest.raises(InvoiceValidationError):
        balance_ledger.record_payment("employee", 1, 10)


def test_supplier_payment(db_session):
    s = Supplier(name="Wholesaler", balance_cents=1000)
    db_session.add(s)
    db_session.commit()

    receipt = balance_ledger.apply_supplier_payment(s.id, 250)

    assert receipt["party_type"] == "supplier"
    assert receipt["new_balance_cents"] == 750
    assert db.session.get(Supplier, s.id).balance_cents == 750


def test_credit_sale_adds_remaining(db_session, customer):
    balance_ledger.apply_credit_sale(customer.id, 150, 250)
    db.session.commit()

    c = db.session.get(Customer, customer.id)
    assert c.balance_cents == 150
    assert c.total_purchases_cents == 250


def test_outstanding_balances(db_session):
    db_session.add_all([
        Customer(name="Low", balance_cents=100),
        Customer(name="High", balance_cents=900),
        Customer(name="Settled", balance_cents=0),
    ])
    db_session.commit()

    summary = balance_ledger.outstanding_balances()

    assert summary["total_cents"] == 1000
    assert summary["count"] == 2
    assert [row["name"] for row in summary["rows"]] == ["High", "Low"]


def test_list_payments_filters_by_party(indebted_customer):
    other = Customer(name="Other", balance_cents=50)
    db.session.add(other)
    db.session.commit()

    balance_ledger.apply_payment(indebted_customer.id, 100)
    balance_ledger.apply_payment(other.id, 50)

    rows = balance_ledger.list_payments(party_type="customer", party_id=other.id)
    assert [p.amount_cents for p in rows] == [50]
    assert len(balance_ledger.list_payments()) == 2
