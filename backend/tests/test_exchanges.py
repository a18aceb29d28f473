"""
Exchange workflow tests.

Verifies:
- exact-value exchanges move stock both ways and journal exchange_out/exchange_in
- totals must match to the cent
- preconditions are checked in order and any failure leaves no trace
- a sale can be exchanged (or returned) at most once
"""

from decimal import Decimal

import pytest
from conftest import make_product, post_movement, stock_up

from lojaroupa.errors import InsufficientStock, ValueMismatch
from lojaroupa.models import JournalEntry, StockEntry
from lojaroupa.services.exchange_service import ExchangeWorkflow, to_cents


def _stock(db_session, product):
    db_session.expire_all()
    entry = db_session.query(StockEntry).filter_by(product_id=product.id).first()
    return entry.quantity if entry else None


@pytest.fixture
def cap(db_session):
    """Product priced 50.00."""
    return make_product(db_session, name="Bone", price="50.00", size="U", alert_threshold=None)


@pytest.fixture
def sale(client, db_session, admin_headers, shirt):
    """Stock 10, then a sale of 3 shirts for 300.00 -> stock 7."""
    stock_up(db_session, shirt, 10)
    resp = post_movement(client, admin_headers, shirt, type="out", quantity=3, price="300.00", party="Maria")
    assert resp.status_code == 201
    return resp.json["transaction"]


def _exchange(client, headers, transaction_id, items):
    return client.post('/api/exchanges', headers=headers, json={
        'transaction_id': transaction_id,
        'new_products': [{'product_id': p.id, 'quantity': q} for p, q in items],
    })


class TestExactExchange:

    def test_two_items_for_one_sale(self, client, db_session, admin_headers, shirt, jacket, cap, sale):
        stock_up(db_session, jacket, 5)
        stock_up(db_session, cap, 5)

        resp = _exchange(client, admin_headers, sale["id"], [(jacket, 1), (cap, 3)])

        assert resp.status_code == 201
        rows = resp.json["transactions"]
        assert [r["type"] for r in rows] == ["exchange_out", "exchange_out", "exchange_in"]

        assert rows[0]["product_id"] == jacket.id
        assert rows[0]["quantity"] == 1
        assert rows[0]["transaction_price"] == "150.00"
        assert rows[0]["is_returned"] is False
        assert rows[0]["supplier_or_buyer"] == "Maria"

        assert rows[1]["product_id"] == cap.id
        assert rows[1]["transaction_price"] == "150.00"

        assert rows[2]["product_id"] == shirt.id
        assert rows[2]["quantity"] == 3
        assert rows[2]["transaction_price"] == "300.00"
        assert rows[2]["is_returned"] is True

        assert _stock(db_session, shirt) == 10
        assert _stock(db_session, jacket) == 4
        assert _stock(db_session, cap) == 2
        assert db_session.get(JournalEntry, sale["id"]).is_returned is True

    def test_exchanged_sale_cannot_be_exchanged_again(self, client, db_session, admin_headers, jacket, sale):
        stock_up(db_session, jacket, 5)
        assert _exchange(client, admin_headers, sale["id"], [(jacket, 2)]).status_code == 201

        resp = _exchange(client, admin_headers, sale["id"], [(jacket, 2)])

        assert resp.status_code == 400
        assert resp.json["code"] == "invalid_state"
        assert resp.json["error"] == "This transaction has already been returned/exchanged."
        assert _stock(db_session, jacket) == 3

    def test_exchanged_sale_cannot_be_returned(self, client, db_session, admin_headers, jacket, sale):
        stock_up(db_session, jacket, 5)
        assert _exchange(client, admin_headers, sale["id"], [(jacket, 2)]).status_code == 201

        resp = client.post('/api/returns', headers=admin_headers, json={'transaction_id': sale["id"]})

        assert resp.status_code == 400
        assert resp.json["code"] == "invalid_state"


class TestTwoUnitSale:
    """A 2-unit sale for 200.00 exchanged for two different products."""

    @pytest.fixture
    def small_sale(self, client, db_session, admin_headers, shirt):
        stock_up(db_session, shirt, 5)
        resp = post_movement(client, admin_headers, shirt, type="out", quantity=2, price="200.00")
        return resp.json["transaction"]

    def test_mismatch_mutates_nothing(self, client, db_session, admin_headers, cap, scarf, small_sale):
        stock_up(db_session, cap, 3)
        stock_up(db_session, scarf, 3)

        resp = _exchange(client, admin_headers, small_sale["id"], [(cap, 1), (scarf, 1)])   # 199.99

        assert resp.json["code"] == "value_mismatch"
        assert _stock(db_session, cap) == 3
        assert _stock(db_session, scarf) == 3
        assert db_session.query(JournalEntry).count() == 1

    def test_exact_total(self, client, db_session, admin_headers, shirt, jacket, cap, small_sale):
        stock_up(db_session, jacket, 3)
        stock_up(db_session, cap, 3)

        resp = _exchange(client, admin_headers, small_sale["id"], [(jacket, 1), (cap, 1)])   # 200.00

        assert resp.status_code == 201
        assert [r["type"] for r in resp.json["transactions"]] == ["exchange_out", "exchange_out", "exchange_in"]
        assert _stock(db_session, shirt) == 5
        assert _stock(db_session, jacket) == 2
        assert _stock(db_session, cap) == 2
        assert db_session.get(JournalEntry, small_sale["id"]).is_returned is True


class TestExchangeRejections:

    def test_one_cent_mismatch(self, client, db_session, admin_headers, shirt, scarf, sale):
        stock_up(db_session, scarf, 5)

        resp = _exchange(client, admin_headers, sale["id"], [(scarf, 2)])   # 299.98

        assert resp.status_code == 400
        assert resp.json["code"] == "value_mismatch"
        assert _stock(db_session, scarf) == 5
        assert _stock(db_session, shirt) == 7
        assert db_session.get(JournalEntry, sale["id"]).is_returned is False

    def test_value_checked_before_stock(self, client, db_session, admin_headers, scarf, sale):
        resp = _exchange(client, admin_headers, sale["id"], [(scarf, 1)])
        assert resp.json["code"] == "value_mismatch"

    def test_insufficient_stock_rolls_back_everything(self, client, db_session, admin_headers, shirt, jacket, cap, sale):
        stock_up(db_session, cap, 5)   # jacket has no stock

        resp = _exchange(client, admin_headers, sale["id"], [(cap, 3), (jacket, 1)])

        assert resp.status_code == 400
        assert resp.json["code"] == "insufficient_stock"
        assert resp.json["error"] == f"Insufficient stock for product ID {jacket.id}."
        assert _stock(db_session, cap) == 5
        assert _stock(db_session, shirt) == 7
        assert db_session.query(JournalEntry).count() == 1
        assert db_session.get(JournalEntry, sale["id"]).is_returned is False

    def test_repeated_product_checked_cumulatively(self, client, db_session, admin_headers, jacket, sale):
        stock_up(db_session, jacket, 1)

        resp = _exchange(client, admin_headers, sale["id"], [(jacket, 1), (jacket, 1)])

        assert resp.status_code == 400
        assert resp.json["code"] == "insufficient_stock"
        assert _stock(db_session, jacket) == 1

    def test_unknown_product(self, client, db_session, admin_headers, sale):
        resp = client.post('/api/exchanges', headers=admin_headers, json={
            'transaction_id': sale["id"],
            'new_products': [{'product_id': 9999, 'quantity': 1}],
        })
        assert resp.status_code == 404
        assert resp.json["error"] == "Product with ID 9999 not found."

    def test_unknown_transaction(self, client, db_session, admin_headers, jacket):
        resp = _exchange(client, admin_headers, 4242, [(jacket, 1)])
        assert resp.status_code == 404
        assert resp.json["error"] == "Original transaction not found."

    def test_purchase_cannot_be_exchanged(self, client, db_session, admin_headers, shirt, jacket):
        purchase = post_movement(client, admin_headers, shirt, type="in", quantity=2, price="150.00").json["transaction"]
        stock_up(db_session, jacket, 1)

        resp = _exchange(client, admin_headers, purchase["id"], [(jacket, 1)])

        assert resp.status_code == 400
        assert resp.json["error"] == "Only outbound transactions can be exchanged."

    def test_returned_sale_cannot_be_exchanged(self, client, db_session, admin_headers, jacket, sale):
        stock_up(db_session, jacket, 5)
        assert client.post('/api/returns', headers=admin_headers, json={'transaction_id': sale["id"]}).status_code == 201

        resp = _exchange(client, admin_headers, sale["id"], [(jacket, 2)])

        assert resp.status_code == 400
        assert resp.json["code"] == "invalid_state"
        assert _stock(db_session, jacket) == 5

    @pytest.mark.parametrize(
        "new_products",
        [[], None, [{"product_id": 1, "quantity": 0}], [{"product_id": "x", "quantity": 1}]],
    )
    def test_invalid_payload(self, client, admin_headers, sale, new_products):
        resp = client.post('/api/exchanges', headers=admin_headers, json={
            'transaction_id': sale["id"],
            'new_products': new_products,
        })
        assert resp.status_code == 400
        assert resp.json["code"] == "validation_error"

    def test_oversized_quantity_is_a_validation_error(self, client, db_session, admin_headers, shirt, jacket, sale):
        stock_up(db_session, jacket, 5)

        resp = _exchange(client, admin_headers, sale["id"], [(jacket, 10**30)])

        assert resp.status_code == 400
        assert resp.json["code"] == "validation_error"
        assert resp.json["violations"] == ["new_products[0].quantity cannot exceed 2147483647"]
        assert _stock(db_session, jacket) == 5
        assert _stock(db_session, shirt) == 7
        assert db_session.get(JournalEntry, sale["id"]).is_returned is False

    def test_oversized_product_id_is_a_validation_error(self, client, admin_headers, sale):
        resp = client.post('/api/exchanges', headers=admin_headers, json={
            'transaction_id': sale["id"],
            'new_products': [{'product_id': 10**30, 'quantity': 1}],
        })
        assert resp.status_code == 400
        assert resp.json["code"] == "validation_error"


class TestExchangeWorkflow:

    def test_mismatch_raises(self, db_session, admin_user, scarf, sale):
        with pytest.raises(ValueMismatch):
            ExchangeWorkflow(db_session).process(
                transaction_id=sale["id"],
                user_id=admin_user.id,
                new_items=[{"product_id": scarf.id, "quantity": 2}],
            )

    def test_insufficient_stock_raises(self, db_session, admin_user, jacket, sale):
        with pytest.raises(InsufficientStock) as exc:
            ExchangeWorkflow(db_session).process(
                transaction_id=sale["id"],
                user_id=admin_user.id,
                new_items=[{"product_id": jacket.id, "quantity": 2}],
            )
        assert exc.value.product_id == jacket.id


def test_to_cents_rounds_half_up():
    assert to_cents(Decimal("0.005")) == Decimal("0.01")
    assert to_cents(Decimal("299.985")) == Decimal("299.99")
    assert to_cents(Decimal("300")) == Decimal("300.00")
