"""
Stock write-off tests.

Verifies:
- Batch decremented and loss recorded together, costed from the batch
- Boundaries: whole batch allowed, one more rejected with nothing written
- 404 for unknown batches, ADMIN only
"""

from shopdesk.models import StockWriteOff

from conftest import batch_quantities, days, make_batch


def _write_off(client, headers, **body):
    return client.post('/api/stock/write-off', json=body, headers=headers)


class TestWriteOff:

    def test_records_loss(self, client, admin_headers, product):
        batch = make_batch(product, 10, expiry=days(-1), unit_cost="1.25").id

        resp = _write_off(client, admin_headers, batch_id=batch, quantity=3, notes="crushed box")

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["message"] == "Stock written off successfully"
        record = body["write_off"]
        assert record["batch_id"] == batch
        assert record["product_id"] == product.id
        assert record["quantity"] == 3
        assert record["reason"] == "EXPIRED"
        assert record["unit_cost"] == "1.25"
        assert record["total_cost"] == "3.75"
        assert record["write_off_date"] == days(0).isoformat()
        assert record["created_by"] == 1
        assert record["notes"] == "crushed box"
        assert batch_quantities(batch) == [7]

    def test_custom_reason(self, client, admin_headers, product):
        batch = make_batch(product, 10).id

        resp = _write_off(client, admin_headers, batch_id=batch, quantity=1, reason="DAMAGED")

        assert resp.get_json()["write_off"]["reason"] == "DAMAGED"

    def test_whole_batch(self, client, admin_headers, product):
        batch = make_batch(product, 4).id

        resp = _write_off(client, admin_headers, batch_id=batch, quantity=4)

        assert resp.status_code == 201
        assert batch_quantities(batch) == [0]

    def test_more_than_batch_holds(self, client, admin_headers, product):
        batch = make_batch(product, 4).id

        resp = _write_off(client, admin_headers, batch_id=batch, quantity=5)

        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Quantity exceeds available batch stock"
        assert batch_quantities(batch) == [4]
        assert StockWriteOff.query.count() == 0

    def test_unknown_batch(self, client, admin_headers):
        resp = _write_off(client, admin_headers, batch_id=987654, quantity=1)

        assert resp.status_code == 404
        assert resp.get_json() == {"message": "Batch not found"}

    def test_quantity_required(self, client, admin_headers, product):
        batch = make_batch(product, 4).id

        for quantity in (None, 0, -2, "abc", 1.5):
            resp = _write_off(client, admin_headers, batch_id=batch, quantity=quantity)
            assert resp.status_code == 400, quantity
            assert resp.get_json()["message"] == "batch_id and a positive quantity are required"

        assert batch_quantities(batch) == [4]

    def test_managers_cannot_write_off(self, client, manager_headers, product):
        batch = make_batch(product, 4).id

        resp = _write_off(client, manager_headers, batch_id=batch, quantity=1)

        assert resp.status_code == 403
        assert batch_quantities(batch) == [4]


class TestLossViews:

    def test_list_write_offs(self, client, admin_headers, manager_headers, product):
        batch = make_batch(product, 10, code="LOT-7").id
        _write_off(client, admin_headers, batch_id=batch, quantity=2)

        resp = client.get('/api/stock/write-offs', headers=manager_headers)

        assert resp.status_code == 200
        rows = resp.get_json()
        assert len(rows) == 1
        assert rows[0]["product_name"] == "Paracetamol"
        assert rows[0]["batch_code"] == "LOT-7"

    def test_expired_batches(self, client, manager_headers, product):
        expired = make_batch(product, 3, expiry=days(-1), code="OLD").id
        make_batch(product, 0, expiry=days(-5), code="GONE")
        make_batch(product, 3, expiry=days(0), code="TODAY")
        make_batch(product, 3, code="NOEXP")

        resp = client.get('/api/stock/expired', headers=manager_headers)

        assert resp.status_code == 200
        rows = resp.get_json()
        assert [r["batch_id"] for r in rows] == [expired]
        assert rows[0]["expiry_date"] == days(-1).isoformat()
