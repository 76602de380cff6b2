"""
Health endpoint, error handlers and CLI commands.
"""

from shopdesk.cli import shop_group
from shopdesk.models import Product, StockBatch
from shopdesk.services.concurrency import run_with_retry

import pytest
from sqlalchemy.exc import OperationalError


def test_health(client):
    resp = client.get('/health')

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "healthy"
    assert body["checks"]["database"]["status"] == "healthy"


def test_unknown_route_is_json(client, admin_headers):
    resp = client.get('/api/nothing-here', headers=admin_headers)

    assert resp.status_code == 404
    assert "message" in resp.get_json()


def test_wrong_method_is_json(client, admin_headers):
    resp = client.delete('/api/inventory', headers=admin_headers)

    assert resp.status_code == 405
    assert "message" in resp.get_json()


def test_cors_allowed_origin(client, cashier_headers):
    headers = dict(cashier_headers, Origin="http://localhost:5173")
    resp = client.get('/api/inventory', headers=headers)

    assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"


def test_cors_unknown_origin(client, cashier_headers):
    headers = dict(cashier_headers, Origin="https://evil.example")
    resp = client.get('/api/inventory', headers=headers)

    assert "Access-Control-Allow-Origin" not in resp.headers


class TestRetry:

    def test_retries_lock_errors(self, app):
        calls = []

        def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise OperationalError("UPDATE", {}, Exception("database is locked"))
            return "done"

        assert run_with_retry(flaky, backoff_base=0) == "done"
        assert len(calls) == 3

    def test_gives_up_after_attempts(self, app):
        def locked():
            raise OperationalError("UPDATE", {}, Exception("database is locked"))

        with pytest.raises(OperationalError):
            run_with_retry(locked, attempts=2, backoff_base=0)

    def test_other_errors_are_not_retried(self, app):
        calls = []

        def broken():
            calls.append(1)
            raise KeyError("boom")

        with pytest.raises(KeyError):
            run_with_retry(broken)
        assert len(calls) == 1


class TestCli:

    def test_seed_demo_is_idempotent(self, app):
        runner = app.test_cli_runner()

        first = runner.invoke(shop_group, ['seed-demo'])
        second = runner.invoke(shop_group, ['seed-demo'])

        assert first.exit_code == 0, first.output
        assert "Seeded 3 product(s)." in first.output
        assert "Seeded 0 product(s)." in second.output
        assert Product.query.count() == 3
        assert StockBatch.query.count() == 4

    def test_reset_requires_confirmation(self, app):
        runner = app.test_cli_runner()

        result = runner.invoke(shop_group, ['reset-db'])

        assert result.exit_code == 1
        assert "Refusing to reset without --yes" in result.output
