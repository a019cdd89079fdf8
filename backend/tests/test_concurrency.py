"""
Lock-retry behaviour around sale confirmation.
"""

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from scanpos.models.sales import STATUS_PAID
from scanpos.services import concurrency, sales_service
from scanpos.services.sales_service import SaleError
from tests.conftest import add_pending_scan_sale


def _locked():
    return OperationalError("UPDATE sales", {}, Exception("database is locked"))


def _flaky(failures, result="done"):
    """Callable failing with a lock error `failures` times, then returning `result`."""
    calls = []

    def _call():
        calls.append(1)
        if len(calls) <= failures:
            raise _locked()
        return result

    _call.calls = calls
    return _call


class TestRunWithRetry:

    def test_retries_lock_errors_until_success(self, db_session):
        func = _flaky(2)
        assert concurrency.run_with_retry(func) == "done"
        assert len(func.calls) == 3

    def test_gives_up_after_configured_attempts(self, app, db_session, monkeypatch):
        monkeypatch.setitem(app.config, "DB_RETRY_ATTEMPTS", 2)
        func = _flaky(5)

        with pytest.raises(OperationalError):
            concurrency.run_with_retry(func)
        assert len(func.calls) == 2

    def test_other_errors_are_not_retried(self, db_session):
        calls = []

        def _conflict():
            calls.append(1)
            raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))

        with pytest.raises(IntegrityError):
            concurrency.run_with_retry(_conflict)
        assert len(calls) == 1

    def test_business_errors_pass_through(self, db_session):
        calls = []

        def _used():
            calls.append(1)
            raise SaleError("used", sales_service.ALREADY_CONFIRMED)

        with pytest.raises(SaleError):
            concurrency.run_with_retry(_used)
        assert len(calls) == 1

    def test_attempts_below_one_are_rejected(self, app, db_session, monkeypatch):
        monkeypatch.setitem(app.config, "DB_RETRY_ATTEMPTS", 0)
        with pytest.raises(ValueError):
            concurrency.run_with_retry(lambda: None)


class TestConfirmUnderLock:

    def test_confirm_succeeds_after_transient_lock(self, db_session, cashier, monkeypatch):
        sale = add_pending_scan_sale("252525")
        real_mark_paid = sales_service.mark_paid_if_pending
        calls = []

        def locked_once(sale_id, staff_id):
            calls.append(1)
            if len(calls) == 1:
                raise _locked()
            return real_mark_paid(sale_id, staff_id)

        monkeypatch.setattr(sales_service, "mark_paid_if_pending", locked_once)

        confirmed = sales_service.confirm_sale("252525", cashier.id)

        assert confirmed.id == sale.id
        assert confirmed.status == STATUS_PAID
        assert len(calls) == 2
