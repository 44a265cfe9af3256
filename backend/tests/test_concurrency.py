"""
Write serialization tests.

Concurrent writers run in real threads against a file-backed SQLite
database, each inside its own app context and therefore its own session.
"""

import threading

import pytest

from backoffice import create_app
from backoffice.extensions import db
from backoffice.models import AdminSession, WriteLock
from backoffice.services import auth_service, products_service, sales_service
from backoffice.services.concurrency import ADMIN_SESSIONS_LOCK, RECORDS_LOCK, begin_write_lock
from backoffice.services.sales_service import InsufficientStockError


WORKERS = 6


@pytest.fixture
def file_app(tmp_path, admin_password_hash, admin_credentials):
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'backoffice.db'}",
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'ADMIN_USERNAME': admin_credentials["username"],
        'ADMIN_PASSWORD_HASH': admin_password_hash,
        'INVOICE_FONT_PATH': None,
        'INVOICE_FONT_BOLD_PATH': None,
    })
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.drop_all()
        db.engine.dispose()


def run_concurrently(app, func, count=WORKERS):
    """Call func() from `count` threads released together; returns (results, errors)."""
    barrier = threading.Barrier(count)
    results, errors = [], []

    def worker():
        with app.app_context():
            barrier.wait()
            try:
                results.append(func())
            except Exception as exc:
                errors.append(exc)
            finally:
                db.session.remove()

    threads = [threading.Thread(target=worker) for _ in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)
    assert not any(t.is_alive() for t in threads)
    return results, errors


def test_concurrent_sales_neither_oversell_nor_share_invoice_numbers(file_app, pallet_data, customer_data):
    with file_app.app_context():
        product = products_service.create_product(dict(pallet_data, quantity=5, minOrderQuantity=1))

    def sell_two():
        return sales_service.create_sale({
            "customer": customer_data,
            "items": [{"productId": product.id, "quantity": 2}],
            "paymentMode": "full",
            "paymentMethod": "Cash",
        })

    sales, errors = run_concurrently(file_app, sell_two)

    assert len(sales) == 2
    assert len(errors) == WORKERS - 2
    assert all(isinstance(exc, InsufficientStockError) for exc in errors)
    assert len({s.invoice_number for s in sales}) == 2

    with file_app.app_context():
        assert products_service.get_product(product.id).quantity == 1
        stored = sales_service.list_sales()
        assert sorted(s.invoice_number for s in stored) == sorted(s.invoice_number for s in sales)


def test_concurrent_first_logins_leave_one_active_session(file_app, admin_credentials):
    counter = iter(range(WORKERS))
    lock = threading.Lock()

    def log_in():
        with lock:
            ip = f"203.0.113.{next(counter) + 1}"
        return auth_service.login(admin_credentials["username"], admin_credentials["password"], ip_address=ip)

    outcomes, errors = run_concurrently(file_app, log_in)

    assert errors == []
    assert all(outcome.success for outcome in outcomes)
    with file_app.app_context():
        assert db.session.query(AdminSession).count() == WORKERS
        assert db.session.query(AdminSession).filter(AdminSession.is_active.is_(True)).count() == 1


def test_row_lock_created_once_per_name(app, db_session, monkeypatch):
    # Exercise the row-lock path; SQLite renders FOR UPDATE as a plain SELECT
    monkeypatch.setattr(db.engine.dialect, "name", "postgresql")

    begin_write_lock()
    db.session.commit()
    begin_write_lock()
    begin_write_lock(ADMIN_SESSIONS_LOCK)
    db.session.commit()

    names = sorted(row.name for row in db.session.query(WriteLock).all())
    assert names == [ADMIN_SESSIONS_LOCK, RECORDS_LOCK]


def test_sale_on_row_lock_path(app, db_session, monkeypatch, pallet_data, customer_data):
    monkeypatch.setattr(db.engine.dialect, "name", "postgresql")
    product = products_service.create_product(pallet_data)

    sale = sales_service.create_sale({
        "customer": customer_data,
        "items": [{"productId": product.id, "quantity": 3}],
        "paymentMode": "full",
        "paymentMethod": "Cash",
    })

    assert products_service.get_product(product.id).quantity == 17
    assert sales_service.get_sale(sale.id).invoice_number == sale.invoice_number
    assert db.session.get(WriteLock, RECORDS_LOCK) is not None
