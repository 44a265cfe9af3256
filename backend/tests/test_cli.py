from datetime import timedelta

import bcrypt

from backoffice.extensions import db
from backoffice.models import AdminSession
from backoffice.services import products_service, sales_service
from backoffice.time_utils import utcnow


def test_hash_password(app):
    result = app.test_cli_runner().invoke(args=["admin", "hash-password", "--password", "Pallets#2024"])
    assert result.exit_code == 0
    hashed = result.output.strip()
    assert bcrypt.checkpw(b"Pallets#2024", hashed.encode("utf-8"))


def test_data_reset_single_collection(app, db_session, pallet_data):
    products_service.create_product(pallet_data)

    result = app.test_cli_runner().invoke(args=["data", "reset", "--collection", "products", "--yes"])

    assert result.exit_code == 0
    assert "Cleared products" in result.output
    assert products_service.list_products() == []


def test_data_reset_asks_for_confirmation(app, db_session, pallet_data):
    products_service.create_product(pallet_data)

    result = app.test_cli_runner().invoke(args=["data", "reset"], input="n\n")

    assert result.exit_code == 1
    assert len(products_service.list_products()) == 1


def test_render_invoice(app, db_session, pallet_data, customer_data, tmp_path):
    product = products_service.create_product(pallet_data)
    sale = sales_service.create_sale({
        "customer": customer_data,
        "items": [{"productId": product.id, "quantity": 1}],
        "paymentMode": "full",
        "paymentMethod": "Cash",
    })
    out = tmp_path / "invoice.pdf"

    result = app.test_cli_runner().invoke(args=["invoices", "render", sale.id, "--out", str(out)])

    assert result.exit_code == 0, result.output
    assert out.read_bytes().startswith(b"%PDF")


def test_render_invoice_unknown_sale(app, db_session):
    result = app.test_cli_runner().invoke(args=["invoices", "render", "missing"])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_cleanup_sessions(app, db_session):
    old = utcnow() - timedelta(days=40)
    db.session.add_all([
        AdminSession(session_token="a" * 64, created_at=old, expires_at=old + timedelta(minutes=30), is_active=False),
        AdminSession(session_token="b" * 64, created_at=utcnow(), expires_at=utcnow() + timedelta(minutes=30)),
    ])
    db.session.commit()

    result = app.test_cli_runner().invoke(args=["maintenance", "cleanup-sessions"])

    assert result.exit_code == 0
    assert "Deleted 1 sessions" in result.output
    assert db.session.query(AdminSession).count() == 1
