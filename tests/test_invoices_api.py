import json
from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError

from backend.app.main import app
from backend.app.models.invoice import Invoice
from backend.app.models.invoice_line_item import InvoiceLineItem
from backend.app.models.notification_queue import NotificationQueueItem

client = TestClient(app)


def _setup(factory, role="accountant", tenant_code=None):
    tenant = factory.tenant(tenant_code=tenant_code)
    user = factory.user(f"{role}@example.com", tenant=tenant, role=role)
    inward = factory.vehicle_inward(tenant)
    return tenant, factory.headers(user), inward


def _payload(inward_id, **overrides):
    payload = {
        "vehicleInwardId": inward_id,
        "lineItems": [
            {"product_name": "Seat covers", "unit_price": 100, "quantity": 2},
            {"product": "Floor mats", "price": 50},
        ],
        "discountAmount": 20,
        "discountReason": "Festive offer",
        "taxAmount": 10,
        "notes": "Deliver by Friday",
    }
    payload.update(overrides)
    return payload


def _create(headers, inward_id, **overrides):
    response = client.post("/invoices", json=_payload(inward_id, **overrides), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["invoice"]


def test_create_invoice_computes_totals(db, factory):
    tenant, headers, inward = _setup(factory)
    invoice = _create(headers, inward.id)

    assert invoice["status"] == "draft"
    assert invoice["invoice_number"] is None
    assert invoice["amount"] == "230.00"
    assert invoice["total_amount"] == "240.00"
    assert invoice["paid_amount"] == "0.00"
    assert invoice["balance_amount"] == "240.00"
    assert invoice["tenant_id"] == tenant.id
    assert invoice["customer_name"] == "Ravi Kumar"
    assert invoice["vehicle_id"] == inward.vehicle_id

    invoice_date = date.fromisoformat(invoice["invoice_date"])
    assert date.fromisoformat(invoice["due_date"]) == invoice_date + timedelta(days=30)

    items = db.query(InvoiceLineItem).filter(InvoiceLineItem.invoice_id == invoice["id"]).all()
    assert sorted(str(item.line_total) for item in items) == ["200.00", "50.00"]


def test_create_invoice_requires_line_items(factory):
    _, headers, inward = _setup(factory)
    response = client.post("/invoices", json={"vehicleInwardId": inward.id, "lineItems": []}, headers=headers)
    assert response.status_code == 400
    assert response.json()["error"] == "vehicleInwardId and lineItems are required"


def test_create_invoice_reports_invalid_prices(db, factory):
    _, headers, inward = _setup(factory)
    payload = _payload(
        inward.id,
        lineItems=[
            {"product_name": "Seat covers", "unit_price": "abc"},
            {"product_name": "Mats"},
            {"product_name": "Horn", "unit_price": 300},
        ],
    )
    response = client.post("/invoices", json=payload, headers=headers)
    assert response.status_code == 400
    assert response.json()["error"] == (
        "Invalid prices found in 2 line item(s). Please ensure all products have valid prices."
    )
    assert db.query(Invoice).count() == 0


def test_create_invoice_unknown_inward_returns_404(factory):
    _, headers, _ = _setup(factory)
    response = client.post("/invoices", json=_payload("missing-inward"), headers=headers)
    assert response.status_code == 404
    assert response.json()["error"] == "Vehicle inward not found"


def test_create_invoice_falls_back_to_inward_customer(factory):
    tenant, headers, _ = _setup(factory)
    inward = factory.vehicle_inward(tenant, customer_name="Walk-in Customer", with_vehicle=False)
    invoice = _create(headers, inward.id)
    assert invoice["customer_name"] == "Walk-in Customer"


def test_issue_invoice_twice_fails(db, factory):
    _, headers, inward = _setup(factory)
    invoice = _create(headers, inward.id)

    first = client.post(f"/invoices/{invoice['id']}/issue", headers=headers)
    assert first.status_code == 200
    issued = first.json()["invoice"]
    assert issued["status"] == "issued"
    assert issued["invoice_number"] == "INV-000001"
    assert issued["issued_at"] is not None

    second = client.post(f"/invoices/{invoice['id']}/issue", headers=headers)
    assert second.status_code == 400
    assert second.json()["error"] == "Only draft invoices can be issued"

    events = db.query(NotificationQueueItem).filter(NotificationQueueItem.event_type == "invoice_issued").all()
    assert len(events) == 1
    assert events[0].payload["invoiceData"]["invoiceNumber"] == "INV-000001"


def test_issue_immediately(factory):
    _, headers, inward = _setup(factory, tenant_code="TC")
    invoice = _create(headers, inward.id, issueImmediately=True)
    assert invoice["status"] == "issued"
    assert invoice["invoice_number"] == "TC-000001"


def test_cancel_paid_invoice_fails(db, factory):
    _, headers, inward = _setup(factory)
    invoice = _create(headers, inward.id)
    db.query(Invoice).filter(Invoice.id == invoice["id"]).update({"status": "paid"})
    db.commit()

    response = client.request("DELETE", f"/invoices/{invoice['id']}", json={"reason": "oops"}, headers=headers)
    assert response.status_code == 400
    assert response.json()["error"] == "Cannot cancel paid invoice"


def test_cancelled_invoice_is_terminal(factory):
    _, headers, inward = _setup(factory)
    invoice = _create(headers, inward.id)
    client.post(f"/invoices/{invoice['id']}/issue", headers=headers)

    response = client.request("DELETE", f"/invoices/{invoice['id']}", json={"reason": "Customer declined"}, headers=headers)
    assert response.status_code == 200
    cancelled = response.json()["invoice"]
    assert cancelled["status"] == "cancelled"
    assert cancelled["cancelled_reason"] == "Customer declined"
    assert cancelled["cancelled_at"] is not None

    again = client.request("DELETE", f"/invoices/{invoice['id']}", headers=headers)
    assert again.status_code == 400
    assert again.json()["error"] == "Invoice is already cancelled"

    issue = client.post(f"/invoices/{invoice['id']}/issue", headers=headers)
    assert issue.status_code == 400


def test_update_invoice_recomputes_totals(factory):
    _, headers, inward = _setup(factory)
    invoice = _create(headers, inward.id)
    response = client.patch(
        f"/invoices/{invoice['id']}",
        json={"notes": "Updated", "discount_amount": "50.00"},
        headers=headers,
    )
    assert response.status_code == 200
    updated = response.json()["invoice"]
    assert updated["notes"] == "Updated"
    assert updated["amount"] == "200.00"
    assert updated["total_amount"] == "210.00"
    assert updated["balance_amount"] == "210.00"


def test_update_invoice_rejects_unknown_fields(factory):
    _, headers, inward = _setup(factory)
    invoice = _create(headers, inward.id)
    response = client.patch(f"/invoices/{invoice['id']}", json={"tenant_id": "other"}, headers=headers)
    assert response.status_code == 400
    response = client.patch(f"/invoices/{invoice['id']}", json={"status": "paid"}, headers=headers)
    assert response.status_code == 400


def test_other_tenant_invoice_returns_404(factory):
    _, headers, inward = _setup(factory)
    invoice = _create(headers, inward.id)

    other_tenant = factory.tenant(name="Other Motors")
    outsider = factory.user("outsider@example.com", tenant=other_tenant, role="admin")
    outsider_headers = factory.headers(outsider)

    assert client.get(f"/invoices/{invoice['id']}", headers=outsider_headers).status_code == 404
    assert client.post(f"/invoices/{invoice['id']}/issue", headers=outsider_headers).status_code == 404
    assert client.patch(f"/invoices/{invoice['id']}", json={"notes": "x"}, headers=outsider_headers).status_code == 404
    assert client.get("/invoices", headers=outsider_headers).json() == {"invoices": []}

    other_inward = client.post("/invoices", json=_payload(inward.id), headers=outsider_headers)
    assert other_inward.status_code == 404


def test_super_admin_sees_all_tenants(factory):
    _, headers, inward = _setup(factory)
    _create(headers, inward.id)
    operator = factory.user("root@example.com", super_admin=True)
    response = client.get("/invoices", headers=factory.headers(operator))
    assert len(response.json()["invoices"]) == 1


def test_user_without_tenant_sees_nothing_and_cannot_write(factory):
    _, headers, inward = _setup(factory)
    _create(headers, inward.id)
    loner = factory.user("loner@example.com", role="admin")
    loner_headers = factory.headers(loner)

    assert client.get("/invoices", headers=loner_headers).json() == {"invoices": []}
    response = client.post("/invoices", json=_payload(inward.id), headers=loner_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "Tenant ID required"


def test_installer_is_forbidden(factory):
    tenant, _, _ = _setup(factory)
    installer = factory.user("installer@example.com", tenant=tenant, role="installer")
    response = client.get("/invoices", headers=factory.headers(installer))
    assert response.status_code == 403


def test_get_invoice_detail_includes_vehicle_and_customer(factory):
    _, headers, inward = _setup(factory)
    invoice = _create(headers, inward.id)
    response = client.get(f"/invoices/{invoice['id']}", headers=headers)
    assert response.status_code == 200
    detail = response.json()["invoice"]
    assert len(detail["line_items"]) == 2
    assert detail["payments"] == []
    assert detail["vehicle"]["registration_number"] == "KA01AB1234"
    assert detail["customer"]["name"] == "Ravi Kumar"


def test_list_filters(factory):
    _, headers, inward = _setup(factory)
    draft = _create(headers, inward.id, notes="Sunroof polish")
    issued = _create(headers, inward.id, notes="Ceramic coating", invoiceDate="2030-03-01")
    client.post(f"/invoices/{issued['id']}/issue", headers=headers)

    by_status = client.get("/invoices", params={"status": "issued"}, headers=headers).json()["invoices"]
    assert [item["id"] for item in by_status] == [issued["id"]]

    everything = client.get("/invoices", params={"status": "all"}, headers=headers).json()["invoices"]
    assert len(everything) == 2

    searched = client.get("/invoices", params={"search": "sunroof"}, headers=headers).json()["invoices"]
    assert [item["id"] for item in searched] == [draft["id"]]

    ranged = client.get(
        "/invoices", params={"startDate": "2030-02-01", "endDate": "2030-03-31"}, headers=headers
    ).json()["invoices"]
    assert [item["id"] for item in ranged] == [issued["id"]]
    assert len(ranged[0]["line_items"]) == 2


def test_summary(factory):
    _, headers, inward = _setup(factory)
    _create(headers, inward.id)
    issued = _create(headers, inward.id)
    client.post(f"/invoices/{issued['id']}/issue", headers=headers)
    client.post(
        "/payments",
        json={"invoiceId": issued["id"], "amount": "100", "payment_mode": "cash", "payment_date": "2030-01-05"},
        headers=headers,
    )

    response = client.get("/invoices/summary", headers=headers)
    assert response.status_code == 200
    summary = response.json()["summary"]
    assert summary["totalInvoiced"] == "240.00"
    assert summary["totalReceived"] == "100.00"
    assert summary["totalOutstanding"] == "140.00"
    assert summary["totalOverdue"] == "0.00"
    statuses = {row["status"]: row for row in summary["byStatus"]}
    assert statuses["draft"]["count"] == 1
    assert statuses["partial"]["total_received"] == "100.00"


def _pay(headers, invoice_id, amount):
    response = client.post(
        "/payments",
        json={"invoiceId": invoice_id, "amount": amount, "payment_mode": "cash", "payment_date": "2030-01-05"},
        headers=headers,
    )
    assert response.status_code == 201


def test_raising_tax_on_paid_invoice_reopens_balance(factory):
    _, headers, inward = _setup(factory)
    invoice = _create(headers, inward.id, issueImmediately=True)
    _pay(headers, invoice["id"], "240")

    response = client.patch(f"/invoices/{invoice['id']}", json={"tax_amount": "60"}, headers=headers)
    assert response.status_code == 200
    updated = response.json()["invoice"]
    assert updated["total_amount"] == "290.00"
    assert updated["paid_amount"] == "240.00"
    assert updated["balance_amount"] == "50.00"
    assert updated["status"] == "partial"


def test_discount_below_paid_amount_marks_invoice_paid(factory):
    _, headers, inward = _setup(factory)
    invoice = _create(headers, inward.id, issueImmediately=True)
    _pay(headers, invoice["id"], "100")

    response = client.patch(f"/invoices/{invoice['id']}", json={"discount_amount": "200"}, headers=headers)
    updated = response.json()["invoice"]
    assert updated["total_amount"] == "60.00"
    assert updated["balance_amount"] == "-40.00"
    assert updated["status"] == "paid"


def test_update_invoice_rejects_negative_adjustments(factory):
    _, headers, inward = _setup(factory)
    invoice = _create(headers, inward.id)
    for field in ("discount_amount", "tax_amount"):
        response = client.patch(f"/invoices/{invoice['id']}", json={field: "-5"}, headers=headers)
        assert response.status_code == 400


@pytest.fixture
def failing_line_item_insert():
    def fail(mapper, connection, target):
        raise SQLAlchemyError("line item insert failed")

    event.listen(InvoiceLineItem, "before_insert", fail)
    yield
    event.remove(InvoiceLineItem, "before_insert", fail)


def test_failed_line_item_write_rolls_back_invoice(db, factory, failing_line_item_insert):
    _, headers, inward = _setup(factory)
    response = client.post("/invoices", json=_payload(inward.id), headers=headers)

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to create invoice"
    assert db.query(Invoice).count() == 0
    assert db.query(InvoiceLineItem).count() == 0


def test_missing_line_items_fall_back_to_requested_accessories(db, factory):
    tenant, headers, inward = _setup(factory)
    inward.accessories_requested = json.dumps(
        [
            {"product": "Dash camera", "brand": "Qubo", "department": "Electronics", "price": "4500"},
            {"product": "Mud flaps", "price": 600},
        ]
    )
    db.commit()

    response = client.post("/invoices", json={"vehicleInwardId": inward.id}, headers=headers)
    assert response.status_code == 201
    invoice = response.json()["invoice"]
    assert invoice["status"] == "draft"
    assert invoice["amount"] == "5100.00"

    items = db.query(InvoiceLineItem).filter(InvoiceLineItem.invoice_id == invoice["id"]).all()
    assert sorted(item.product_name for item in items) == ["Dash camera", "Mud flaps"]


def test_unreadable_accessories_still_require_line_items(db, factory):
    _, headers, inward = _setup(factory)
    inward.accessories_requested = "not json"
    db.commit()

    response = client.post("/invoices", json={"vehicleInwardId": inward.id}, headers=headers)
    assert response.status_code == 400
    assert response.json()["error"] == "vehicleInwardId and lineItems are required"


def test_summary_received_includes_cancelled_invoices(factory):
    _, headers, inward = _setup(factory)
    invoice = _create(headers, inward.id, issueImmediately=True)
    _pay(headers, invoice["id"], "100")
    client.request("DELETE", f"/invoices/{invoice['id']}", headers=headers)

    summary = client.get("/invoices/summary", headers=headers).json()["summary"]
    assert summary["totalReceived"] == "100.00"
    assert summary["totalInvoiced"] == "0.00"
    assert summary["totalOutstanding"] == "0.00"
