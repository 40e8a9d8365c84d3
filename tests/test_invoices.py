"""
Tests for invoice totals, numbering, items and PDF output
"""
import re
from decimal import Decimal

import pytest

from conftest import add_customer, tenant_for
from hvacpro.errors import ConflictError, ValidationError
from hvacpro.models.models import Invoice
from hvacpro.schemas.invoices import InvoiceCreate
from hvacpro.services.invoices import InvoiceRepository, compute_totals, item_total


def D(value) -> Decimal:
    return Decimal(str(value))


class TestTotals:
    def test_item_total_rounds_half_up_to_cents(self):
        assert item_total(3, Decimal("33.335")) == Decimal("100.01")
        assert item_total(2, Decimal("19.99")) == Decimal("39.98")

    def test_items_drive_subtotal(self):
        assert compute_totals([Decimal("10.00"), Decimal("5.50")], tax=Decimal("1.24")) == (
            Decimal("15.50"),
            Decimal("1.24"),
            Decimal("16.74"),
        )

    def test_tax_defaults_from_rate(self):
        subtotal, tax, total = compute_totals([], subtotal=Decimal("200"), tax_rate=Decimal("0.0825"))
        assert (subtotal, tax, total) == (Decimal("200.00"), Decimal("16.50"), Decimal("216.50"))

    def test_inconsistent_values_are_rejected(self):
        with pytest.raises(ValidationError) as exc:
            compute_totals([Decimal("10.00")], subtotal=Decimal("12.00"))
        assert "subtotal" in exc.value.fields
        with pytest.raises(ValidationError) as exc:
            compute_totals([], subtotal=Decimal("10.00"), tax=Decimal("1.00"), total=Decimal("99.00"))
        assert "total" in exc.value.fields
        with pytest.raises(ValidationError):
            compute_totals([])


class TestInvoiceApi:
    def test_create_with_items(self, client_a, db, companies):
        customer = add_customer(db, companies[0])
        response = client_a.post(
            "/invoices",
            json={
                "customer_id": customer.id,
                "tax": "3.30",
                "items": [
                    {"description": "Capacitor 45/5", "quantity": 1, "unit_price": "220.00"},
                    {"description": "Filter", "quantity": 2, "unit_price": "17.50"},
                ],
            },
        )
        assert response.status_code == 201, response.text
        body = response.json()
        assert D(body["subtotal"]) == Decimal("255.00")
        assert D(body["total"]) == Decimal("258.30")
        assert [D(i["total"]) for i in body["items"]] == [Decimal("220.00"), Decimal("35.00")]
        assert re.fullmatch(r"INV-\d{4}-00001", body["invoice_number"])

    def test_numbers_increment(self, client_a, db, companies):
        customer = add_customer(db, companies[0])
        first = client_a.post("/invoices", json={"customer_id": customer.id, "subtotal": "10.00"}).json()
        second = client_a.post("/invoices", json={"customer_id": customer.id, "subtotal": "10.00"}).json()
        assert int(second["invoice_number"][-5:]) == int(first["invoice_number"][-5:]) + 1

    def test_duplicate_number_conflicts(self, client_a, client_b, db, companies):
        mine = add_customer(db, companies[0])
        theirs = add_customer(db, companies[1])
        payload = {"customer_id": mine.id, "subtotal": "10.00", "invoice_number": "INV-X-1"}
        assert client_a.post("/invoices", json=payload).status_code == 201
        assert client_a.post("/invoices", json=payload).status_code == 409
        # Invoice numbers are unique platform-wide
        assert client_b.post("/invoices", json={**payload, "customer_id": theirs.id}).status_code == 409

    def test_subtotal_required_without_items(self, client_a, db, companies):
        customer = add_customer(db, companies[0])
        response = client_a.post("/invoices", json={"customer_id": customer.id})
        assert response.status_code == 400
        assert "subtotal" in response.json()["fields"]

    def test_mismatched_total_is_rejected(self, client_a, db, companies):
        customer = add_customer(db, companies[0])
        response = client_a.post(
            "/invoices",
            json={"customer_id": customer.id, "subtotal": "100.00", "tax": "8.00", "total": "100.00"},
        )
        assert response.status_code == 400
        assert "total" in response.json()["fields"]

    def test_foreign_customer_is_rejected(self, client_a, db, companies):
        theirs = add_customer(db, companies[1])
        response = client_a.post("/invoices", json={"customer_id": theirs.id, "subtotal": "1.00"})
        assert response.status_code == 400

    def test_paid_stamps_paid_date(self, client_a, db, companies):
        customer = add_customer(db, companies[0])
        invoice = client_a.post("/invoices", json={"customer_id": customer.id, "subtotal": "50.00"}).json()
        assert invoice["paid_date"] is None
        paid = client_a.put(f"/invoices/{invoice['id']}", json={"status": "paid"}).json()
        assert paid["status"] == "paid"
        assert paid["paid_date"] is not None

    def test_update_tax_recomputes_total(self, client_a, db, companies):
        customer = add_customer(db, companies[0])
        invoice = client_a.post("/invoices", json={"customer_id": customer.id, "subtotal": "50.00"}).json()
        updated = client_a.put(f"/invoices/{invoice['id']}", json={"tax": "4.00"}).json()
        assert D(updated["total"]) == Decimal("54.00")

    def test_item_endpoints_recompute_parent(self, client_a, db, companies):
        customer = add_customer(db, companies[0])
        invoice = client_a.post(
            "/invoices",
            json={"customer_id": customer.id, "items": [{"description": "Diag", "quantity": 1, "unit_price": "99.00"}]},
        ).json()
        base = f"/invoices/{invoice['id']}"

        added = client_a.post(f"{base}/items", json={"description": "Igniter", "quantity": 2, "unit_price": "42.50"})
        assert added.status_code == 201
        assert D(client_a.get(base).json()["total"]) == Decimal("184.00")

        changed = client_a.put(f"{base}/items/{added.json()['id']}", json={"quantity": 1})
        assert D(changed.json()["total"]) == Decimal("42.50")
        assert D(client_a.get(base).json()["subtotal"]) == Decimal("141.50")

        assert client_a.delete(f"{base}/items/{added.json()['id']}").status_code == 204
        assert D(client_a.get(base).json()["total"]) == Decimal("99.00")
        assert len(client_a.get(f"{base}/items").json()) == 1
        assert client_a.delete(f"{base}/items/{added.json()['id']}").status_code == 404

    def test_other_tenant_cannot_see_invoice(self, client_a, client_b, db, companies):
        customer = add_customer(db, companies[0])
        invoice = client_a.post("/invoices", json={"customer_id": customer.id, "subtotal": "10.00"}).json()
        assert client_b.get(f"/invoices/{invoice['id']}").status_code == 404
        assert client_b.get(f"/invoices/{invoice['id']}/items").status_code == 404
        assert client_b.delete(f"/invoices/{invoice['id']}").status_code == 404

    def test_by_customer(self, client_a, db, companies):
        one = add_customer(db, companies[0], name="One")
        two = add_customer(db, companies[0], name="Two")
        inv = client_a.post("/invoices", json={"customer_id": one.id, "subtotal": "10.00"}).json()
        client_a.post("/invoices", json={"customer_id": two.id, "subtotal": "10.00"})
        assert [i["id"] for i in client_a.get(f"/invoices/customer/{one.id}").json()] == [inv["id"]]

    def test_pdf(self, client_a, db, companies):
        customer = add_customer(db, companies[0])
        invoice = client_a.post(
            "/invoices",
            json={"customer_id": customer.id, "items": [{"description": "Tune-up", "quantity": 1, "unit_price": "185.00"}]},
        ).json()
        response = client_a.get(f"/invoices/{invoice['id']}/pdf")
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")


class TestInvoiceNumbering:
    def _repo(self, db, owner, company):
        return InvoiceRepository(db, tenant_for(owner, company))

    def test_generated_number_is_redrawn_after_collision(self, db, companies, owners, monkeypatch):
        customer = add_customer(db, companies[0])
        repo = self._repo(db, owners[0], companies[0])
        repo.create(InvoiceCreate(customer_id=customer.id, subtotal=Decimal("10.00"), invoice_number="INV-2030-00001"))

        # The first draw returns a number another writer already took
        draws = iter(["INV-2030-00001", "INV-2030-00002"])
        monkeypatch.setattr(InvoiceRepository, "next_invoice_number", lambda self: next(draws))
        created = repo.create(InvoiceCreate(customer_id=customer.id, subtotal=Decimal("20.00")))
        assert created.invoice_number == "INV-2030-00002"
        assert db.query(Invoice).count() == 2

    def test_gives_up_after_second_collision(self, db, companies, owners, monkeypatch):
        customer = add_customer(db, companies[0])
        repo = self._repo(db, owners[0], companies[0])
        repo.create(InvoiceCreate(customer_id=customer.id, subtotal=Decimal("10.00"), invoice_number="INV-2030-00001"))

        monkeypatch.setattr(InvoiceRepository, "next_invoice_number", lambda self: "INV-2030-00001")
        with pytest.raises(ConflictError):
            repo.create(InvoiceCreate(customer_id=customer.id, subtotal=Decimal("20.00")))
        assert db.query(Invoice).count() == 1

    def test_client_supplied_number_is_not_redrawn(self, db, companies, owners, monkeypatch):
        customer = add_customer(db, companies[0])
        repo = self._repo(db, owners[0], companies[0])
        repo.create(InvoiceCreate(customer_id=customer.id, subtotal=Decimal("10.00"), invoice_number="INV-X-7"))

        def never_called(self):
            raise AssertionError("number must not be generated")

        monkeypatch.setattr(InvoiceRepository, "next_invoice_number", never_called)
        with pytest.raises(ConflictError):
            repo.create(InvoiceCreate(customer_id=customer.id, subtotal=Decimal("10.00"), invoice_number="INV-X-7"))
