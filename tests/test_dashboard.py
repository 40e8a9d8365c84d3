"""
Tests for dashboard figures
"""
from datetime import datetime, timezone
from decimal import Decimal

from conftest import add_customer, add_technician, tenant_for
from hvacpro.models.models import Invoice
from hvacpro.services.dashboard import dashboard_stats


class TestDashboard:
    def test_stats_count_only_own_active_work(self, client_a, db, companies, owners):
        a, b = companies
        mine = add_customer(db, a)
        theirs = add_customer(db, b)
        add_technician(db, a)
        add_technician(db, a, name="Inactive", status="inactive")
        add_technician(db, b)

        for status in ("scheduled", "in_progress", "completed", "cancelled"):
            client_a.post("/jobs", json={"customer_id": mine.id, "title": status, "status": status})
        client_a.post("/invoices", json={"customer_id": mine.id, "subtotal": "120.00", "status": "paid"})
        client_a.post("/invoices", json={"customer_id": mine.id, "subtotal": "80.00"})
        db.add(Invoice(customer_id=theirs.id, invoice_number="INV-B-1", subtotal=500, tax=0, total=500, status="paid", paid_date=datetime.now(timezone.utc)))
        db.commit()

        response = client_a.get("/dashboard/stats")
        assert response.status_code == 200
        body = response.json()
        assert body["active_jobs"] == 2
        assert Decimal(str(body["monthly_revenue"])) == Decimal("120.00")
        assert body["active_technicians"] == 1
        assert body["customer_satisfaction"] == 4.8

    def test_revenue_is_limited_to_current_month(self, db, companies, owners):
        a, _ = companies
        mine = add_customer(db, a)
        db.add_all(
            [
                Invoice(customer_id=mine.id, invoice_number="INV-1", subtotal=100, tax=0, total=100, status="paid",
                        paid_date=datetime(2030, 3, 10, 18, 0, tzinfo=timezone.utc)),
                # 2030-04-01 03:00 UTC is still March 31 in Chicago
                Invoice(customer_id=mine.id, invoice_number="INV-2", subtotal=40, tax=0, total=40, status="paid",
                        paid_date=datetime(2030, 4, 1, 3, 0, tzinfo=timezone.utc)),
                Invoice(customer_id=mine.id, invoice_number="INV-3", subtotal=70, tax=0, total=70, status="paid",
                        paid_date=datetime(2030, 2, 27, 12, 0, tzinfo=timezone.utc)),
            ]
        )
        db.commit()

        stats = dashboard_stats(db, tenant_for(owners[0], a), now=datetime(2030, 3, 20, 12, 0, tzinfo=timezone.utc))
        assert stats["monthly_revenue"] == Decimal("140.00")
