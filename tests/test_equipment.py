"""
Tests for customer equipment and service reminders
"""
from datetime import datetime, timedelta, timezone

from conftest import add_customer


class TestEquipment:
    def test_create_for_own_customer(self, client_a, db, companies):
        mine = add_customer(db, companies[0])
        response = client_a.post(
            "/equipment",
            json={"customer_id": mine.id, "type": "Heat Pump", "brand": "Trane", "serial_number": ""},
        )
        assert response.status_code == 201, response.text
        assert response.json()["serial_number"] is None

    def test_foreign_customer_is_rejected(self, client_a, db, companies):
        theirs = add_customer(db, companies[1])
        response = client_a.post("/equipment", json={"customer_id": theirs.id, "type": "Furnace"})
        assert response.status_code == 400
        assert "customer_id" in response.json()["fields"]

        mine = add_customer(db, companies[0])
        unit = client_a.post("/equipment", json={"customer_id": mine.id, "type": "Furnace"}).json()
        assert client_a.put(f"/equipment/{unit['id']}", json={"customer_id": theirs.id}).status_code == 400

    def test_service_due(self, client_a, db, companies):
        mine = add_customer(db, companies[0])
        now = datetime.now(timezone.utc)
        due = client_a.post(
            "/equipment",
            json={"customer_id": mine.id, "type": "AC", "next_service_date": (now - timedelta(days=2)).isoformat()},
        ).json()
        client_a.post(
            "/equipment",
            json={"customer_id": mine.id, "type": "AC", "next_service_date": (now + timedelta(days=30)).isoformat()},
        )
        client_a.post("/equipment", json={"customer_id": mine.id, "type": "Furnace"})

        response = client_a.get("/equipment/service-due")
        assert response.status_code == 200
        assert [e["id"] for e in response.json()] == [due["id"]]

    def test_by_customer(self, client_a, db, companies):
        one = add_customer(db, companies[0], name="One")
        two = add_customer(db, companies[0], name="Two")
        unit = client_a.post("/equipment", json={"customer_id": one.id, "type": "AC"}).json()
        client_a.post("/equipment", json={"customer_id": two.id, "type": "AC"})
        assert [e["id"] for e in client_a.get(f"/equipment/customer/{one.id}").json()] == [unit["id"]]
