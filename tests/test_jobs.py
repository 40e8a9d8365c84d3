"""
Tests for service calls: parent checks, status stamping, schedules
"""
from datetime import datetime, timedelta, timezone

from conftest import add_customer, add_technician
from hvacpro.models.models import Job


def _job(client, customer_id, **fields):
    payload = {"customer_id": customer_id, "title": "No cooling upstairs"}
    payload.update(fields)
    return client.post("/jobs", json=payload)


class TestJobCreate:
    def test_foreign_customer_is_rejected(self, client_a, db, companies):
        theirs = add_customer(db, companies[1])
        response = _job(client_a, theirs.id)
        assert response.status_code == 400
        assert "customer_id" in response.json()["fields"]
        assert db.query(Job).filter(Job.customer_id == theirs.id).count() == 0

    def test_foreign_technician_is_rejected(self, client_a, db, companies):
        mine = add_customer(db, companies[0])
        tech_b = add_technician(db, companies[1])
        response = _job(client_a, mine.id, technician_id=tech_b.id)
        assert response.status_code == 400
        assert "technician_id" in response.json()["fields"]

    def test_address_defaults_to_customer(self, client_a, db, companies):
        mine = add_customer(db, companies[0])
        response = _job(client_a, mine.id)
        assert response.status_code == 201
        assert response.json()["address"] == "100 Congress Ave, Austin, TX, 78701"

    def test_priority_aliases(self, client_a, db, companies):
        mine = add_customer(db, companies[0])
        assert _job(client_a, mine.id, priority="medium").json()["priority"] == "normal"
        assert _job(client_a, mine.id, priority="Emergency").json()["priority"] == "urgent"
        assert _job(client_a, mine.id, priority="whenever").status_code == 400

    def test_slug_family_creates_in_slug_company(self, client_a, db, companies):
        mine = add_customer(db, companies[0])
        response = client_a.post("/quick-fix-hvac/jobs", json={"customer_id": mine.id, "title": "Tune-up"})
        assert response.status_code == 201
        assert len(client_a.get("/jobs").json()) == 1


class TestJobStatus:
    def test_completing_twice_keeps_first_completed_date(self, client_a, db, companies):
        mine = add_customer(db, companies[0])
        job = _job(client_a, mine.id).json()

        first = client_a.put(f"/jobs/{job['id']}", json={"status": "completed"}).json()
        assert first["completed_date"] is not None
        second = client_a.put(f"/jobs/{job['id']}", json={"status": "completed", "notes": "follow-up"}).json()
        assert second["completed_date"] == first["completed_date"]
        assert second["notes"] == "follow-up"

    def test_in_progress_stamps_start_and_duration(self, client_a, db, companies):
        mine = add_customer(db, companies[0])
        job = _job(client_a, mine.id).json()
        started = client_a.put(f"/jobs/{job['id']}", json={"status": "in_progress"}).json()
        assert started["started_at"] is not None

        done = client_a.put(f"/jobs/{job['id']}", json={"status": "completed"}).json()
        assert done["actual_duration"] == 0

    def test_any_transition_is_allowed(self, client_a, db, companies):
        mine = add_customer(db, companies[0])
        job = _job(client_a, mine.id, status="completed").json()
        response = client_a.put(f"/jobs/{job['id']}", json={"status": "scheduled"})
        assert response.status_code == 200
        assert response.json()["status"] == "scheduled"

    def test_moving_job_to_foreign_customer_is_rejected(self, client_a, db, companies):
        mine = add_customer(db, companies[0])
        theirs = add_customer(db, companies[1])
        job = _job(client_a, mine.id).json()
        response = client_a.put(f"/jobs/{job['id']}", json={"customer_id": theirs.id})
        assert response.status_code == 400


class TestSchedules:
    def test_today_only_lists_todays_jobs(self, client_a, db, companies):
        mine = add_customer(db, companies[0])
        now = datetime.now(timezone.utc)
        today_job = _job(client_a, mine.id, scheduled_date=now.isoformat()).json()
        _job(client_a, mine.id, scheduled_date=(now + timedelta(days=3)).isoformat())
        _job(client_a, mine.id)

        response = client_a.get("/jobs/today")
        assert response.status_code == 200
        assert [j["id"] for j in response.json()] == [today_job["id"]]

    def test_by_customer_and_technician(self, client_a, db, companies):
        mine = add_customer(db, companies[0])
        other = add_customer(db, companies[0], name="Other")
        tech = add_technician(db, companies[0])
        j1 = _job(client_a, mine.id, technician_id=tech.id).json()
        _job(client_a, other.id)

        assert [j["id"] for j in client_a.get(f"/jobs/customer/{mine.id}").json()] == [j1["id"]]
        assert [j["id"] for j in client_a.get(f"/jobs/technician/{tech.id}").json()] == [j1["id"]]

    def test_route_lists_day_stops_in_schedule_order(self, client_a, db, companies):
        mine = add_customer(db, companies[0])
        tech = add_technician(db, companies[0])
        day = datetime(2030, 5, 14, 15, 0, tzinfo=timezone.utc)
        late = _job(client_a, mine.id, technician_id=tech.id, scheduled_date=(day + timedelta(hours=3)).isoformat(), address="2 Late St").json()
        early = _job(client_a, mine.id, technician_id=tech.id, scheduled_date=day.isoformat(), address="1 Early St").json()
        _job(client_a, mine.id, technician_id=tech.id, scheduled_date=(day + timedelta(days=1)).isoformat())

        response = client_a.post("/routes/optimize", json={"technician_id": tech.id, "date": "2030-05-14"})
        assert response.status_code == 200, response.text
        body = response.json()
        assert body["total_jobs"] == 2
        assert body["waypoints"] == ["1 Early St", "2 Late St"]
        assert [s["job_id"] for s in body["stops"]] == [early["id"], late["id"]]

    def test_route_for_foreign_technician_is_rejected(self, client_a, db, companies):
        tech_b = add_technician(db, companies[1])
        response = client_a.post("/routes/optimize", json={"technician_id": tech_b.id, "date": "2030-05-14"})
        assert response.status_code == 400
