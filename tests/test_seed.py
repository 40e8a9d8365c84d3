"""
Tests for demo data seeding
"""
from hvacpro.models.models import Company, Customer, Technician, User
from hvacpro.services.seed import DEMO_COMPANIES, seed_demo_data
from conftest import login


class TestSeed:
    def test_seed_is_idempotent(self, db):
        seed_demo_data(db)
        seed_demo_data(db)
        assert db.query(Company).count() == len(DEMO_COMPANIES)
        assert db.query(Customer).count() == 5 * len(DEMO_COMPANIES)
        assert db.query(Technician).count() == 1 + 2 + 3
        assert db.query(User).filter(User.username.like("owner%")).count() == 3

    def test_demo_owner_can_log_in(self, db, client_factory):
        seed_demo_data(db)
        client = login(client_factory(), "owner1")
        assert len(client.get("/customers").json()) == 5
