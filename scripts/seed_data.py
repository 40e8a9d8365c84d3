"""
Seed the local database with the demo HVAC companies.

Usage:
  python scripts/seed_data.py

Creates three companies (quick-fix-hvac, city-climate-control,
metro-hvac-services), each with an owner login (owner1..owner3, password
demo123), one to three technicians and five customers. The global pricebook
is populated as well. Running it again leaves existing rows alone.
"""

from hvacpro.db import SessionLocal, Base, engine
from hvacpro.logging import setup_logging
from hvacpro.services.seed import populate_global_pricebook, seed_demo_data


def main():
    setup_logging()
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        populate_global_pricebook(session)
        seed_demo_data(session)
        print("Seed completed. Logins: owner1 / owner2 / owner3, password demo123")
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


if __name__ == "__main__":
    main()
