"""
Load the global HVAC pricebook.

Usage:
  python scripts/populate_pricebook.py

Upserts by SKU, so it can be re-run after the catalog changes.
"""

from hvacpro.db import SessionLocal, Base, engine
from hvacpro.logging import setup_logging
from hvacpro.services.seed import GLOBAL_PRICEBOOK, populate_global_pricebook


def main():
    setup_logging()
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        created = populate_global_pricebook(session)
        print(f"Pricebook loaded: {created} new of {len(GLOBAL_PRICEBOOK)} SKUs")
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


if __name__ == "__main__":
    main()
