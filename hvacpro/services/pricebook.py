"""
Pricebook: a global read-only catalog plus a per-company copy.

A company's copy is materialized on its first read. Concurrent first reads
are serialized per company in-process, and the insert itself ignores rows
that already exist under (company_id, sku), so racing workers in separate
processes still end with exactly one row per SKU.
"""
import threading
from typing import Dict, List, Optional

import structlog
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models.models import CompanyPricebook, GlobalPricebook
from .repository import TenantRepository


log = structlog.get_logger(__name__)

CATALOG_COLUMNS = (
    "sku",
    "category",
    "task_name",
    "tech_notes",
    "customer_description",
    "standard_price",
    "membership_price",
    "after_hours_price",
    "est_hours",
    "equipment_type",
    "parts_kit",
    "warranty_code",
)

_locks: Dict[int, threading.Lock] = {}
_locks_guard = threading.Lock()


def company_lock(company_id: int) -> threading.Lock:
    with _locks_guard:
        return _locks.setdefault(company_id, threading.Lock())


def list_global(db: Session, category: Optional[str] = None) -> List[GlobalPricebook]:
    query = db.query(GlobalPricebook)
    if category:
        query = query.filter(GlobalPricebook.category == category)
    return query.order_by(GlobalPricebook.category.asc(), GlobalPricebook.sku.asc()).all()


class PricebookRepository(TenantRepository):
    model = CompanyPricebook
    entity_type = "pricebook"
    label = "Pricebook entry"

    def _has_rows(self) -> bool:
        return self.scoped_query().first() is not None

    def _insert_ignoring_duplicates(self, rows: List[dict]) -> int:
        dialect = self.db.get_bind().dialect.name
        insert = {"postgresql": postgresql.insert, "sqlite": sqlite.insert}.get(dialect)
        if insert is not None:
            stmt = insert(CompanyPricebook).values(rows).on_conflict_do_nothing(index_elements=["company_id", "sku"])
            return self.db.execute(stmt).rowcount
        inserted = 0
        for values in rows:
            try:
                with self.db.begin_nested():
                    self.db.add(CompanyPricebook(**values))
                inserted += 1
            except IntegrityError:
                continue
        return inserted

    def materialize(self) -> int:
        """Copy every global row into this company's pricebook. Returns rows inserted."""
        with company_lock(self.company_id):
            if self._has_rows():
                return 0
            rows = [
                dict({c: getattr(g, c) for c in CATALOG_COLUMNS}, company_id=self.company_id, is_active=True)
                for g in list_global(self.db)
            ]
            if not rows:
                return 0
            inserted = self._insert_ignoring_duplicates(rows)
            self.db.commit()
        log.info("pricebook_materialized", company_id=self.company_id, rows=inserted)
        return inserted

    def company_pricebook(self, category: Optional[str] = None, active_only: bool = False) -> List[CompanyPricebook]:
        if not self._has_rows():
            self.materialize()
        query = self.scoped_query()
        if category:
            query = query.filter(CompanyPricebook.category == category)
        if active_only:
            query = query.filter(CompanyPricebook.is_active.is_(True))
        return query.order_by(CompanyPricebook.category.asc(), CompanyPricebook.sku.asc()).all()
