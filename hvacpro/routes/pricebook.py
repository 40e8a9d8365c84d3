from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ..auth.security import get_current_user, require_roles
from ..db import get_db
from ..schemas.pricebook import CompanyPricebookEntry, CompanyPricebookUpdate, PricebookEntry
from ..services.pricebook import PricebookRepository, list_global
from ..services.tenancy import TenantContext, get_tenant, resolve_tenant_from_slug


router = APIRouter(prefix="/pricebook", tags=["pricebook"])


@router.get("/global", response_model=List[PricebookEntry])
def global_pricebook(
    request: Request,
    category: Optional[str] = None,
    db: Session = Depends(get_db),
    _=Depends(get_current_user),
):
    # The catalog is shared, but a slug in the path must still name a real tenant
    slug = request.path_params.get("slug")
    if slug is not None:
        resolve_tenant_from_slug(db, slug)
    return list_global(db, category)


@router.get("/company", response_model=List[CompanyPricebookEntry])
def company_pricebook(
    category: Optional[str] = None,
    active_only: bool = False,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    return PricebookRepository(db, tenant).company_pricebook(category=category, active_only=active_only)


@router.put("/company/{entry_id}", response_model=CompanyPricebookEntry)
def update_company_entry(
    entry_id: int,
    payload: CompanyPricebookUpdate,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(require_roles("owner", "admin")),
):
    return PricebookRepository(db, tenant).update(entry_id, payload)
