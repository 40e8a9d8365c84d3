from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth.security import require_roles
from ..db import get_db
from ..schemas.audit import AuditLogResponse
from ..schemas.dashboard import DashboardStats
from ..services.audit import get_audit_logs
from ..services.dashboard import dashboard_stats
from ..services.tenancy import TenantContext, get_tenant


router = APIRouter(tags=["dashboard"])


@router.get("/dashboard/stats", response_model=DashboardStats)
def stats(db: Session = Depends(get_db), tenant: TenantContext = Depends(get_tenant)):
    return dashboard_stats(db, tenant)


@router.get("/audit-logs", response_model=List[AuditLogResponse])
def audit_logs(
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(require_roles("owner", "admin")),
):
    return get_audit_logs(db, tenant.company_id, entity_type=entity_type, entity_id=entity_id, limit=limit, offset=offset)
