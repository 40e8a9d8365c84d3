from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ..auth.security import require_roles
from ..db import get_db
from ..errors import NotFoundError
from ..schemas.technicians import TechnicianCreate, TechnicianResponse, TechnicianStatus, TechnicianUpdate
from ..services.technicians import TechnicianRepository
from ..services.tenancy import TenantContext, get_tenant


router = APIRouter(prefix="/technicians", tags=["technicians"])


@router.get("", response_model=List[TechnicianResponse])
def list_technicians(
    status_filter: Optional[TechnicianStatus] = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    return TechnicianRepository(db, tenant).list(status=status_filter)


@router.post("", response_model=TechnicianResponse, status_code=status.HTTP_201_CREATED)
def create_technician(payload: TechnicianCreate, db: Session = Depends(get_db), tenant: TenantContext = Depends(get_tenant)):
    return TechnicianRepository(db, tenant).create(payload)


@router.get("/{technician_id}", response_model=TechnicianResponse)
def get_technician(technician_id: int, db: Session = Depends(get_db), tenant: TenantContext = Depends(get_tenant)):
    return TechnicianRepository(db, tenant).get(technician_id)


@router.put("/{technician_id}", response_model=TechnicianResponse)
def update_technician(
    technician_id: int,
    payload: TechnicianUpdate,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    return TechnicianRepository(db, tenant).update(technician_id, payload)


@router.delete("/{technician_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_technician(
    technician_id: int,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(require_roles("owner", "admin", "dispatcher")),
):
    if not TechnicianRepository(db, tenant).delete(technician_id):
        raise NotFoundError("Technician not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
