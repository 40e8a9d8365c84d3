from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from ..db import get_db
from ..errors import NotFoundError
from ..schemas.equipment import EquipmentCreate, EquipmentResponse, EquipmentUpdate
from ..services.equipment import EquipmentRepository
from ..services.tenancy import TenantContext, get_tenant


router = APIRouter(prefix="/equipment", tags=["equipment"])


@router.get("", response_model=List[EquipmentResponse])
def list_equipment(db: Session = Depends(get_db), tenant: TenantContext = Depends(get_tenant)):
    return EquipmentRepository(db, tenant).list()


@router.post("", response_model=EquipmentResponse, status_code=status.HTTP_201_CREATED)
def create_equipment(payload: EquipmentCreate, db: Session = Depends(get_db), tenant: TenantContext = Depends(get_tenant)):
    return EquipmentRepository(db, tenant).create(payload)


@router.get("/service-due", response_model=List[EquipmentResponse])
def service_due(db: Session = Depends(get_db), tenant: TenantContext = Depends(get_tenant)):
    return EquipmentRepository(db, tenant).service_due()


@router.get("/customer/{customer_id}", response_model=List[EquipmentResponse])
def equipment_for_customer(customer_id: int, db: Session = Depends(get_db), tenant: TenantContext = Depends(get_tenant)):
    return EquipmentRepository(db, tenant).by_customer(customer_id)


@router.get("/{equipment_id}", response_model=EquipmentResponse)
def get_equipment(equipment_id: int, db: Session = Depends(get_db), tenant: TenantContext = Depends(get_tenant)):
    return EquipmentRepository(db, tenant).get(equipment_id)


@router.put("/{equipment_id}", response_model=EquipmentResponse)
def update_equipment(
    equipment_id: int,
    payload: EquipmentUpdate,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    return EquipmentRepository(db, tenant).update(equipment_id, payload)


@router.delete("/{equipment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_equipment(equipment_id: int, db: Session = Depends(get_db), tenant: TenantContext = Depends(get_tenant)):
    if not EquipmentRepository(db, tenant).delete(equipment_id):
        raise NotFoundError("Equipment not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
