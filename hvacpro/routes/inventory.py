from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from ..db import get_db
from ..errors import NotFoundError
from ..schemas.inventory import InventoryCreate, InventoryResponse, InventoryUpdate, StockAdjustment
from ..services.inventory import InventoryRepository
from ..services.tenancy import TenantContext, get_tenant


router = APIRouter(prefix="/inventory", tags=["inventory"])


@router.get("", response_model=List[InventoryResponse])
def list_inventory(db: Session = Depends(get_db), tenant: TenantContext = Depends(get_tenant)):
    return InventoryRepository(db, tenant).list()


@router.post("", response_model=InventoryResponse, status_code=status.HTTP_201_CREATED)
def create_inventory_item(payload: InventoryCreate, db: Session = Depends(get_db), tenant: TenantContext = Depends(get_tenant)):
    return InventoryRepository(db, tenant).create(payload)


@router.get("/low-stock", response_model=List[InventoryResponse])
def low_stock(db: Session = Depends(get_db), tenant: TenantContext = Depends(get_tenant)):
    return InventoryRepository(db, tenant).low_stock()


@router.get("/{item_id}", response_model=InventoryResponse)
def get_inventory_item(item_id: int, db: Session = Depends(get_db), tenant: TenantContext = Depends(get_tenant)):
    return InventoryRepository(db, tenant).get(item_id)


@router.put("/{item_id}", response_model=InventoryResponse)
def update_inventory_item(
    item_id: int,
    payload: InventoryUpdate,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    return InventoryRepository(db, tenant).update(item_id, payload)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_inventory_item(item_id: int, db: Session = Depends(get_db), tenant: TenantContext = Depends(get_tenant)):
    if not InventoryRepository(db, tenant).delete(item_id):
        raise NotFoundError("Inventory item not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{item_id}/adjust", response_model=InventoryResponse)
def adjust_stock(
    item_id: int,
    payload: StockAdjustment,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    return InventoryRepository(db, tenant).adjust(item_id, payload.delta, payload.reason)
