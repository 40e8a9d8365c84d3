from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from ..auth.security import require_roles
from ..db import get_db
from ..errors import NotFoundError
from ..schemas.customers import CustomerCreate, CustomerResponse, CustomerUpdate
from ..services.customers import CustomerRepository
from ..services.geocoding import get_geocode_client
from ..services.tenancy import TenantContext, get_tenant


router = APIRouter(prefix="/customers", tags=["customers"])


@router.get("", response_model=List[CustomerResponse])
def list_customers(db: Session = Depends(get_db), tenant: TenantContext = Depends(get_tenant)):
    return CustomerRepository(db, tenant).list()


@router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
def create_customer(payload: CustomerCreate, db: Session = Depends(get_db), tenant: TenantContext = Depends(get_tenant)):
    return CustomerRepository(db, tenant).create(payload)


@router.get("/{customer_id}", response_model=CustomerResponse)
def get_customer(customer_id: int, db: Session = Depends(get_db), tenant: TenantContext = Depends(get_tenant)):
    return CustomerRepository(db, tenant).get(customer_id)


@router.put("/{customer_id}", response_model=CustomerResponse)
def update_customer(
    customer_id: int,
    payload: CustomerUpdate,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    return CustomerRepository(db, tenant).update(customer_id, payload)


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(require_roles("owner", "admin", "dispatcher")),
):
    if not CustomerRepository(db, tenant).delete(customer_id):
        raise NotFoundError("Customer not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{customer_id}/geocode", response_model=CustomerResponse)
def geocode_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
    client=Depends(get_geocode_client),
):
    return CustomerRepository(db, tenant).geocode(customer_id, client=client)
