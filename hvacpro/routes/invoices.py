from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from ..auth.security import require_roles
from ..db import get_db
from ..documents.invoice_pdf import build_invoice_pdf
from ..errors import NotFoundError
from ..models.models import Company
from ..schemas.invoices import (
    InvoiceCreate,
    InvoiceItemCreate,
    InvoiceItemResponse,
    InvoiceItemUpdate,
    InvoiceResponse,
    InvoiceUpdate,
)
from ..services.invoices import InvoiceRepository
from ..services.tenancy import TenantContext, get_tenant


router = APIRouter(prefix="/invoices", tags=["invoices"])


@router.get("", response_model=List[InvoiceResponse])
def list_invoices(db: Session = Depends(get_db), tenant: TenantContext = Depends(get_tenant)):
    return InvoiceRepository(db, tenant).list()


@router.post("", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
def create_invoice(payload: InvoiceCreate, db: Session = Depends(get_db), tenant: TenantContext = Depends(get_tenant)):
    return InvoiceRepository(db, tenant).create(payload)


@router.get("/customer/{customer_id}", response_model=List[InvoiceResponse])
def invoices_for_customer(customer_id: int, db: Session = Depends(get_db), tenant: TenantContext = Depends(get_tenant)):
    return InvoiceRepository(db, tenant).by_customer(customer_id)


@router.get("/{invoice_id}", response_model=InvoiceResponse)
def get_invoice(invoice_id: int, db: Session = Depends(get_db), tenant: TenantContext = Depends(get_tenant)):
    return InvoiceRepository(db, tenant).get(invoice_id)


@router.put("/{invoice_id}", response_model=InvoiceResponse)
def update_invoice(
    invoice_id: int,
    payload: InvoiceUpdate,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    return InvoiceRepository(db, tenant).update(invoice_id, payload)


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(require_roles("owner", "admin", "dispatcher")),
):
    if not InvoiceRepository(db, tenant).delete(invoice_id):
        raise NotFoundError("Invoice not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{invoice_id}/pdf")
def invoice_pdf(invoice_id: int, db: Session = Depends(get_db), tenant: TenantContext = Depends(get_tenant)):
    invoice = InvoiceRepository(db, tenant).get(invoice_id)
    company = db.get(Company, tenant.company_id)
    content = build_invoice_pdf(company, invoice)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="{invoice.invoice_number}.pdf"'},
    )


# ---------- ITEMS ----------
@router.get("/{invoice_id}/items", response_model=List[InvoiceItemResponse])
def list_items(invoice_id: int, db: Session = Depends(get_db), tenant: TenantContext = Depends(get_tenant)):
    return InvoiceRepository(db, tenant).list_items(invoice_id)


@router.post("/{invoice_id}/items", response_model=InvoiceItemResponse, status_code=status.HTTP_201_CREATED)
def add_item(
    invoice_id: int,
    payload: InvoiceItemCreate,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    return InvoiceRepository(db, tenant).add_item(invoice_id, payload)


@router.put("/{invoice_id}/items/{item_id}", response_model=InvoiceItemResponse)
def update_item(
    invoice_id: int,
    item_id: int,
    payload: InvoiceItemUpdate,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    return InvoiceRepository(db, tenant).update_item(invoice_id, item_id, payload)


@router.delete("/{invoice_id}/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_item(
    invoice_id: int,
    item_id: int,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    if not InvoiceRepository(db, tenant).delete_item(invoice_id, item_id):
        raise NotFoundError("Invoice item not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
