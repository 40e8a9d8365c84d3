"""
Invoices and their line items.

Money is Decimal end to end and rounded half-up to cents. An invoice with
items always carries subtotal = sum of item totals and total = subtotal + tax.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pytz
import structlog

from ..config import settings
from ..errors import ConflictError, NotFoundError, ValidationError
from ..models.models import Invoice, InvoiceItem
from ..schemas.invoices import InvoiceCreate, InvoiceItemCreate, InvoiceItemUpdate
from .repository import TenantRepository, plain_values, quantize_money, utcnow


log = structlog.get_logger(__name__)

ZERO = Decimal("0.00")


def item_total(quantity: int, unit_price: Decimal) -> Decimal:
    return quantize_money(Decimal(quantity) * Decimal(unit_price))


def compute_totals(
    item_totals: Iterable[Decimal],
    subtotal: Optional[Decimal] = None,
    tax: Optional[Decimal] = None,
    total: Optional[Decimal] = None,
    tax_rate: Optional[Decimal] = None,
) -> Tuple[Decimal, Decimal, Decimal]:
    """Return (subtotal, tax, total) or raise ValidationError naming the inconsistent field.

    Tax defaults to subtotal * tax_rate when not given.
    """
    item_totals = list(item_totals)
    if item_totals:
        computed = quantize_money(sum(item_totals, ZERO))
        if subtotal is not None and quantize_money(subtotal) != computed:
            raise ValidationError(fields={"subtotal": "Subtotal must equal the sum of item totals"})
        subtotal = computed
    elif subtotal is None:
        raise ValidationError(fields={"subtotal": "Subtotal is required when an invoice has no items"})
    subtotal = quantize_money(subtotal)
    rate = settings.default_tax_rate if tax_rate is None else tax_rate
    tax = quantize_money(tax if tax is not None else subtotal * Decimal(rate))
    expected = subtotal + tax
    if total is not None and quantize_money(total) != expected:
        raise ValidationError(fields={"total": "Total must equal subtotal plus tax"})
    return subtotal, tax, expected


class InvoiceRepository(TenantRepository):
    model = Invoice
    entity_type = "invoice"
    label = "Invoice"
    scope = "customer"
    default_order = Invoice.created_at.desc()

    def next_invoice_number(self) -> str:
        year = datetime.now(pytz.timezone(settings.tz_default)).year
        prefix = f"{settings.invoice_number_prefix}-{year}-"
        rows = self.db.query(Invoice.invoice_number).filter(Invoice.invoice_number.like(f"{prefix}%")).all()
        seq = 0
        for (number,) in rows:
            suffix = number[len(prefix):]
            if suffix.isdigit():
                seq = max(seq, int(suffix))
        return f"{prefix}{seq + 1:05d}"

    def _check_job(self, job_id: Optional[int], customer_id: int) -> None:
        job = self.require_job(job_id)
        if job is not None and job.customer_id != customer_id:
            raise ValidationError(fields={"job_id": "Job belongs to a different customer"})

    def by_customer(self, customer_id: int) -> List[Invoice]:
        self.owned_customer(customer_id)
        return self.list(customer_id=customer_id)

    def _insert(self, data: Dict[str, Any], payload: InvoiceCreate) -> Invoice:
        row = Invoice(**data)
        row.items = [
            InvoiceItem(
                description=item.description,
                quantity=item.quantity,
                unit_price=quantize_money(item.unit_price),
                total=item_total(item.quantity, item.unit_price),
            )
            for item in payload.items
        ]
        self.db.add(row)
        self.flush("Invoice number already exists")
        self.audit(row, "CREATE", changes={**data, "items": len(row.items)})
        self.commit("Invoice number already exists")
        return row

    def create(self, payload: InvoiceCreate) -> Invoice:
        data = plain_values(payload.model_dump(exclude={"items"}))
        for key in self.immutable_keys:
            data.pop(key, None)
        self.require_customer(data["customer_id"])
        self._check_job(data.get("job_id"), data["customer_id"])

        data["subtotal"], data["tax"], data["total"] = compute_totals(
            [item_total(i.quantity, i.unit_price) for i in payload.items],
            data.get("subtotal"),
            data.get("tax"),
            data.get("total"),
        )
        if data.get("status") == "paid" and data.get("paid_date") is None:
            data["paid_date"] = utcnow()

        # A generated number can lose a race with a concurrent writer; draw once more
        generated = not data.get("invoice_number")
        attempts = 2 if generated else 1
        for attempt in range(1, attempts + 1):
            if generated:
                data["invoice_number"] = self.next_invoice_number()
            try:
                row = self._insert(data, payload)
                break
            except ConflictError:
                if attempt == attempts:
                    raise
                log.info("invoice_number_taken", number=data["invoice_number"])

        self.db.refresh(row)
        log.info("invoice_created", id=row.id, number=row.invoice_number, total=str(row.total))
        return row

    def prepare_update(self, row: Invoice, data: Dict[str, Any]) -> Dict[str, Any]:
        customer_id = data.get("customer_id", row.customer_id)
        if "customer_id" in data:
            self.require_customer(customer_id)
        if "job_id" in data or "customer_id" in data:
            self._check_job(data.get("job_id", row.job_id), customer_id)

        if {"subtotal", "tax", "total"} & data.keys():
            subtotal, tax, total = compute_totals(
                [i.total for i in row.items],
                data.get("subtotal", None if row.items else row.subtotal),
                data.get("tax", row.tax),
                data.get("total"),
            )
            data.update(subtotal=subtotal, tax=tax, total=total)

        status = data.get("status")
        if status == "paid" and status != row.status and data.get("paid_date") is None and row.paid_date is None:
            data["paid_date"] = utcnow()
        return data

    # ---------- items ----------
    def _recalculate(self, invoice: Invoice) -> None:
        # Stored tax is kept as entered; only subtotal and total follow the items
        invoice.subtotal = quantize_money(sum((i.total for i in invoice.items), ZERO))
        invoice.total = invoice.subtotal + quantize_money(invoice.tax or ZERO)

    def _get_item(self, invoice: Invoice, item_id: int) -> InvoiceItem:
        for item in invoice.items:
            if item.id == item_id:
                return item
        raise NotFoundError("Invoice item not found")

    def list_items(self, invoice_id: int) -> List[InvoiceItem]:
        return list(self.get(invoice_id).items)

    def add_item(self, invoice_id: int, payload: InvoiceItemCreate) -> InvoiceItem:
        invoice = self.get(invoice_id)
        item = InvoiceItem(
            description=payload.description,
            quantity=payload.quantity,
            unit_price=quantize_money(payload.unit_price),
            total=item_total(payload.quantity, payload.unit_price),
        )
        invoice.items.append(item)
        self._recalculate(invoice)
        self.flush()
        self.audit(invoice, "UPDATE", changes={"item_added": item.id, "total": invoice.total})
        self.commit()
        self.db.refresh(item)
        return item

    def update_item(self, invoice_id: int, item_id: int, payload: InvoiceItemUpdate) -> InvoiceItem:
        invoice = self.get(invoice_id)
        item = self._get_item(invoice, item_id)
        data = payload.model_dump(exclude_unset=True)
        self.reject_nulls(data, model=InvoiceItem)
        for key, value in data.items():
            setattr(item, key, value)
        item.unit_price = quantize_money(item.unit_price)
        item.total = item_total(item.quantity, item.unit_price)
        self._recalculate(invoice)
        self.audit(invoice, "UPDATE", changes={"item_updated": item.id, "total": invoice.total})
        self.commit()
        self.db.refresh(item)
        return item

    def delete_item(self, invoice_id: int, item_id: int) -> bool:
        invoice = self.get(invoice_id)
        try:
            item = self._get_item(invoice, item_id)
        except NotFoundError:
            return False
        invoice.items.remove(item)
        self._recalculate(invoice)
        self.audit(invoice, "UPDATE", changes={"item_removed": item_id, "total": invoice.total})
        self.commit()
        return True
