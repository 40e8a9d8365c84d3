from typing import List, Optional

import structlog

from ..errors import ValidationError
from ..models.models import InventoryItem
from .repository import TenantRepository


log = structlog.get_logger(__name__)


class InventoryRepository(TenantRepository):
    model = InventoryItem
    entity_type = "inventory"
    label = "Inventory item"
    default_order = InventoryItem.name.asc()

    def low_stock(self) -> List[InventoryItem]:
        # At the threshold already counts as low
        return (
            self.scoped_query()
            .filter(InventoryItem.quantity <= InventoryItem.min_quantity)
            .order_by(InventoryItem.name.asc())
            .all()
        )

    def adjust(self, item_id: int, delta: int, reason: Optional[str] = None) -> InventoryItem:
        """Move stock by delta; the result may not go below zero."""
        row = self.get(item_id)
        new_quantity = row.quantity + delta
        if new_quantity < 0:
            raise ValidationError(
                "Insufficient stock",
                fields={"delta": f"Only {row.quantity} in stock"},
            )
        self.audit(row, "UPDATE", changes={"quantity": {"old": row.quantity, "new": new_quantity}, "reason": reason})
        row.quantity = new_quantity
        self.commit()
        self.db.refresh(row)
        log.info("inventory_adjusted", id=row.id, delta=delta, quantity=row.quantity)
        if row.quantity <= row.min_quantity:
            log.info("inventory_low_stock", id=row.id, sku=row.sku, quantity=row.quantity)
        return row
