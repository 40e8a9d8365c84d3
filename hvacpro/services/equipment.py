from typing import Any, Dict, List

from ..models.models import Equipment
from .repository import TenantRepository, utcnow


class EquipmentRepository(TenantRepository):
    model = Equipment
    entity_type = "equipment"
    label = "Equipment"
    scope = "customer"

    def prepare_create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        self.require_customer(data.get("customer_id"))
        return data

    def prepare_update(self, row, data: Dict[str, Any]) -> Dict[str, Any]:
        if "customer_id" in data:
            self.require_customer(data["customer_id"])
        return data

    def service_due(self) -> List[Equipment]:
        return (
            self.scoped_query()
            .filter(Equipment.next_service_date.isnot(None), Equipment.next_service_date <= utcnow())
            .order_by(Equipment.next_service_date.asc())
            .all()
        )

    def by_customer(self, customer_id: int) -> List[Equipment]:
        self.owned_customer(customer_id)
        return self.list(customer_id=customer_id)
