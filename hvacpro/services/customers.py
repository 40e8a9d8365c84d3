from decimal import Decimal

from ..models.models import Customer
from .geocoding import geocode
from .repository import TenantRepository


class CustomerRepository(TenantRepository):
    model = Customer
    entity_type = "customer"
    label = "Customer"
    default_order = Customer.name.asc()

    def geocode(self, customer_id: int, client=None) -> Customer:
        """Look up the customer's address and store the coordinates."""
        row = self.get(customer_id)
        parts = [row.address, row.city, row.state, row.zip_code]
        address = ", ".join(p for p in parts if p)
        result = geocode(address, client=client)
        changes = {
            "latitude": {"old": row.latitude, "new": result["lat"]},
            "longitude": {"old": row.longitude, "new": result["lng"]},
        }
        row.latitude = Decimal(str(result["lat"]))
        row.longitude = Decimal(str(result["lng"]))
        self.audit(row, "UPDATE", changes=changes)
        self.commit()
        self.db.refresh(row)
        return row
