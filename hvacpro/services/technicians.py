from typing import Any, Dict, Optional

from ..errors import ValidationError
from ..models.models import Technician, UserRole
from .repository import TenantRepository


class TechnicianRepository(TenantRepository):
    model = Technician
    entity_type = "technician"
    label = "Technician"
    default_order = Technician.name.asc()

    def _check_user(self, user_id: Optional[int]) -> None:
        # A technician profile may only link to a login of the same company
        if user_id is None:
            return
        member = (
            self.db.query(UserRole.id)
            .filter(UserRole.user_id == user_id, UserRole.company_id == self.company_id)
            .first()
        )
        if member is None:
            raise ValidationError("Invalid user for this business", fields={"user_id": "Invalid user for this business"})

    def prepare_create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        self._check_user(data.get("user_id"))
        return super().prepare_create(data)

    def prepare_update(self, row, data: Dict[str, Any]) -> Dict[str, Any]:
        if "user_id" in data:
            self._check_user(data["user_id"])
        if "specialties" in data and data["specialties"] is None:
            data["specialties"] = []
        return data
