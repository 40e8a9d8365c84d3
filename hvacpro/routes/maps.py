from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth.security import get_current_user
from ..db import get_db
from ..schemas.jobs import RouteOptimizeRequest, RouteResponse
from ..services.geocoding import geocode, get_geocode_client
from ..services.jobs import JobRepository
from ..services.tenancy import TenantContext, get_tenant


router = APIRouter(tags=["maps"])
# Tenant-scoped; mounted on both route families
routes_router = APIRouter(prefix="/routes", tags=["routes"])


@router.get("/maps/geocode")
def geocode_address(
    address: str = Query(min_length=1),
    _=Depends(get_current_user),
    client=Depends(get_geocode_client),
):
    return geocode(address, client=client)


@routes_router.post("/optimize", response_model=RouteResponse)
def optimize_route(payload: RouteOptimizeRequest, db: Session = Depends(get_db), tenant: TenantContext = Depends(get_tenant)):
    return JobRepository(db, tenant).optimize_route(payload.technician_id, payload.date)
