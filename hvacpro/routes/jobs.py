from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ..auth.security import require_roles
from ..db import get_db
from ..errors import NotFoundError
from ..schemas.jobs import JobCreate, JobPriority, JobResponse, JobStatus, JobUpdate
from ..services.jobs import JobRepository
from ..services.tenancy import TenantContext, get_tenant


router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.get("", response_model=List[JobResponse])
def list_jobs(
    status_filter: Optional[JobStatus] = Query(default=None, alias="status"),
    priority: Optional[JobPriority] = None,
    technician_id: Optional[int] = None,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    return JobRepository(db, tenant).list(status=status_filter, priority=priority, technician_id=technician_id)


@router.post("", response_model=JobResponse, status_code=status.HTTP_201_CREATED)
def create_job(payload: JobCreate, db: Session = Depends(get_db), tenant: TenantContext = Depends(get_tenant)):
    return JobRepository(db, tenant).create(payload)


@router.get("/today", response_model=List[JobResponse])
def todays_jobs(db: Session = Depends(get_db), tenant: TenantContext = Depends(get_tenant)):
    return JobRepository(db, tenant).today()


@router.get("/customer/{customer_id}", response_model=List[JobResponse])
def jobs_for_customer(customer_id: int, db: Session = Depends(get_db), tenant: TenantContext = Depends(get_tenant)):
    return JobRepository(db, tenant).by_customer(customer_id)


@router.get("/technician/{technician_id}", response_model=List[JobResponse])
def jobs_for_technician(technician_id: int, db: Session = Depends(get_db), tenant: TenantContext = Depends(get_tenant)):
    return JobRepository(db, tenant).by_technician(technician_id)


@router.get("/{job_id}", response_model=JobResponse)
def get_job(job_id: int, db: Session = Depends(get_db), tenant: TenantContext = Depends(get_tenant)):
    return JobRepository(db, tenant).get(job_id)


@router.put("/{job_id}", response_model=JobResponse)
def update_job(job_id: int, payload: JobUpdate, db: Session = Depends(get_db), tenant: TenantContext = Depends(get_tenant)):
    return JobRepository(db, tenant).update(job_id, payload)


@router.delete("/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_job(
    job_id: int,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(require_roles("owner", "admin", "dispatcher")),
):
    if not JobRepository(db, tenant).delete(job_id):
        raise NotFoundError("Job not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
