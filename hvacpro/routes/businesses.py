from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..models.models import Company
from ..schemas.auth import BusinessResponse


router = APIRouter(prefix="/businesses", tags=["businesses"])


@router.get("", response_model=List[BusinessResponse])
def list_businesses(db: Session = Depends(get_db)):
    """Public list backing the business selector."""
    return db.query(Company).order_by(Company.name.asc()).all()
