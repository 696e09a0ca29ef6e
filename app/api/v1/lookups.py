from typing import List
from fastapi import APIRouter

from app.schemas.common import Currency

router = APIRouter(prefix="/lookups", tags=["lookups"])


@router.get("/currencies", response_model=List[str])
def get_currencies():
    return [c.value for c in Currency]
