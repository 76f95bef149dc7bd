# backend/composer/api/endpoints/variables.py
from fastapi import APIRouter, Query
from typing import List, Optional

from composer import schemas
from composer.services import variable_catalog

router = APIRouter()

@router.get("/", response_model=List[schemas.VariableGroup])
async def read_variables(
    search: Optional[str] = Query(None, description="Filter by label or token (partial, case-insensitive)")
) -> List[schemas.VariableGroup]:
    """
    Merge tokens offered by the variable picker, grouped by category.
    """
    return variable_catalog.grouped_variables(search or "")

@router.get("/categories", response_model=List[schemas.VariableCategory])
async def read_variable_categories() -> List[schemas.VariableCategory]:
    return variable_catalog.CATEGORIES
