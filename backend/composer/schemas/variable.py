# backend/composer/schemas/variable.py
from pydantic import BaseModel
from typing import List


class VariableCategory(BaseModel):
    id: str
    label: str
    color: str


class VariableDefinition(BaseModel):
    id: str
    label: str
    token: str # e.g. "{{cliente_nome}}"
    category: str
    structural: bool = False # Expands to generated markup instead of a scalar


class VariableGroup(BaseModel):
    category: VariableCategory
    variables: List[VariableDefinition] = []
