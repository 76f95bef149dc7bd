# backend/composer/schemas/document_template.py
from pydantic import BaseModel, ConfigDict, Field, constr
from typing import Any, Dict, Optional
from datetime import datetime
import uuid

from composer.schemas.context import DataContext
from composer.schemas.template import Template

# Shared base properties
class DocumentTemplateBase(BaseModel):
    name: constr(strip_whitespace=True, min_length=1, max_length=255)
    description: Optional[str] = None
    category: constr(strip_whitespace=True, min_length=1, max_length=100)
    is_default: Optional[bool] = False

# Properties to receive on creation: the editor's full template tree
class DocumentTemplateCreate(DocumentTemplateBase):
    template: Template

# Properties to receive on update (all fields optional)
class DocumentTemplateUpdate(BaseModel):
    name: Optional[constr(strip_whitespace=True, min_length=1, max_length=255)] = None
    description: Optional[str] = None
    category: Optional[constr(strip_whitespace=True, min_length=1, max_length=100)] = None
    is_default: Optional[bool] = None
    template: Optional[Template] = None

# Properties to return to client. `template` is always the migrated pages[] shape.
class DocumentTemplate(DocumentTemplateBase):
    id: uuid.UUID
    template: Template
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

# Properties for a summary list of templates
class DocumentTemplateSummary(BaseModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    category: str
    is_default: bool
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

# Ad-hoc render of a template that is not stored (editor preview)
class RenderRequest(BaseModel):
    template: Dict[str, Any] # Raw record; legacy shapes are accepted
    context: DataContext = Field(default_factory=DataContext)
