# backend/composer/crud/crud_document_template.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import update as sqlalchemy_update
import logging
import uuid
from typing import List, Optional

from composer.models.document_template import DocumentTemplate as DocumentTemplateModel
from composer.schemas.document_template import DocumentTemplateCreate, DocumentTemplateUpdate
from composer.schemas.template import Template
from composer.services.legacy import load_template
from composer.services.template_saving import prepare_for_save

logger = logging.getLogger(__name__)

async def get_document_template(db: AsyncSession, template_id: uuid.UUID) -> Optional[DocumentTemplateModel]:
    """
    Get a single document template by its ID.
    """
    result = await db.execute(select(DocumentTemplateModel).filter(DocumentTemplateModel.id == template_id))
    return result.scalars().first()

async def get_document_template_by_name(db: AsyncSession, name: str) -> Optional[DocumentTemplateModel]:
    result = await db.execute(select(DocumentTemplateModel).filter(DocumentTemplateModel.name == name))
    return result.scalars().first()

async def get_default_template(db: AsyncSession) -> Optional[DocumentTemplateModel]:
    result = await db.execute(select(DocumentTemplateModel).filter(DocumentTemplateModel.is_default == True))
    return result.scalars().first()

async def get_all_document_templates(
    db: AsyncSession, skip: int = 0, limit: int = 100, category: Optional[str] = None
) -> List[DocumentTemplateModel]:
    """
    Get document templates with pagination, ordered by category then name.
    """
    query = select(DocumentTemplateModel)
    if category:
        query = query.filter(DocumentTemplateModel.category == category)
    result = await db.execute(
        query.order_by(DocumentTemplateModel.category, DocumentTemplateModel.name).offset(skip).limit(limit)
    )
    return result.scalars().all()

def load_record_template(db_obj: DocumentTemplateModel) -> Template:
    """The stored tree as a Template; legacy shapes are migrated, metadata comes from the row."""
    template = load_template(db_obj.template or {})
    template.name = db_obj.name
    template.category = db_obj.category
    template.description = db_obj.description or ""
    return template

async def _unset_other_defaults(db: AsyncSession, keep_id: Optional[uuid.UUID] = None) -> None:
    query = sqlalchemy_update(DocumentTemplateModel).where(DocumentTemplateModel.is_default == True)
    if keep_id is not None:
        query = query.where(DocumentTemplateModel.id != keep_id)
    await db.execute(query.values(is_default=False))

async def create_document_template(db: AsyncSession, *, template_in: DocumentTemplateCreate) -> DocumentTemplateModel:
    """
    Create a new document template.
    The tree is validated and its images optimised before it is stored.
    Raises TemplateValidationError (a ValueError) when name or category is blank.
    """
    template = template_in.template.model_copy(update={
        "name": template_in.name,
        "category": template_in.category,
        "description": template_in.description or "",
    })
    record = await prepare_for_save(template)

    if template_in.is_default:
        await _unset_other_defaults(db)

    db_obj = DocumentTemplateModel(
        name=template_in.name,
        description=template_in.description,
        category=template_in.category,
        template=record,
        is_default=bool(template_in.is_default),
    )
    db.add(db_obj)
    await db.commit()
    await db.refresh(db_obj)
    logger.info("Created document template %s ('%s')", db_obj.id, db_obj.name)
    return db_obj

async def update_document_template(
    db: AsyncSession, *, db_obj: DocumentTemplateModel, obj_in: DocumentTemplateUpdate
) -> DocumentTemplateModel:
    """
    Update an existing document template. A new tree replaces the stored one;
    metadata changes are mirrored into the stored tree.
    """
    update_data = obj_in.model_dump(exclude_unset=True, exclude={"template"})

    if update_data.get("is_default") is True and not db_obj.is_default:
        await _unset_other_defaults(db, keep_id=db_obj.id)

    for field, value in update_data.items():
        if field in ("name", "category", "is_default") and value is None:
            continue
        setattr(db_obj, field, value)

    template = obj_in.template if obj_in.template is not None else load_template(db_obj.template or {})
    template = template.model_copy(update={
        "name": db_obj.name,
        "category": db_obj.category,
        "description": db_obj.description or "",
    })
    db_obj.template = await prepare_for_save(template)

    db.add(db_obj)
    await db.commit()
    await db.refresh(db_obj)
    return db_obj

async def delete_document_template(db: AsyncSession, *, db_obj: DocumentTemplateModel) -> DocumentTemplateModel:
    """
    Delete a document template. The default template cannot be deleted;
    another template has to be made the default first.
    """
    if db_obj.is_default:
        raise ValueError("Cannot delete the default document template.")

    await db.delete(db_obj)
    await db.commit()
    return db_obj
