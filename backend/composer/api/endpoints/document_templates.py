# backend/composer/api/endpoints/document_templates.py
from fastapi import APIRouter, Depends, HTTPException, status, Query, Response
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Any, Optional
import logging
import re
import uuid

from composer import crud, schemas
from composer.db.session import get_db
from composer.services import renderer

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_schema(db_obj) -> schemas.DocumentTemplate:
    return schemas.DocumentTemplate(
        id=db_obj.id,
        name=db_obj.name,
        description=db_obj.description,
        category=db_obj.category,
        is_default=db_obj.is_default,
        template=crud.document_template.load_record_template(db_obj),
        created_at=db_obj.created_at,
        updated_at=db_obj.updated_at,
    )


async def _get_or_404(db: AsyncSession, template_id: uuid.UUID):
    db_template = await crud.document_template.get_document_template(db, template_id=template_id)
    if not db_template:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document template not found")
    return db_template


@router.post("/", response_model=schemas.DocumentTemplate, status_code=status.HTTP_201_CREATED)
async def create_new_document_template(
    *,
    db: AsyncSession = Depends(get_db),
    template_in: schemas.DocumentTemplateCreate,
) -> Any:
    """
    Store a new template built in the editor.
    """
    existing_template_name = await crud.document_template.get_document_template_by_name(db, name=template_in.name)
    if existing_template_name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A document template with this name already exists.",
        )
    try:
        db_template = await crud.document_template.create_document_template(db=db, template_in=template_in)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return _to_schema(db_template)

@router.get("/", response_model=List[schemas.DocumentTemplateSummary])
async def read_all_document_templates(
    db: AsyncSession = Depends(get_db),
    category: Optional[str] = Query(None, description="Filter by category"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200),
) -> Any:
    """
    Retrieve stored templates (summaries only, without the element tree).
    """
    templates = await crud.document_template.get_all_document_templates(db, skip=skip, limit=limit, category=category)
    return [
        schemas.DocumentTemplateSummary.model_validate(template) for template in templates
    ]

@router.get("/categories", response_model=List[str])
async def read_document_template_categories() -> List[str]:
    """Categories offered when saving a template."""
    return schemas.TEMPLATE_CATEGORIES

@router.get("/{template_id}", response_model=schemas.DocumentTemplate)
async def read_document_template_by_id(
    template_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Get a stored template; older record shapes are returned migrated to pages[].
    """
    db_template = await _get_or_404(db, template_id)
    try:
        return _to_schema(db_template)
    except ValueError as e:
        logger.error("Stored template %s could not be loaded: %s", template_id, e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Stored template is corrupt.")

@router.put("/{template_id}", response_model=schemas.DocumentTemplate)
async def update_existing_document_template(
    template_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    template_in: schemas.DocumentTemplateUpdate,
) -> Any:
    db_template = await _get_or_404(db, template_id)

    # Check for name conflict if name is being changed
    if template_in.name and template_in.name != db_template.name:
        existing_template_name = await crud.document_template.get_document_template_by_name(db, name=template_in.name)
        if existing_template_name and existing_template_name.id != template_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="A document template with this name already exists.",
            )
    try:
        db_template = await crud.document_template.update_document_template(db=db, db_obj=db_template, obj_in=template_in)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return _to_schema(db_template)

@router.delete("/{template_id}", response_model=schemas.DocumentTemplateSummary)
async def delete_existing_document_template(
    template_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
) -> Any:
    db_template = await _get_or_404(db, template_id)
    summary = schemas.DocumentTemplateSummary.model_validate(db_template)
    try:
        await crud.document_template.delete_document_template(db=db, db_obj=db_template)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return summary

@router.post("/{template_id}/render", response_class=HTMLResponse)
async def render_document_template(
    template_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    context_in: Optional[schemas.DataContext] = None,
) -> HTMLResponse:
    """
    Merge business data into a stored template and return the page markup.
    """
    db_template = await _get_or_404(db, template_id)
    html_content = renderer.render(db_template.template, context_in)
    return HTMLResponse(content=str(html_content))

@router.post("/{template_id}/pdf", response_class=Response)
async def download_document_template_pdf(
    template_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    context_in: Optional[schemas.DataContext] = None,
) -> Response:
    """
    Merge business data into a stored template and export it as PDF.
    """
    db_template = await _get_or_404(db, template_id)
    try:
        pdf_bytes = await renderer.render_pdf(db_template.template, context_in, title=db_template.name)
    except Exception as e:
        logger.exception("PDF generation failed for template %s", template_id)
        raise HTTPException(status_code=500, detail=f"Error generating document: PDF conversion failed. Details: {str(e)}")

    filename = re.sub(r"[^A-Za-z0-9_.-]+", "-", db_template.name).strip("-") or "proposta"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}.pdf"}
    )
