# backend/composer/api/endpoints/render.py
from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from composer import schemas
from composer.services import renderer

router = APIRouter()

@router.post("/", response_class=HTMLResponse)
async def render_unsaved_template(request_in: schemas.RenderRequest) -> HTMLResponse:
    """
    Render a template that is not stored (editor preview).
    Legacy record shapes are accepted; failures come back as an error page.
    """
    return HTMLResponse(content=str(renderer.render(request_in.template, request_in.context)))
