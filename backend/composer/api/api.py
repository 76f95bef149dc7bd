from fastapi import APIRouter

from composer.api.endpoints import document_templates
from composer.api.endpoints import render
from composer.api.endpoints import variables

api_router = APIRouter()

api_router.include_router(variables.router, prefix="/variables", tags=["Variables"])
api_router.include_router(document_templates.router, prefix="/document-templates", tags=["Document Templates"])
api_router.include_router(render.router, prefix="/render", tags=["Render"])
