# backend/composer/services/template_saving.py
import logging
from typing import Any, Dict

from composer.schemas.element import ImageElement
from composer.schemas.template import Template
from composer.services.image_optimizer import optimize_data_uri_async

logger = logging.getLogger(__name__)


class TemplateValidationError(ValueError):
    pass


def validate_for_save(template: Template) -> None:
    """A template needs a name and a category before it can be stored."""
    if not template.name or not template.name.strip():
        raise TemplateValidationError("Template name is required")
    if not template.category or not template.category.strip():
        raise TemplateValidationError("Template category is required")


def snapshot(template: Template) -> Template:
    return template.model_copy(deep=True)


async def prepare_for_save(template: Template, optimize_images: bool = True) -> Dict[str, Any]:
    """
    Validate, snapshot and optimise embedded images; returns the record to persist.
    The caller's template is never touched, so editing may go on while this runs.
    """
    validate_for_save(template)
    copy = snapshot(template)

    if optimize_images:
        optimized_count = 0
        for page in copy.pages:
            for element in page.elements:
                if isinstance(element, ImageElement) and element.has_embedded_image:
                    optimized = await optimize_data_uri_async(element.content)
                    if optimized != element.content:
                        element.content = optimized
                        optimized_count += 1
        if optimized_count:
            logger.info("Optimised %d embedded image(s) for template '%s'", optimized_count, copy.name)

    return copy.to_record()
