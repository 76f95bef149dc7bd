# backend/composer/services/renderer.py
"""Turns a template plus a data context into printable markup (HTML, and PDF via WeasyPrint)."""
import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Union

from markupsafe import Markup
from weasyprint import HTML # type: ignore

from composer.core.config import settings
from composer.schemas.context import DataContext
from composer.schemas.element import ImageElement, TableElement
from composer.schemas.primitives import PageConfig
from composer.schemas.table import TableData
from composer.schemas.template import Page, Template
from composer.services.legacy import load_template
from composer.services.markup import TEMPLATE_DIR, css, jinja_env
from composer.services.substitution import BoundContext, SubstitutionEngine, engine as default_engine

logger = logging.getLogger(__name__)

TemplateSource = Union[Template, Dict[str, Any]]
ContextSource = Union[DataContext, Dict[str, Any], None]


def _px(value: float) -> str:
    return f"{value:g}px"


def _is_auto(value: Optional[str]) -> bool:
    return not value or value.strip().lower() == "auto"


def _background_image(url: Optional[str]) -> Optional[str]:
    if not url or "'" in url or ")" in url:
        return None
    return f"url('{url}')"


def _page_style(config: PageConfig) -> str:
    auto_height = _is_auto(config.height)
    background = _background_image(config.background_image)
    return css({
        "position": "relative",
        "box-sizing": "border-box",
        "width": config.width,
        "height": None if auto_height else config.height,
        "min-height": _px(settings.PAGE_MIN_HEIGHT_PX) if auto_height else None,
        "background-color": config.background_color,
        "background-image": background,
        "background-size": "cover" if background else None,
        "background-position": "center" if background else None,
        "padding": config.padding,
        "font-family": config.font_family,
    })


def _element_style(element) -> str:
    style = element.style
    return css({
        "position": "absolute",
        "left": _px(element.position.x),
        "top": _px(element.position.y),
        "font-size": style.font_size,
        "font-weight": style.font_weight,
        "color": style.color,
        "background-color": style.background_color,
        "text-align": style.text_align,
        "padding": style.padding,
        "margin": style.margin,
        "border-radius": style.border_radius,
        "border": style.border,
        "width": style.width,
        "height": style.height,
    })


def _table_view(table: TableData, bound: BoundContext, engine: SubstitutionEngine) -> dict:
    border = f"{table.style.border_width} solid {table.style.border_color}"
    return {
        "style": css({"width": "100%", "border-collapse": "collapse"}),
        "rows": [
            {
                "id": row.id,
                "cells": [
                    {
                        "style": css({
                            "border": border,
                            "padding": "8px",
                            "background-color": cell.style.background_color,
                            "color": cell.style.color,
                            "font-weight": cell.style.font_weight,
                            "text-align": cell.style.text_align,
                        }),
                        "body": engine.substitute(cell.content, bound, escape=True),
                    }
                    for cell in row.cells
                ],
            }
            for row in table.rows
        ],
    }


def _element_view(element, bound: BoundContext, engine: SubstitutionEngine) -> dict:
    view = {"id": element.id, "kind": element.kind, "style": _element_style(element)}
    if isinstance(element, ImageElement):
        view["src"] = element.content if element.has_embedded_image else None
        view["image_style"] = css({
            "width": "100%",
            "height": "100%",
            "object-fit": "cover",
            "border-radius": element.style.border_radius,
            "display": "block",
        })
    elif isinstance(element, TableElement):
        if element.is_bound:
            view["body"] = engine.substitute(element.content, bound, escape=True)
        else:
            view["table"] = _table_view(element.content, bound, engine)
    elif element.kind == "line":
        view["rule_style"] = css({
            "border": "none",
            "border-top": f"1px solid {element.style.color}",
            "width": "100%",
            "margin": "0",
        })
    elif element.kind in ("text", "variable"):
        view["body"] = engine.substitute(element.content, bound, escape=True)
    return view


def _page_view(page: Page, bound: BoundContext, engine: SubstitutionEngine) -> dict:
    return {
        "id": page.id,
        "style": _page_style(page.config),
        "elements": [_element_view(element, bound, engine) for element in page.elements],
    }


def error_page(message: str) -> Markup:
    return Markup(jinja_env.get_template("render_error.html").render(message=message))


def render(template: TemplateSource, context: ContextSource = None, *, engine: Optional[SubstitutionEngine] = None) -> Markup:
    """
    Render every page of `template` with `context` merged in.

    `template` may be a Template or any stored record, legacy shapes included.
    Any failure yields a single error page instead of partial output.
    """
    engine = engine or default_engine
    try:
        parsed = load_template(template)
        bound = engine.bind(context)
        pages = [_page_view(page, bound, engine) for page in parsed.pages]
        return Markup(jinja_env.get_template("document_pages.html").render(pages=pages))
    except Exception as e:
        logger.exception("Failed to render template")
        return error_page(str(e))


def _page_size(template: TemplateSource) -> str:
    try:
        config = load_template(template).pages[0].config
    except Exception:
        config = PageConfig.from_settings()
    height = _px(settings.PAGE_MIN_HEIGHT_PX) if _is_auto(config.height) else config.height
    return f"{config.width} {height}"


def render_document(
    template: TemplateSource,
    context: ContextSource = None,
    *,
    title: Optional[str] = None,
    engine: Optional[SubstitutionEngine] = None,
) -> str:
    """Full HTML document with print CSS, one template page per sheet."""
    body = render(template, context, engine=engine)
    if title is None:
        title = template.name if isinstance(template, Template) else "Proposta"
    return jinja_env.get_template("print_document.html").render(
        title=title or "Proposta",
        page_size=_page_size(template),
        body=body,
    )


async def render_pdf(
    template: TemplateSource,
    context: ContextSource = None,
    *,
    title: Optional[str] = None,
    engine: Optional[SubstitutionEngine] = None,
) -> bytes:
    html_content = render_document(template, context, title=title, engine=engine)
    loop = asyncio.get_event_loop()
    with ThreadPoolExecutor() as pool:
        pdf_bytes = await loop.run_in_executor(
            pool,
            lambda: HTML(string=html_content, base_url=str(TEMPLATE_DIR)).write_pdf()
        )
    return pdf_bytes
