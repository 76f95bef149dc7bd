# backend/composer/services/legacy.py
"""
Load-boundary adapter for stored template records.

Records written by older versions of the editor come in several shapes:
flat single-page records (``elementos``/``elements`` plus ``configuracoes``),
Portuguese-keyed multi-page records (``paginas``) and records wrapped in the
storage envelope (``{"template": {...}, "categoria": ...}``). They are all
normalised to the current ``pages[]`` shape before validation, so nothing
past this module ever sees a legacy key.
"""
import copy
import logging
from typing import Any, Dict, List, Optional

from composer.schemas.element import TOKEN_ONLY_PATTERN
from composer.schemas.primitives import PageConfig, new_id
from composer.schemas.template import Template

logger = logging.getLogger(__name__)

LEGACY_PAGE_ID = "pagina_1"
LEGACY_PAGE_NAME = "Página 1"

KIND_ALIASES = {
    "texto": "text",
    "variavel": "variable",
    "imagem": "image",
    "tabela": "table",
    "linha": "line",
    "espacador": "spacer",
}
KNOWN_KINDS = {"text", "variable", "image", "table", "line", "spacer"}
TEXT_ALIGNS = {"left", "center", "right", "justify"}

TEMPLATE_KEYS = {
    "nome": "name",
    "descricao": "description",
    "categoria": "category",
    "paginas": "pages",
    "configuracoes": "defaultConfig",
    "configuracaoPadrao": "defaultConfig",
    "config": "defaultConfig",
    "default_config": "defaultConfig",
}
PAGE_KEYS = {
    "nome": "name",
    "elementos": "elements",
    "configuracoes": "config",
}
CONFIG_KEYS = {
    "largura": "width",
    "altura": "height",
    "corFundo": "backgroundColor",
    "imagemFundo": "backgroundImage",
    "fonte": "fontFamily",
    "background_color": "backgroundColor",
    "background_image": "backgroundImage",
    "font_family": "fontFamily",
}
ELEMENT_KEYS = {
    "tipo": "kind",
    "type": "kind",
    "conteudo": "content",
    "estilo": "style",
    "posicao": "position",
    "bloqueado": "locked",
}
TABLE_KEYS = {
    "linhas": "rows",
    "celulas": "cells",
    "estilo": "style",
    "conteudo": "content",
}


def _rename(data: Dict[str, Any], mapping: Dict[str, str]) -> Dict[str, Any]:
    """Copy of `data` with aliased keys renamed; a key already in its current form wins. None values are dropped."""
    renamed: Dict[str, Any] = {}
    for key, value in data.items():
        if value is None:
            continue
        target = mapping.get(key, key)
        if target in renamed and key != target:
            continue
        renamed[target] = value
    return renamed


def _clean_style(style: Any) -> Dict[str, Any]:
    if not isinstance(style, dict):
        return {}
    cleaned = {key: value for key, value in style.items() if value is not None}
    for key in ("textAlign", "text_align"):
        if key in cleaned and cleaned[key] not in TEXT_ALIGNS:
            del cleaned[key]
    return cleaned


def _normalise_config(config: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(config, dict):
        return None
    return _rename(config, CONFIG_KEYS)


def _normalise_table(content: Any) -> Any:
    if isinstance(content, str):
        if TOKEN_ONLY_PATTERN.match(content.strip()):
            return content.strip()
        logger.warning("Table element held free text instead of table data; replacing it with an empty table")
        return {}
    if not isinstance(content, dict):
        return {}
    table = _rename(content, TABLE_KEYS)
    rows = []
    for raw_row in table.get("rows") or []:
        if not isinstance(raw_row, dict):
            continue
        row = _rename(raw_row, TABLE_KEYS)
        cells = []
        for raw_cell in row.get("cells") or []:
            if not isinstance(raw_cell, dict):
                continue
            cell = _rename(raw_cell, TABLE_KEYS)
            cell["content"] = "" if cell.get("content") is None else str(cell["content"])
            cell["style"] = _clean_style(cell.get("style"))
            cells.append(cell)
        row["cells"] = cells
        rows.append(row)

    # Pad ragged rows so the matrix is rectangular again
    width = max((len(row["cells"]) for row in rows), default=0)
    for row in rows:
        row["cells"].extend({"content": ""} for _ in range(width - len(row["cells"])))
    table["rows"] = rows
    table["style"] = table.get("style") if isinstance(table.get("style"), dict) else {}
    return table


def _normalise_element(raw: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(raw, dict):
        return None
    element = _rename(raw, ELEMENT_KEYS)
    kind = KIND_ALIASES.get(element.get("kind"), element.get("kind"))
    if kind not in KNOWN_KINDS:
        logger.warning("Skipping element %s with unknown kind %r", element.get("id"), element.get("kind"))
        return None
    element["kind"] = kind
    element["style"] = _clean_style(element.get("style"))
    if not isinstance(element.get("position"), dict):
        element["position"] = {}
    if kind == "table":
        element["content"] = _normalise_table(element.get("content"))
    else:
        content = element.get("content")
        element["content"] = "" if content is None else str(content)
    return element


def _normalise_elements(raw_elements: Any) -> List[Dict[str, Any]]:
    elements = []
    seen_ids = set()
    for raw in raw_elements if isinstance(raw_elements, list) else []:
        element = _normalise_element(raw)
        if element is None:
            continue
        if not element.get("id") or element["id"] in seen_ids:
            element["id"] = new_id()
        seen_ids.add(element["id"])
        elements.append(element)
    return elements


def _normalise_page(raw: Any, index: int, fallback_config: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not isinstance(raw, dict):
        return None
    page = _rename(raw, PAGE_KEYS)
    page.setdefault("id", f"pagina_{index + 1}")
    page.setdefault("name", f"Página {index + 1}")
    page["elements"] = _normalise_elements(page.get("elements"))
    config = _normalise_config(page.get("config")) or copy.deepcopy(fallback_config)
    if config is None:
        page.pop("config", None)
    else:
        page["config"] = config
    return page


def _unwrap(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Strip storage envelopes, carrying their metadata into the template body."""
    body = raw
    envelopes = []
    while True:
        if isinstance(body.get("template"), dict):
            inner_key = "template"
        elif isinstance(body.get("conteudo"), dict) and isinstance(body["conteudo"].get("template"), dict):
            inner_key = "conteudo"
        else:
            break
        envelopes.append(body)
        body = body[inner_key]

    merged = dict(body)
    for envelope in envelopes:
        for key in ("nome", "name", "descricao", "description", "categoria", "category"):
            if envelope.get(key) and not merged.get(TEMPLATE_KEYS.get(key, key)) and not merged.get(key):
                merged[key] = envelope[key]
    return merged


def normalise_record(raw: Dict[str, Any]) -> Dict[str, Any]:
    if not isinstance(raw, dict):
        raise ValueError("A template record must be a JSON object")
    data = _rename(_unwrap(raw), TEMPLATE_KEYS)
    default_config = _normalise_config(data.get("defaultConfig"))

    if isinstance(data.get("pages"), list):
        pages = [
            page for page in (
                _normalise_page(raw_page, index, default_config) for index, raw_page in enumerate(data["pages"])
            ) if page is not None
        ]
    else:
        flat_elements = data.get("elementos", data.get("elements"))
        logger.info("Migrating single-page template record to the pages layout")
        pages = [{
            "id": LEGACY_PAGE_ID,
            "name": LEGACY_PAGE_NAME,
            "elements": _normalise_elements(flat_elements),
            "config": copy.deepcopy(default_config) if default_config else PageConfig.from_settings().model_dump(by_alias=True),
        }]

    if not pages:
        pages = [{"id": LEGACY_PAGE_ID, "name": LEGACY_PAGE_NAME, "elements": []}]

    record = {
        "name": str(data.get("name") or ""),
        "description": str(data.get("description") or ""),
        "category": str(data.get("category") or ""),
        "pages": pages,
    }
    if default_config:
        record["defaultConfig"] = default_config
    return record


def load_template(raw: Any) -> Template:
    """Parse any stored template record, legacy or current, into a Template."""
    if isinstance(raw, Template):
        return raw
    return Template.model_validate(normalise_record(raw))
