# backend/composer/services/markup.py
from pathlib import Path
from typing import Dict, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
jinja_env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(['html', 'xml']),
    trim_blocks=True,
    lstrip_blocks=True,
)


def css(declarations: Dict[str, Optional[object]]) -> str:
    """Inline style string; None values are skipped and values that would break out of the declaration are dropped."""
    parts = []
    for prop, value in declarations.items():
        if value is None:
            continue
        text = str(value).strip()
        if not text or any(ch in text for ch in '"<>'):
            continue
        if ";" in text and not text.startswith("url("):
            continue
        parts.append(f"{prop}:{text}")
    return ";".join(parts)
