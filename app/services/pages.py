"""Bundled static page with {{KEY}} placeholders."""

import re
from pathlib import Path
from typing import Mapping

from app.core.config import Settings

STATIC_DIR = Path(__file__).resolve().parent.parent / "static"

_PLACEHOLDER = re.compile(r"{{([^}]+)}}")


def get_static_file(name: str) -> str:
    return (STATIC_DIR / name).read_text(encoding="utf-8")


def interpolate(template: str, values: Mapping[str, str | None]) -> str:
    """Replace every {{KEY}} with values[KEY]; unknown keys and None render empty."""
    return _PLACEHOLDER.sub(lambda m: values.get(m.group(1)) or "", template)


def render_index(settings: Settings) -> str:
    return interpolate(
        get_static_file("index.html"),
        {
            "APP_ENDPOINT": settings.endpoint,
            "PROJECT_ID": settings.project_id,
            "FUNCTION_ID": settings.function_id,
            "DATABASE_ID": settings.database_id,
            "COLLECTION_ID": settings.collection_id,
        },
    )
