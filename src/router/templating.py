from datetime import datetime
from pathlib import Path

from fastapi.responses import HTMLResponse
from jinja2 import Environment, FileSystemLoader, select_autoescape

from core.config import settings

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

jinja_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html", "xml"]),
)


def fmt_datetime(value: datetime | None) -> str:
    if value is None:
        return ""
    return value.strftime("%Y-%m-%d %H:%M")


jinja_env.filters["datetime"] = fmt_datetime


def render(name: str, status_code: int = 200, **ctx) -> HTMLResponse:
    template = jinja_env.get_template(name)
    ctx.setdefault("title", settings.APP_NAME)
    ctx.setdefault("app_name", settings.APP_NAME)
    return HTMLResponse(template.render(**ctx), status_code=status_code)
