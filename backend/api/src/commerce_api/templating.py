"""Jinja2 rendering for the HTML views served by the API."""

from pathlib import Path
from typing import Any

from fastapi.responses import HTMLResponse
from jinja2 import Environment, FileSystemLoader, select_autoescape

TEMPLATES_DIR = Path(__file__).parent / "templates"

env = Environment(
    loader=FileSystemLoader(TEMPLATES_DIR),
    autoescape=select_autoescape(["html"]),
)


def format_amount(amount_cents: int, currency: str = "usd") -> str:
    """Format minor units as a display amount, e.g. 2500 -> '25.00 USD'."""
    return f"{amount_cents / 100:.2f} {currency.upper()}"


env.filters["amount"] = format_amount


def render_template(name: str, status_code: int = 200, **ctx: Any) -> HTMLResponse:
    tpl = env.get_template(name)
    return HTMLResponse(tpl.render(**ctx), status_code=status_code)
