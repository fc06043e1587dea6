"""
Jinja2 page rendering.

Rendering is synchronous, so it runs in the threadpool to keep the
event loop free.
"""

from pathlib import Path
from typing import Optional

from fastapi import Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse
from jinja2 import Environment, FileSystemLoader, select_autoescape

templates_path = Path(__file__).parent / "templates"
jinja_env = Environment(
    loader=FileSystemLoader(templates_path),
    autoescape=select_autoescape(["html"]),
)


def _render_template_sync(template_name: str, context: dict) -> str:
    template = jinja_env.get_template(template_name)
    return template.render(**context)


async def render_template_async(template_name: str, context: dict) -> str:
    return await run_in_threadpool(_render_template_sync, template_name, context)


def _base_context(request: Request) -> dict:
    session = getattr(request.state, "session", None)
    services = getattr(request.app.state, "services", None)
    settings = services.settings if services is not None else None
    return {
        "request": request,
        "current_user": session.identity if session is not None else None,
        "turnstile_site_key": settings.TURNSTILE_SITE_KEY if settings else None,
        "human_check_enabled": settings.human_check_enabled if settings else False,
    }


async def render_page(
    request: Request,
    template_name: str,
    context: Optional[dict] = None,
    status_code: int = 200,
) -> HTMLResponse:
    """
    Render a page with the current user and bot-check settings in scope.

    Args:
        request: Current request
        template_name: Template path under storefront/templates
        context: Page-specific variables
        status_code: HTTP status of the response

    Returns:
        HTMLResponse
    """
    full_context = _base_context(request)
    full_context.update(context or {})
    content = await render_template_async(template_name, full_context)
    return HTMLResponse(content=content, status_code=status_code)
