from pathlib import Path
from typing import Any, Optional
from fastapi import Request
from fastapi.templating import Jinja2Templates
from eventhub.core.config import settings
from eventhub.schemas import SessionUser

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.globals["app_name"] = settings.APP_NAME


def render(
    request: Request,
    template: str,
    user: Optional[SessionUser] = None,
    status_code: int = 200,
    **context: Any,
):
    """Render `template` inside the site layout with the standard fields."""
    context.setdefault("title", settings.APP_NAME)
    context.setdefault("error", None)
    return templates.TemplateResponse(
        request,
        template,
        {"user": user, **context},
        status_code=status_code,
    )
