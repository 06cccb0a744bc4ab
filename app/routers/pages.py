from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from app.core.config import Settings
from app.deps import get_app_settings
from app.services import pages as pages_service

router = APIRouter()


@router.get("/{path:path}", response_class=HTMLResponse)
async def index(path: str, settings: Settings = Depends(get_app_settings)):
    """Every GET serves the same page, whatever the path."""
    return HTMLResponse(pages_service.render_index(settings))
