from fastapi import APIRouter, Depends, HTTPException

from app.config import get_settings
from app.routers.utils.dependencies import get_prompt_loader
from app.schemas.operator import PromptRead, PromptUpdate
from app.services.prompt_loader import PromptLoader

router = APIRouter(
    prefix="/system",
    tags=["system"],
    responses={404: {"description": "Not found"}},
)


@router.get("/settings")
def get_system_settings() -> dict:
    """Return non-sensitive configuration for troubleshooting."""
    s = get_settings()
    database_driver = None
    try:
        database_driver = s.database_url_obj.get_backend_name()
    except ValueError:
        pass
    return {
        "app": {"name": s.app_name, "environment": s.environment, "log_level": s.log_level},
        "database": {"driver": database_driver, "pool_size": s.database_pool_size},
        "sessions": {
            "max_context_messages": s.max_context_messages,
            "session_timeout_seconds": s.session_timeout_seconds,
            "session_check_interval_seconds": s.session_check_interval_seconds,
        },
        "modes": {
            "sync_interval_seconds": s.mode_sync_interval_seconds,
            "prefer_cache": s.mode_sync_prefer_cache,
        },
        "llm": {"model": s.llm_model, "api_key_set": bool(s.litellm_api_key)},
        "telegram": {"enabled": s.telegram_enabled, "mode": s.telegram_mode},
    }


@router.get("/prompt", response_model=PromptRead)
def get_system_prompt(loader: PromptLoader = Depends(get_prompt_loader)) -> PromptRead:
    """Return the system prompt the AI responder currently uses."""
    return PromptRead(content=loader.load())


@router.put("/prompt", response_model=PromptRead)
def update_system_prompt(
    data: PromptUpdate,
    loader: PromptLoader = Depends(get_prompt_loader),
) -> PromptRead:
    if not loader.update(data.content):
        raise HTTPException(status_code=500, detail="Could not write prompt file")
    return PromptRead(content=loader.load())
