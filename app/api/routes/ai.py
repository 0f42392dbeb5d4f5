"""
AI generation endpoint (metered: ai_generation).
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db, get_openai_client, get_settings, get_usage_cache
from app.core.config import Settings
from app.core.plan_limits import ActionKind
from app.core.quota_guard import EntitledRequest, require_entitlement
from app.db.models.ai_generation import AIGeneration
from app.schemas.ai import AIGenerateRequest, AIGenerateResponse
from app.schemas.usage import QUOTA_RESPONSES
from app.services.ai_service import generate_content
from app.services.usage_cache import UsageCache
from app.services.usage_recorder import try_record_usage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["AI"])


@router.post("/generate", response_model=AIGenerateResponse, responses=QUOTA_RESPONSES)
def generate(
    request: AIGenerateRequest,
    entitled: EntitledRequest = Depends(require_entitlement(ActionKind.AI_GENERATION)),
    db: Session = Depends(get_db),
    cache: UsageCache = Depends(get_usage_cache),
    settings: Settings = Depends(get_settings),
    client=Depends(get_openai_client),
):
    """Generate titles, hooks, scripts, descriptions or hashtags for a topic."""
    user = entitled.user
    generated = generate_content(
        client,
        settings.openai_model,
        request.prompt,
        request.generation_type,
        platform=request.platform,
        temperature=request.temperature,
        max_tokens=request.max_tokens,
    )

    generation = AIGeneration(
        user_id=user.id,
        generation_type=generated.generation_type,
        prompt=request.prompt,
        response=generated.content,
        model=generated.model,
        tokens_used=generated.tokens_used,
    )
    db.add(generation)
    db.commit()
    db.refresh(generation)

    recorded = try_record_usage(db, cache, user.id, ActionKind.AI_GENERATION)
    logger.info(f"AI generation stored: id={generation.id}, user_id={user.id}, tokens={generated.tokens_used}")

    return {
        "generation_id": generation.id,
        "content": generated.content,
        "tokens_used": generated.tokens_used,
        "model": generated.model,
        "generation_type": generated.generation_type,
        "usage_recorded": recorded is not None,
    }
