"""Duration suggestion API endpoints."""
import logging
from typing import Any, Optional

from fastapi import APIRouter, Header, HTTPException

from slidetiming.core.errors import UnknownOwnerError, ValidationError
from slidetiming.models.suggestion import DurationSuggestionRequest
from slidetiming.services import get_duration_suggestion_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["suggestions"])


@router.post("/presentations/suggestions/duration")
async def suggest_duration(
    request: DurationSuggestionRequest,
    x_owner_id: Optional[str] = Header(default=None),
) -> dict[str, Any]:
    """
    Suggest a duration for a slide from the caller's similar, timed slides.

    The caller is identified by the X-Owner-Id header, set by the
    authenticating proxy in front of this service. Only that owner's
    history is searched.
    """
    if not x_owner_id or not x_owner_id.strip():
        raise HTTPException(status_code=401, detail="Unauthorized")

    service = get_duration_suggestion_service()
    try:
        suggestion = service.suggest(x_owner_id, request.title, request.content)
    except UnknownOwnerError:
        raise HTTPException(status_code=403, detail="Unknown owner")
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if suggestion is None:
        return {
            "success": True,
            "message": "No similar slides found",
        }

    return {
        "success": True,
        "suggestion": suggestion.to_response(),
    }
