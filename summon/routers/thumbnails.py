# summon/routers/thumbnails.py
# Responsibility: Handles the thumbnail lookup endpoint. Validates input and maps pipeline errors to HTTP statuses.

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from summon.errors import EmptySourceError, FetchError, UnsupportedTypeError
from summon.services.summoner import Summoner, get_summoner

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/thumbnails",
    tags=["Thumbnails"]
)

# --- Pydantic Models ---
class ThumbnailResponse(BaseModel):
    source: str
    type: str
    thumbnails: List[str]

# --- Endpoints ---
@router.get("", response_model=ThumbnailResponse)
async def thumbnails_endpoint(
    url: str = Query(..., min_length=1, description="Page or image URL (scheme optional)"),
    summoner: Summoner = Depends(get_summoner)
):
    """
    Returns the best thumbnail candidates for a URL, best first.
    """
    try:
        result = await summoner.fetch(url)
    except (FetchError, EmptySourceError) as e:
        logger.error("[API] Could not read %s: %s", url, e)
        raise HTTPException(status_code=502, detail=str(e))
    except UnsupportedTypeError as e:
        logger.error("[API] Handler missing for %s: %s", url, e)
        raise HTTPException(status_code=500, detail="Internal server error")

    return ThumbnailResponse(**result)
