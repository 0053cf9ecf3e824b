from fastapi import APIRouter, Depends

from convenly.api.deps import get_event_service
from convenly.schemas.tag import TagResponse
from convenly.services.event_service import EventService

router = APIRouter(prefix="/tags", tags=["Tags"])


@router.get("/", response_model=list[TagResponse])
async def list_tags(event_service: EventService = Depends(get_event_service)):
    return await event_service.list_tags()
