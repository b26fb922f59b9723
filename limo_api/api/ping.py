from datetime import datetime, timezone
from fastapi import APIRouter, Request

from limo_api.schemas.ping import PingOut

router = APIRouter(prefix="/api", tags=["monitoring"])


@router.get("/ping", response_model=PingOut)
async def ping(request: Request):
    return PingOut(
        at=datetime.now(timezone.utc),
        maps_configured=request.app.state.settings.maps_configured,
    )
