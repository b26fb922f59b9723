"""Trip quote endpoint"""
from typing import Optional
from fastapi import APIRouter, Depends, Request

from limo_api.core.rate_limit import rate_limit
from limo_api.core.security import require_api_key
from limo_api.schemas.quote import QuoteRequest, QuoteResponse
from limo_api.services.quotes import QuoteResolver

router = APIRouter(prefix="/api", tags=["quotes"])


def get_resolver(request: Request) -> QuoteResolver:
    return request.app.state.resolver


@router.post(
    "/quote",
    response_model=QuoteResponse,
    dependencies=[Depends(require_api_key), Depends(rate_limit("quote"))],
)
async def create_quote(
    payload: Optional[QuoteRequest] = None,
    resolver: QuoteResolver = Depends(get_resolver),
):
    quote = await resolver.quote(payload)
    return QuoteResponse(quote=quote)
