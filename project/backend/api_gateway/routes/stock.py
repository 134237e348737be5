"""
Stock video search endpoint.
"""

from typing import List

from fastapi import APIRouter, Depends, Query

from api_gateway.dependencies import error_response, get_stock_footage_client
from modules.stock_footage.client import StockFootageClient
from shared.errors import StockFootageError

router = APIRouter()


@router.get("/stock-videos")
async def stock_videos(
    terms: List[str] = Query(default=[]),
    client: StockFootageClient = Depends(get_stock_footage_client)
):
    """One downloadable clip URL per search term."""
    terms = [term.strip() for term in terms if term.strip()]
    if not terms:
        return error_response(400, "Select at least one search term")

    try:
        urls = await client.find_video_urls(terms)
    except StockFootageError as e:
        return error_response(e.status_code, str(e))

    return {"videos": urls}
