"""
Dashboard Data Router
=====================

What the dashboard polls.

Endpoints:
  GET /data/latest   - Newest reading per partition
  GET /data/history  - Recent readings, outdoor block then indoor block
"""

from fastapi import APIRouter, Depends, HTTPException, Request

from ingest_api.models import LatestResponse
from ingest_api.services import ViewAggregator

router = APIRouter(prefix="/data", tags=["data"])


def get_view_aggregator(request: Request) -> ViewAggregator:
    """Get the view aggregator the app built at startup."""
    views = getattr(request.app.state, "views", None)
    if views is None:
        raise HTTPException(status_code=500, detail="Server not fully started yet")
    return views


@router.get("/latest", response_model=LatestResponse)
async def get_latest(views: ViewAggregator = Depends(get_view_aggregator)):
    """
    Newest reading from each partition.

    A partition with no readings yet comes back as null.
    """
    return await views.latest()


@router.get("/history")
async def get_history(views: ViewAggregator = Depends(get_view_aggregator)):
    """
    Recent readings from both partitions (20 each by default).

    Every entry has a "partition" field. The list is ALL outdoor readings
    (newest first) followed by ALL indoor readings (newest first) - it is
    not one merged timeline. Interleave on the client if you need that.
    """
    return await views.history()
