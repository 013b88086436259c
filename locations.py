from fastapi import APIRouter, Depends, HTTPException, Request
from typing import List, Optional

from aggregator import LocationAggregator
from client import PokeApiClient
from config.logging_config import get_logger
from config.logging_decorator import log_decorator
from config.settings import Settings
from models import ResourceRef
from state import Failed, Loaded
from utils import build_location_view, filter_resources

logger = get_logger(__name__)

router = APIRouter()


def get_client(request: Request) -> PokeApiClient:
    return request.app.state.client


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def new_aggregator(
    client: PokeApiClient = Depends(get_client),
    settings: Settings = Depends(get_settings),
) -> LocationAggregator:
    # one aggregator per request, so concurrent requests never share state
    return LocationAggregator(
        client,
        dedupe_requests=settings.dedupe_pokemon_requests,
        list_limit=settings.list_limit,
    )


@router.get("/locations", response_model=List[ResourceRef])
@log_decorator("locations")
async def list_locations(
    search: Optional[str] = None,
    aggregator: LocationAggregator = Depends(new_aggregator),
):
    await aggregator.fetch_location_list()
    status = aggregator.state.list_status
    if not isinstance(status, Loaded):
        raise HTTPException(status_code=502, detail="Failed to load locations.")
    return filter_resources(status.data, search or "")


@router.get("/locations/{location}")
@log_decorator("locations")
async def read_location(
    location: str,
    aggregator: LocationAggregator = Depends(new_aggregator),
):
    url = aggregator.client.resource_url("location", location.lower())
    aggregator.load_location(url)
    try:
        await aggregator.wait_until_idle()
    finally:
        await aggregator.shutdown()

    snapshot = aggregator.state.snapshot()
    # once idle, anything but Loaded means the location task failed or died
    if not isinstance(snapshot.location_status, Loaded):
        reason = snapshot.location_status.detail if isinstance(snapshot.location_status, Failed) else "no result"
        logger.error(f"Location {location} could not be loaded: {reason}")
        raise HTTPException(status_code=502, detail="Failed to load location details.")
    return build_location_view(snapshot)
