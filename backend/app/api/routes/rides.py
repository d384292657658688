"""
Ride endpoints: post a ride, search rides by destination and date.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.ride import RideCreate, RideSummary
from app.services.ride_service import post_ride, search_rides
from app.services.cache_service import (
    get_cached_search,
    get_search_generation,
    invalidate_search_cache,
    set_cached_search,
)
from app.core.exceptions import RideShareError
from app.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["Rides"])


@router.post("/post-ride")
async def post_ride_endpoint(ride_data: RideCreate, db: AsyncSession = Depends(get_db)):
    """Offer a ride with a number of free seats."""
    ride = await post_ride(db, ride_data)
    await invalidate_search_cache()
    return {"success": True, "message": "Ride posted successfully", "rideId": ride.ride_id}


@router.get("/search-rides")
async def search_rides_endpoint(
    destination: Optional[str] = Query(None),
    ride_date: Optional[date] = Query(None, alias="date"),
    db: AsyncSession = Depends(get_db),
):
    """
    Rides on a date whose destination contains the query, with seats left.
    Results are cached in Redis briefly; the cache is dropped whenever seats change.
    """
    generation = None
    if ride_date is not None:
        cached = await get_cached_search(destination, ride_date)
        if cached is not None:
            logger.info("ride_search_cache_hit", date=str(ride_date))
            return {"rides": cached}
        # Read before the query so a concurrent invalidation blocks the write-back
        generation = await get_search_generation()

    try:
        rides = await search_rides(db, destination, ride_date)
    except RideShareError as e:
        return {"rides": [], "error": e.message}

    payload = [RideSummary.model_validate(r).model_dump(mode="json") for r in rides]
    await set_cached_search(destination, ride_date, payload, generation)
    return {"rides": payload}
