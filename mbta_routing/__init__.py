"""
MBTA Routing

This module provides trip planning and station proximity search on top of the
MBTA v3 API. It finds direct or single-transfer trips between two stops,
lists transfer points between routes, and ranks stations by distance.

Example:
    from mbta_routing import APIClient, RoutePlanner

    planner = RoutePlanner()
    plan = planner.plan_trip("place-harsq", "place-dwnxg", wheelchair_accessible=True)
    for leg in plan.legs:
        print(leg.instructions, leg.departure_time, leg.arrival_time)

    nearby = APIClient().find_nearby_stations(42.355, -71.060, radius_km=1.0, max_results=3)
"""

from .api_client import APIClient, haversine_distance
from .errors import (
    APIError,
    InvalidInputError,
    MBTAError,
    NetworkError,
    NoTripFoundError,
    NotFoundError,
    RateLimitError,
    RequestCancelledError,
    RequestTimeoutError,
    UnauthorizedError,
)
from .route_planner import RoutePlanner
from .stop import Stop
from .trip import TransferPoint, TripLeg, TripPlan

__all__ = [
    'APIClient', 'RoutePlanner', 'Stop', 'TripLeg', 'TripPlan', 'TransferPoint',
    'haversine_distance', 'MBTAError', 'APIError', 'NotFoundError', 'UnauthorizedError',
    'RateLimitError', 'NetworkError', 'RequestTimeoutError', 'RequestCancelledError',
    'NoTripFoundError', 'InvalidInputError',
]
