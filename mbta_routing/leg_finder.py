"""
Picks a scheduled trip that serves two stops in order.

Candidate legs are produced lazily, in the order the schedule events were
returned, and handed to a selector. The default selector takes the first
viable trip; the others scan every candidate and rank them.
"""

import logging
from typing import Callable, Dict, Iterable, Optional

from .api_client import haversine_distance
from .schedule import IncludedEntities
from .stop import Stop
from .trip import TripLeg

LegSelector = Callable[[Iterable[TripLeg]], Optional[TripLeg]]


def first_match(candidates):
    return next(iter(candidates), None)


def earliest_departure(candidates):
    return min(candidates, key=lambda leg: leg.departure_time, default=None)


def earliest_arrival(candidates):
    return min(candidates, key=lambda leg: leg.arrival_time, default=None)


def shortest_duration(candidates):
    return min(candidates, key=lambda leg: leg.duration, default=None)


SELECTORS: Dict[str, LegSelector] = {
    "first": first_match,
    "earliest_departure": earliest_departure,
    "earliest_arrival": earliest_arrival,
    "shortest_duration": shortest_duration,
}


def _index_trips(events, included, wanted):
    # trip_id -> stop key -> event; dicts keep the order trips were first seen
    trips = {}
    for event in events:
        if not event.trip_id or not event.stop_id:
            continue
        key = event.stop_id
        if key not in wanted:
            key = included.station_id(event.stop_id)
        trips.setdefault(event.trip_id, {})[key] = event
    return trips


def _resolve_stop(stop_id, known_stops, included):
    if stop_id in known_stops:
        return known_stops[stop_id]
    if stop_id in included.stops:
        return included.stops[stop_id]
    return Stop.placeholder(stop_id)


def candidate_legs(events, included, origin_id, destination_id, require_accessible=False,
                   depart_after=None, known_stops=None):
    """
    Yields a TripLeg for every trip that visits `origin_id` and later `destination_id`.
    """
    included = included or IncludedEntities()
    known_stops = known_stops or {}
    trips = _index_trips(events, included, {origin_id, destination_id})

    for trip_id, stops in trips.items():
        origin_event = stops.get(origin_id)
        dest_event = stops.get(destination_id)
        if origin_event is None or dest_event is None:
            continue
        if origin_event.stop_sequence is None or dest_event.stop_sequence is None:
            continue
        if dest_event.stop_sequence <= origin_event.stop_sequence:
            continue

        trip = included.trips.get(trip_id)
        accessible = trip is not None and trip.is_wheelchair_accessible()
        if require_accessible and not accessible:
            logging.debug(f"Skipping trip {trip_id}: not wheelchair accessible")
            continue

        departure = origin_event.parsed_departure()
        arrival = dest_event.parsed_arrival()
        if departure is None or arrival is None:
            logging.debug(f"Skipping trip {trip_id}: unparseable times")
            continue
        if depart_after is not None and departure < depart_after:
            continue

        route_id = (trip.route_id if trip else None) or origin_event.route_id
        route = included.routes.get(route_id)
        origin = _resolve_stop(origin_id, known_stops, included)
        destination = _resolve_stop(destination_id, known_stops, included)

        yield TripLeg(
            origin=origin,
            destination=destination,
            route_id=route_id,
            route_name=route.display_name if route else (route_id or ""),
            trip_id=trip_id,
            departure_time=departure,
            arrival_time=arrival,
            distance=haversine_distance(origin.lat, origin.lon, destination.lat, destination.lon),
            headsign=trip.headsign if trip else "",
            direction_id=trip.direction_id if trip else None,
            is_accessible=accessible,
        )


def find_leg(events, included, origin_id, destination_id, require_accessible=False,
             depart_after=None, known_stops=None, selector: Optional[LegSelector] = None):
    """
    Returns the leg chosen by `selector` (first viable trip by default), or None.

    Args:
        events: ScheduleEvents, in the order the API returned them
        included: IncludedEntities from the same response
        origin_id, destination_id: stop ids; a platform whose parent station
            is one of these counts as that station
        require_accessible: reject trips not flagged wheelchair accessible
        depart_after: reject legs leaving the origin before this aware datetime
        known_stops: Stop records to prefer over included ones, keyed by id
    """
    selector = selector or first_match
    candidates = candidate_legs(events, included, origin_id, destination_id,
                                require_accessible=require_accessible,
                                depart_after=depart_after, known_stops=known_stops)
    leg = selector(candidates)
    if leg is None:
        logging.debug(f"No leg found from {origin_id} to {destination_id}")
    return leg
