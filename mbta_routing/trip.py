from datetime import timedelta
from typing import Any, Dict, List, Optional

from .resource import Relationships

TRANSFER_TYPE_RECOMMENDED = 0
TRANSFER_TYPE_TIMED = 1
TRANSFER_TYPE_MINIMUM = 2
TRANSFER_TYPE_NOT_POSSIBLE = 3

DEFAULT_MIN_TRANSFER_TIME = timedelta(minutes=3)


def _flag_enabled(value):
    # The API uses 0 = no info, 1 = yes, 2 = no; older payloads send booleans
    return value is True or value == 1


class Trip:
    def __init__(self, trip_id, headsign="", direction_id=None, wheelchair_accessible=0,
                 bikes_allowed=0, route_id=None, name=""):
        self.trip_id = trip_id
        self.headsign = headsign or ""
        self.direction_id = direction_id
        self.wheelchair_accessible = wheelchair_accessible
        self.bikes_allowed = bikes_allowed
        self.route_id = route_id
        self.name = name or ""

    @classmethod
    def from_resource(cls, resource):
        attrs = resource.get('attributes') or {}
        relationships = Relationships(resource.get('relationships'))
        return cls(
            trip_id=resource['id'],
            headsign=attrs.get('headsign'),
            direction_id=attrs.get('direction_id'),
            wheelchair_accessible=attrs.get('wheelchair_accessible', 0),
            bikes_allowed=attrs.get('bikes_allowed', 0),
            route_id=relationships.get('route'),
            name=attrs.get('name'),
        )

    def is_wheelchair_accessible(self):
        return _flag_enabled(self.wheelchair_accessible)

    def is_bike_allowed(self):
        return _flag_enabled(self.bikes_allowed)

    def __repr__(self):
        return f"Trip({self.trip_id}, {self.headsign}, route={self.route_id})"


class TripLeg:
    """
    One uninterrupted ride on a single trip between two stops.
    """

    def __init__(self, origin, destination, route_id, route_name, trip_id,
                 departure_time, arrival_time, distance=0.0, headsign="",
                 direction_id=None, is_accessible=False):
        self.origin = origin
        self.destination = destination
        self.route_id = route_id
        self.route_name = route_name
        self.trip_id = trip_id
        self.departure_time = departure_time
        self.arrival_time = arrival_time
        self.distance = distance
        self.headsign = headsign
        self.direction_id = direction_id
        self.is_accessible = is_accessible

    @property
    def duration(self) -> timedelta:
        return self.arrival_time - self.departure_time

    @property
    def instructions(self) -> str:
        if not self.headsign:
            return f"Board the {self.route_name}"
        return f"Board the {self.route_name} toward {self.headsign}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "origin": {"id": self.origin.stop_id, "name": self.origin.name},
            "destination": {"id": self.destination.stop_id, "name": self.destination.name},
            "route_id": self.route_id,
            "route_name": self.route_name,
            "trip_id": self.trip_id,
            "departure_time": self.departure_time.isoformat(),
            "arrival_time": self.arrival_time.isoformat(),
            "duration_minutes": self.duration.total_seconds() / 60,
            "distance_km": self.distance,
            "headsign": self.headsign,
            "direction_id": self.direction_id,
            "accessible": self.is_accessible,
            "instructions": self.instructions,
            "formatted_departure": self.departure_time.strftime("%I:%M %p"),
            "formatted_arrival": self.arrival_time.strftime("%I:%M %p"),
        }

    def __repr__(self):
        return (f"TripLeg({self.route_id}/{self.trip_id}: {self.origin.stop_id} "
                f"{self.departure_time.isoformat()} -> {self.destination.stop_id} "
                f"{self.arrival_time.isoformat()})")


class TripPlan:
    """
    An itinerary of one or two legs.

    Departure and arrival come from the first and last legs, so `duration`
    includes any wait at the transfer stop and can exceed the sum of the
    leg durations.
    """

    def __init__(self, origin, destination, legs: List[TripLeg]) -> None:
        if not legs:
            raise ValueError("a trip plan needs at least one leg")
        self.origin = origin
        self.destination = destination
        self.legs = list(legs)

    @property
    def departure_time(self):
        return self.legs[0].departure_time

    @property
    def arrival_time(self):
        return self.legs[-1].arrival_time

    @property
    def duration(self) -> timedelta:
        return self.arrival_time - self.departure_time

    @property
    def total_distance(self) -> float:
        return sum(leg.distance for leg in self.legs)

    @property
    def accessible_trip(self) -> bool:
        return all(leg.is_accessible for leg in self.legs)

    def to_dict(self) -> Dict[str, Any]:
        legs = []
        for i, leg in enumerate(self.legs):
            leg_dict = leg.to_dict()
            leg_dict["leg_number"] = i + 1
            legs.append(leg_dict)
        return {
            "origin": {"id": self.origin.stop_id, "name": self.origin.name},
            "destination": {"id": self.destination.stop_id, "name": self.destination.name},
            "departure_time": self.departure_time.isoformat(),
            "arrival_time": self.arrival_time.isoformat(),
            "duration_minutes": self.duration.total_seconds() / 60,
            "total_distance_km": self.total_distance,
            "accessible": self.accessible_trip,
            "legs": legs,
        }

    def __repr__(self):
        return f"TripPlan({self.origin.stop_id} -> {self.destination.stop_id}, {len(self.legs)} legs)"


class TransferPoint:
    def __init__(self, stop, from_route, to_route, transfer_type=TRANSFER_TYPE_RECOMMENDED,
                 min_transfer_time=DEFAULT_MIN_TRANSFER_TIME,
                 suggested_wait_time: Optional[timedelta] = None):
        self.stop = stop
        self.from_route = from_route
        self.to_route = to_route
        self.transfer_type = transfer_type
        self.min_transfer_time = min_transfer_time
        self.suggested_wait_time = suggested_wait_time

    def to_dict(self):
        transfer_dict = {
            "stop_id": self.stop.stop_id,
            "stop_name": self.stop.name,
            "from_route": self.from_route,
            "to_route": self.to_route,
            "transfer_type": self.transfer_type,
            "min_transfer_time": self.min_transfer_time.total_seconds() / 60,
            "municipality": self.stop.municipality,
            "latitude": self.stop.lat,
            "longitude": self.stop.lon,
            "wheelchair_accessible": self.stop.is_accessible(),
        }
        if self.suggested_wait_time:
            transfer_dict["suggested_wait_time"] = self.suggested_wait_time.total_seconds() / 60
        return transfer_dict

    def __repr__(self):
        return f"TransferPoint({self.stop.stop_id}, {self.from_route} -> {self.to_route})"
