from typing import Any, Dict, List, Optional

from .resource import Relationships, parse_datetime
from .route import Route
from .stop import Stop
from .trip import Trip

PICKUP_DROP_OFF_REGULAR = 0
PICKUP_DROP_OFF_NOT_AVAILABLE = 1
PICKUP_DROP_OFF_PHONE_AGENCY = 2
PICKUP_DROP_OFF_COORDINATE_WITH_DRIVER = 3


class ScheduleEvent:
    """
    A scheduled arrival/departure of one trip at one stop.
    """

    def __init__(self, schedule_id, trip_id, stop_id, stop_sequence, arrival_time=None,
                 departure_time=None, route_id=None, pickup_type=PICKUP_DROP_OFF_REGULAR,
                 drop_off_type=PICKUP_DROP_OFF_REGULAR, timepoint=False):
        self.schedule_id = schedule_id
        self.trip_id = trip_id
        self.stop_id = stop_id
        self.route_id = route_id
        self.stop_sequence = stop_sequence
        self.arrival_time = arrival_time
        self.departure_time = departure_time
        self.pickup_type = pickup_type
        self.drop_off_type = drop_off_type
        self.timepoint = timepoint

    @classmethod
    def from_resource(cls, resource):
        attrs = resource.get('attributes') or {}
        relationships = Relationships(resource.get('relationships'))
        return cls(
            schedule_id=resource.get('id'),
            trip_id=relationships.get('trip'),
            stop_id=relationships.get('stop'),
            route_id=relationships.get('route'),
            stop_sequence=attrs.get('stop_sequence'),
            arrival_time=attrs.get('arrival_time'),
            departure_time=attrs.get('departure_time'),
            pickup_type=attrs.get('pickup_type') or PICKUP_DROP_OFF_REGULAR,
            drop_off_type=attrs.get('drop_off_type') or PICKUP_DROP_OFF_REGULAR,
            timepoint=bool(attrs.get('timepoint')),
        )

    def parsed_departure(self):
        """Departure as an aware datetime, falling back to the arrival time."""
        return parse_datetime(self.departure_time) or parse_datetime(self.arrival_time)

    def parsed_arrival(self):
        """Arrival as an aware datetime, falling back to the departure time."""
        return parse_datetime(self.arrival_time) or parse_datetime(self.departure_time)

    def is_pickup_available(self):
        return self.pickup_type == PICKUP_DROP_OFF_REGULAR

    def is_drop_off_available(self):
        return self.drop_off_type == PICKUP_DROP_OFF_REGULAR

    def __repr__(self):
        return f"ScheduleEvent(trip={self.trip_id}, stop={self.stop_id}, seq={self.stop_sequence})"


class IncludedEntities:
    """Related resources sideloaded with a schedule response, indexed by id."""

    def __init__(self, trips=None, routes=None, stops=None):
        self.trips: Dict[str, Trip] = trips or {}
        self.routes: Dict[str, Route] = routes or {}
        self.stops: Dict[str, Stop] = stops or {}

    @classmethod
    def from_payload(cls, included: Optional[List[Dict[str, Any]]]):
        entities = cls()
        for resource in included or []:
            kind = resource.get('type')
            if not resource.get('id'):
                continue
            if kind == 'trip':
                entities.trips[resource['id']] = Trip.from_resource(resource)
            elif kind == 'route':
                entities.routes[resource['id']] = Route.from_resource(resource)
            elif kind == 'stop':
                entities.stops[resource['id']] = Stop.from_resource(resource)
        return entities

    def station_id(self, stop_id):
        """Returns the parent station of `stop_id` when one is known, else `stop_id` itself."""
        stop = self.stops.get(stop_id)
        if stop is not None and stop.parent_station_id:
            return stop.parent_station_id
        return stop_id
