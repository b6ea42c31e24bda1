import logging
import threading
from typing import Dict, Set

from .stop import Stop

_STOP_FIELDS = "name,latitude,longitude,location_type,wheelchair_boarding,municipality,parent_station"


class MembershipResolver:
    """
    Resolves which routes serve a stop and which stops a route serves.

    Both lookups go through the schedules endpoint and read the ids the
    returned events reference. Results are memoised for the lifetime of the
    resolver; the planner builds a fresh one for every request, so nothing
    outlives a single call. Safe to share between the worker threads of that
    request.
    """

    def __init__(self, api_client, service_date=None, cancel_event=None):
        self.api_client = api_client
        self.service_date = service_date
        self.cancel_event = cancel_event
        self._routes_by_stop: Dict[str, Set[str]] = {}
        self._stops_by_route: Dict[str, Set[str]] = {}
        self._stops: Dict[str, Stop] = {}
        self._lock = threading.Lock()

    def _date_filter(self, params):
        if self.service_date is not None:
            if hasattr(self.service_date, "strftime"):
                params["filter[date]"] = self.service_date.strftime("%Y-%m-%d")
            else:
                params["filter[date]"] = str(self.service_date)
        return params

    def remember_stop(self, stop: Stop) -> None:
        with self._lock:
            self._stops.setdefault(stop.stop_id, stop)

    def routes_serving(self, stop_id: str) -> Set[str]:
        """Returns the ids of every route with a scheduled event at `stop_id`."""
        with self._lock:
            if stop_id in self._routes_by_stop:
                return set(self._routes_by_stop[stop_id])

        params = self._date_filter({
            "filter[stop]": stop_id,
            "include": "route",
            "fields[schedule]": "stop_sequence",
            "fields[route]": "long_name,short_name,type",
        })
        events, included = self.api_client.get_schedules(params, cancel_event=self.cancel_event)

        routes = {event.route_id for event in events if event.route_id}
        routes.update(included.routes.keys())
        logging.debug(f"Stop {stop_id} is served by routes {sorted(routes)}")

        with self._lock:
            self._routes_by_stop[stop_id] = routes
        return set(routes)

    def stops_serving(self, route_id: str) -> Set[str]:
        """
        Returns the ids of every stop `route_id` has a scheduled event at.

        Platforms are reported as their parent station when the included stop
        record names one, so two lines meeting at a station share its id.
        """
        with self._lock:
            if route_id in self._stops_by_route:
                return set(self._stops_by_route[route_id])

        params = self._date_filter({
            "filter[route]": route_id,
            "include": "stop",
            "fields[schedule]": "stop_sequence",
            "fields[stop]": _STOP_FIELDS,
        })
        events, included = self.api_client.get_schedules(params, cancel_event=self.cancel_event)

        stops = {included.station_id(event.stop_id) for event in events if event.stop_id}
        logging.debug(f"Route {route_id} serves {len(stops)} stops")

        with self._lock:
            for stop in included.stops.values():
                self._stops.setdefault(stop.stop_id, stop)
            self._stops_by_route[route_id] = stops
        return set(stops)

    def stop(self, stop_id: str) -> Stop:
        """Returns the Stop record for `stop_id`, fetching it when not yet seen."""
        with self._lock:
            stop = self._stops.get(stop_id)
        if stop is not None:
            return stop
        stop = self.api_client.get_stop(stop_id, cancel_event=self.cancel_event)
        self.remember_stop(stop)
        return stop
