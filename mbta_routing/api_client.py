import datetime
import logging
import math

import pytz
import requests

from .config import Config
from .errors import (
    InvalidInputError,
    NetworkError,
    RequestCancelledError,
    RequestTimeoutError,
    parse_api_error,
)
from .route import Route
from .schedule import IncludedEntities, ScheduleEvent
from .stop import LOCATION_TYPE_STATION, Stop

EARTH_RADIUS_KM = 6371.0


def haversine_distance(lat1, lon1, lat2, lon2):
    """
    Calculate the great-circle distance between two points on Earth.
    """
    if lat1 == lat2 and lon1 == lon2:
        return 0.0
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)
    a = math.sin(delta_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return abs(EARTH_RADIUS_KM * c)


def validate_coordinates(lat, lon):
    """
    Raises InvalidInputError unless (lat, lon) is a finite point on the globe.
    """
    try:
        lat = float(lat)
        lon = float(lon)
    except (TypeError, ValueError):
        raise InvalidInputError(f"Coordinates must be numbers, got ({lat!r}, {lon!r})")
    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise InvalidInputError(f"Coordinates must be finite, got ({lat}, {lon})")
    if not -90.0 <= lat <= 90.0:
        raise InvalidInputError(f"Latitude {lat} is outside [-90, 90]")
    if not -180.0 <= lon <= 180.0:
        raise InvalidInputError(f"Longitude {lon} is outside [-180, 180]")
    return lat, lon


def local_now():
    return datetime.datetime.now(pytz.timezone(Config.TIMEZONE))


def check_cancelled(cancel_event, what="Request"):
    """Raises RequestCancelledError once `cancel_event` has been set."""
    if cancel_event is not None and cancel_event.is_set():
        raise RequestCancelledError(f"{what} cancelled")


class APIClient:
    """
    Client for the MBTA v3 API.
    Handles stop, route and schedule lookups plus station proximity search.

    Each call goes through a plain `requests.get`, so one client can be shared
    between threads.
    """

    def __init__(self, api_key=None, base_url=None, timeout=None):
        """
        Initialize the API client. Arguments left as None fall back to Config.
        """
        self.api_key = api_key if api_key is not None else Config.MBTA_API_KEY
        self.base_url = (base_url or Config.MBTA_API_URL).rstrip('/')
        self.timeout = timeout if timeout is not None else Config.TIMEOUT_SECONDS

    def _headers(self):
        headers = {"accept": "application/vnd.api+json"}
        if self.api_key:
            headers["x-api-key"] = self.api_key
        return headers

    def _get(self, path: str, params=None, cancel_event=None):
        """
        Performs a GET request and returns the decoded JSON body.

        Raises an APIError subclass for HTTP errors and a NetworkError subclass
        for transport failures. A set `cancel_event` aborts before the request
        is sent, and again once the response arrives.
        """
        check_cancelled(cancel_event, f"Request to {path}")

        url = f"{self.base_url}{path}"
        logging.debug(f"GET {url} params={params}")
        try:
            response = requests.get(url, params=params, headers=self._headers(), timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise RequestTimeoutError(f"Request to {url} timed out after {self.timeout}s",
                                      timeout=self.timeout, cause=e)
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Error performing request to {url}: {e}", cause=e)

        # a response that lands after cancellation is discarded
        check_cancelled(cancel_event, f"Request to {path}")

        if response.status_code >= 400:
            logging.warning(f"MBTA API returned {response.status_code} for {path}")
            raise parse_api_error(response.status_code, response.text, response.headers)

        try:
            return response.json()
        except ValueError as e:
            raise NetworkError(f"Invalid JSON in response from {url}", cause=e)

    def get_stop(self, stop_id: str, cancel_event=None) -> Stop:
        """
        Fetches a single stop. Unknown ids raise NotFoundError.
        """
        data = self._get(f"/stops/{stop_id}", cancel_event=cancel_event)
        return Stop.from_resource(data["data"])

    def list_stops(self, filters=None, cancel_event=None):
        """
        Fetches stops matching `filters`, e.g. {"filter[location_type]": "1"}.
        """
        data = self._get("/stops", params=dict(filters or {}), cancel_event=cancel_event)
        stops = []
        for resource in data.get("data", []):
            try:
                stops.append(Stop.from_resource(resource))
            except (KeyError, TypeError, ValueError) as e:
                logging.error(f"Error parsing stop: {e}")
        return stops

    def get_route(self, route_id: str, cancel_event=None) -> Route:
        data = self._get(f"/routes/{route_id}", cancel_event=cancel_event)
        return Route.from_resource(data["data"])

    def get_schedules(self, params, cancel_event=None):
        """
        Fetches schedule events.

        Supported filters include filter[route], filter[stop] (comma-joined for
        several stops), filter[trip], filter[direction_id], filter[date]
        (YYYY-MM-DD), filter[min_time] and filter[max_time] (HH:MM), plus the
        usual include, sort, fields[...] and page[limit] parameters. Without a
        date filter the current service date is used.

        Returns a tuple of (events, included entities).
        """
        query = dict(params or {})
        if "filter[date]" not in query:
            query["filter[date]"] = local_now().strftime("%Y-%m-%d")

        data = self._get("/schedules", params=query, cancel_event=cancel_event)
        events = [ScheduleEvent.from_resource(resource) for resource in data.get("data", [])]
        included = IncludedEntities.from_payload(data.get("included"))
        logging.debug(f"Fetched {len(events)} schedule events")
        return events, included

    def find_nearby_stations(self, lat: float, lon: float, radius_km=1.0, max_results=5,
                             only_stations=True, wheelchair_accessible=False, cancel_event=None):
        """
        Returns (Stop, distance_km) pairs within `radius_km` of a point, closest first.

        Ties are broken by stop id. `max_results` only truncates when positive.
        The wheelchair filter runs after truncation, so it can return fewer than
        `max_results` stops even when more accessible ones exist further out.
        """
        lat, lon = validate_coordinates(lat, lon)
        if radius_km is None or radius_km < 0:
            raise InvalidInputError(f"Radius must be a non-negative number, got {radius_km!r}")

        filters = {}
        if only_stations:
            filters["filter[location_type]"] = str(LOCATION_TYPE_STATION)

        logging.info(f"Searching for stations near ({lat}, {lon}) within {radius_km} km")
        stops = self.list_stops(filters, cancel_event=cancel_event)

        nearby = []
        for stop in stops:
            distance = haversine_distance(lat, lon, stop.lat, stop.lon)
            if distance <= radius_km:
                nearby.append((stop, distance))

        nearby.sort(key=lambda pair: (pair[1], pair[0].stop_id))

        if max_results and max_results > 0:
            nearby = nearby[:max_results]

        if wheelchair_accessible:
            nearby = [(stop, distance) for stop, distance in nearby if stop.is_accessible()]

        logging.info(f"Found {len(nearby)} stations near ({lat}, {lon})")
        return nearby
