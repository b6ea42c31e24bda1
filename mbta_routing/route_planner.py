import datetime
import logging
from concurrent.futures import ThreadPoolExecutor
from functools import partial

import pytz

from .api_client import APIClient, check_cancelled, haversine_distance
from .config import Config
from .errors import InvalidInputError, MBTAError, NoTripFoundError, RequestCancelledError
from .leg_finder import candidate_legs, find_leg
from .membership import MembershipResolver
from .route import (
    ROUTE_TYPE_BUS,
    ROUTE_TYPE_COMMUTER_RAIL,
    ROUTE_TYPE_FERRY,
    ROUTE_TYPE_LIGHT_RAIL,
    ROUTE_TYPE_SUBWAY,
)
from .transfers import TransferPointFinder
from .trip import TripPlan

# Applied even when a transfer point asks for less
MIN_TRANSFER_FLOOR = datetime.timedelta(minutes=2)

LEG_PAGE_LIMIT = 20

LEG_SCHEDULE_FIELDS = "departure_time,arrival_time,stop_sequence,pickup_type,drop_off_type,timepoint"
LEG_STOP_FIELDS = "name,latitude,longitude,location_type,wheelchair_boarding,municipality,parent_station"

ROUTE_TYPE_SPEEDS_KMH = {
    ROUTE_TYPE_LIGHT_RAIL: 20,
    ROUTE_TYPE_SUBWAY: 30,
    ROUTE_TYPE_COMMUTER_RAIL: 40,
    ROUTE_TYPE_BUS: 15,
    ROUTE_TYPE_FERRY: 25,
}
DEFAULT_SPEED_KMH = 25


class TravelTimeEstimate:
    def __init__(self, origin, destination, distance_km, minutes, source):
        self.origin = origin
        self.destination = destination
        self.distance_km = distance_km
        self.minutes = minutes
        self.source = source

    def to_dict(self):
        return {
            "origin": {"id": self.origin.stop_id, "name": self.origin.name},
            "destination": {"id": self.destination.stop_id, "name": self.destination.name},
            "distance_km": self.distance_km,
            "estimated_minutes": self.minutes,
            "estimation_source": self.source,
            "origin_accessible": self.origin.is_accessible(),
            "destination_accessible": self.destination.is_accessible(),
        }

    def __repr__(self):
        return f"TravelTimeEstimate({self.minutes:.1f} min, {self.source})"


class RoutePlanner:
    def __init__(self, api_client=None, leg_selector=None, max_workers=None):
        """
        Initialize the RoutePlanner.

        Args:
            api_client: data-source client; a default APIClient is built when omitted
            leg_selector: ranking policy for candidate legs (see leg_finder.SELECTORS);
                defaults to taking the first viable trip
            max_workers: bound on concurrent data-source calls per request
        """
        self.api_client = api_client or APIClient()
        self.leg_selector = leg_selector
        self.max_workers = max_workers or Config.MAX_WORKERS

    @staticmethod
    def _localize(moment):
        tz = pytz.timezone(Config.TIMEZONE)
        if moment is None:
            return datetime.datetime.now(tz)
        if moment.tzinfo is None:
            return tz.localize(moment)
        return moment.astimezone(tz)

    def _leg_params(self, route_id, from_stop_id, to_stop_id, depart_after):
        # No direction filter: trips running either way are considered
        return {
            "filter[route]": route_id,
            "filter[stop]": f"{from_stop_id},{to_stop_id}",
            "filter[date]": depart_after.strftime("%Y-%m-%d"),
            "filter[min_time]": depart_after.strftime("%H:%M"),
            "include": "trip,route,stop",
            "sort": "departure_time",
            "fields[schedule]": LEG_SCHEDULE_FIELDS,
            "fields[stop]": LEG_STOP_FIELDS,
            "page[limit]": str(LEG_PAGE_LIMIT),
        }

    def _attempt_leg(self, route_id, origin, destination, depart_after, require_accessible, cancel_event):
        """
        Finds one leg on `route_id`, or None. Data-source failures count as no leg;
        only cancellation propagates.
        """
        depart_after = self._localize(depart_after)
        params = self._leg_params(route_id, origin.stop_id, destination.stop_id, depart_after)
        try:
            events, included = self.api_client.get_schedules(params, cancel_event=cancel_event)
        except RequestCancelledError:
            raise
        except MBTAError as e:
            logging.warning(f"Schedule lookup on route {route_id} from {origin.stop_id} "
                            f"to {destination.stop_id} failed: {e}")
            return None

        return find_leg(
            events,
            included,
            origin.stop_id,
            destination.stop_id,
            require_accessible=require_accessible,
            depart_after=depart_after,
            known_stops={origin.stop_id: origin, destination.stop_id: destination},
            selector=self.leg_selector,
        )

    def _attempt_transfer(self, transfer, origin, destination, departure_time, require_accessible, cancel_event):
        first_leg = self._attempt_leg(transfer.from_route, origin, transfer.stop,
                                      departure_time, require_accessible, cancel_event)
        if first_leg is None:
            return None

        wait = max(transfer.min_transfer_time, MIN_TRANSFER_FLOOR)
        second_departure = first_leg.arrival_time + wait
        second_leg = self._attempt_leg(transfer.to_route, transfer.stop, destination,
                                       second_departure, require_accessible, cancel_event)
        if second_leg is None:
            return None

        logging.info(f"Transfer at {transfer.stop.name} ({transfer.stop.stop_id}): "
                     f"{transfer.from_route} -> {transfer.to_route}")
        return TripPlan(origin, destination, [first_leg, second_leg])

    def _first_transfer_plan(self, transfer_points, origin, destination, departure_time,
                             require_accessible, cancel_event):
        """
        Tries every transfer point and returns the plan of the earliest one, in
        discovery order, for which both legs exist.
        """
        attempt = partial(self._attempt_transfer, origin=origin, destination=destination,
                          departure_time=departure_time, require_accessible=require_accessible,
                          cancel_event=cancel_event)

        workers = max(1, min(self.max_workers, len(transfer_points)))
        if workers == 1:
            for transfer in transfer_points:
                plan = attempt(transfer)
                if plan is not None:
                    return plan
            return None

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(attempt, transfer) for transfer in transfer_points]
            try:
                for future in futures:
                    plan = future.result()
                    if plan is not None:
                        return plan
            finally:
                for future in futures:
                    future.cancel()
        return None

    def plan_trip(self, origin_stop_id: str, destination_stop_id: str, departure_time=None,
                  wheelchair_accessible=False, cancel_event=None) -> TripPlan:
        """
        Plans a trip between two stops with at most one transfer.

        A direct leg on the first route (by id) serving both stops is tried
        first. Failing that, each transfer point between the origin's and the
        destination's routes is tried, and the first combination with two
        legs wins. Neither step looks for the fastest option.

        Args:
            origin_stop_id: stop or station id to start from
            destination_stop_id: stop or station id to reach
            departure_time: earliest departure; naive values are taken as
                Config.TIMEZONE local time, None means now
            wheelchair_accessible: only use trips flagged wheelchair accessible
            cancel_event: threading.Event; once set, pending data-source calls
                raise RequestCancelledError

        Returns:
            TripPlan: a fully populated plan

        Raises:
            NoTripFoundError: no direct or single-transfer trip exists
            InvalidInputError: an id is missing, or both ids are the same
            RequestCancelledError: `cancel_event` was set before a plan was returned
            MBTAError: the endpoints could not be resolved
        """
        if not origin_stop_id or not destination_stop_id:
            raise InvalidInputError("Both origin and destination stop ids are required")
        if origin_stop_id == destination_stop_id:
            raise InvalidInputError(f"Origin and destination are the same stop: {origin_stop_id}")

        departure_time = self._localize(departure_time)
        logging.info(f"Planning trip from {origin_stop_id} to {destination_stop_id} "
                     f"at {departure_time.isoformat()}")

        resolver = MembershipResolver(self.api_client, service_date=departure_time.date(),
                                      cancel_event=cancel_event)

        origin = self.api_client.get_stop(origin_stop_id, cancel_event=cancel_event)
        destination = self.api_client.get_stop(destination_stop_id, cancel_event=cancel_event)
        resolver.remember_stop(origin)
        resolver.remember_stop(destination)

        origin_routes = resolver.routes_serving(origin_stop_id)
        destination_routes = resolver.routes_serving(destination_stop_id)
        logging.debug(f"Origin routes: {sorted(origin_routes)}, destination routes: {sorted(destination_routes)}")

        common_routes = sorted(origin_routes & destination_routes)
        if common_routes:
            route_id = common_routes[0]
            logging.info(f"Trying direct route {route_id}")
            leg = self._attempt_leg(route_id, origin, destination, departure_time,
                                    wheelchair_accessible, cancel_event)
            if leg is not None:
                check_cancelled(cancel_event, "Trip planning")
                return TripPlan(origin, destination, [leg])
            logging.info(f"No direct trip on route {route_id}, looking for transfers")

        finder = TransferPointFinder(resolver, max_workers=self.max_workers)
        transfer_points = finder.find_transfer_points(sorted(origin_routes), sorted(destination_routes))
        if transfer_points:
            plan = self._first_transfer_plan(transfer_points, origin, destination, departure_time,
                                             wheelchair_accessible, cancel_event)
            if plan is not None:
                # attempts still running when the event was set may have succeeded
                check_cancelled(cancel_event, "Trip planning")
                return plan
        else:
            logging.info("No transfer points found between origin and destination routes")

        raise NoTripFoundError(
            f"No possible trip found between {origin_stop_id} and {destination_stop_id} at specified time"
        )

    def find_transfer_points(self, routes_a, routes_b, service_date=None, cancel_event=None):
        """
        Lists the stops where a route in `routes_a` meets a different route in `routes_b`.
        """
        resolver = MembershipResolver(self.api_client, service_date=service_date, cancel_event=cancel_event)
        finder = TransferPointFinder(resolver, max_workers=self.max_workers)
        return finder.find_transfer_points(list(routes_a), list(routes_b))

    def _scheduled_minutes(self, route_id, origin, destination, cancel_event):
        today = self._localize(None)
        params = {
            "filter[route]": route_id,
            "filter[stop]": f"{origin.stop_id},{destination.stop_id}",
            "filter[date]": today.strftime("%Y-%m-%d"),
            "include": "trip,stop",
            "sort": "departure_time",
            "fields[schedule]": LEG_SCHEDULE_FIELDS,
            "fields[stop]": LEG_STOP_FIELDS,
            "page[limit]": "100",
        }
        events, included = self.api_client.get_schedules(params, cancel_event=cancel_event)
        durations = [
            leg.duration.total_seconds() / 60
            for leg in candidate_legs(events, included, origin.stop_id, destination.stop_id)
        ]
        if not durations:
            return None
        return sum(durations) / len(durations)

    def estimate_travel_time(self, origin_stop_id, destination_stop_id, route_id=None, cancel_event=None):
        """
        Estimates the travel time between two stops.

        With a route, the mean scheduled time over today's trips is used,
        falling back to the typical speed of the route's mode. Without one, or
        when both fail, a generic 25 km/h over the straight-line distance.
        """
        if not origin_stop_id or not destination_stop_id:
            raise InvalidInputError("Both origin and destination stop ids are required")

        origin = self.api_client.get_stop(origin_stop_id, cancel_event=cancel_event)
        destination = self.api_client.get_stop(destination_stop_id, cancel_event=cancel_event)
        distance = haversine_distance(origin.lat, origin.lon, destination.lat, destination.lon)

        minutes = None
        source = None
        if route_id:
            try:
                minutes = self._scheduled_minutes(route_id, origin, destination, cancel_event)
            except RequestCancelledError:
                raise
            except MBTAError as e:
                logging.warning(f"Schedule-based estimate for route {route_id} failed: {e}")
            if minutes is not None:
                source = "Based on scheduled trips"
            else:
                try:
                    route = self.api_client.get_route(route_id, cancel_event=cancel_event)
                except RequestCancelledError:
                    raise
                except MBTAError as e:
                    logging.warning(f"Could not fetch route {route_id}: {e}")
                    route = None
                speed = ROUTE_TYPE_SPEEDS_KMH.get(route.route_type) if route else None
                if speed:
                    minutes = distance / speed * 60
                    source = f"Estimated based on {route.type_description()} transit speed"

        if minutes is None:
            minutes = distance / DEFAULT_SPEED_KMH * 60
            source = "Rough estimate based on distance"

        return TravelTimeEstimate(origin, destination, distance, minutes, source)
