import logging
from concurrent.futures import ThreadPoolExecutor

from .config import Config
from .errors import MBTAError, RequestCancelledError
from .trip import DEFAULT_MIN_TRANSFER_TIME, TRANSFER_TYPE_RECOMMENDED, TransferPoint


def run_bounded(func, items, max_workers):
    """
    Applies `func` to every item on at most `max_workers` threads and returns
    the results in input order. The first exception raised by `func` propagates.
    """
    items = list(items)
    if not items:
        return []
    workers = max(1, min(max_workers or 1, len(items)))
    if workers == 1:
        return [func(item) for item in items]
    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(func, items))


class TransferPointFinder:
    """
    Finds stops shared by a route from one set and a different route from another.
    """

    def __init__(self, resolver, max_workers=None):
        self.resolver = resolver
        self.max_workers = max_workers or Config.MAX_WORKERS

    def _stops_or_none(self, route_id):
        try:
            return self.resolver.stops_serving(route_id)
        except RequestCancelledError:
            raise
        except MBTAError as e:
            logging.warning(f"Could not fetch stops for route {route_id}: {e}")
            return None

    def _stop_or_none(self, stop_id):
        try:
            return self.resolver.stop(stop_id)
        except RequestCancelledError:
            raise
        except MBTAError as e:
            logging.warning(f"Could not fetch transfer stop {stop_id}: {e}")
            return None

    def find_transfer_points(self, routes_a, routes_b):
        """
        Returns a TransferPoint for every stop common to each (a, b) route pair with a != b.

        Pairs are visited in the order given and the stops of each pair in id
        order. A stop shared by several pairs appears once per pair. Route
        memberships are fetched once per distinct route, in parallel.
        """
        pairs = [(a, b) for a in routes_a for b in routes_b if a != b]
        if not pairs:
            return []

        route_ids = list(dict.fromkeys(route for pair in pairs for route in pair))
        memberships = dict(zip(route_ids, run_bounded(self._stops_or_none, route_ids, self.max_workers)))

        shared = []
        for a, b in pairs:
            stops_a, stops_b = memberships[a], memberships[b]
            if stops_a is None or stops_b is None:
                continue
            for stop_id in sorted(stops_a & stops_b):
                shared.append((stop_id, a, b))

        stop_ids = list(dict.fromkeys(stop_id for stop_id, _, _ in shared))
        stops = dict(zip(stop_ids, run_bounded(self._stop_or_none, stop_ids, self.max_workers)))

        transfer_points = []
        for stop_id, a, b in shared:
            stop = stops[stop_id]
            if stop is None:
                continue
            transfer_points.append(TransferPoint(
                stop=stop,
                from_route=a,
                to_route=b,
                transfer_type=TRANSFER_TYPE_RECOMMENDED,
                min_transfer_time=DEFAULT_MIN_TRANSFER_TIME,
            ))

        logging.info(f"Found {len(transfer_points)} transfer points across {len(pairs)} route pairs")
        return transfer_points
