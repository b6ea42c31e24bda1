#!/usr/bin/env python3
import argparse
import logging
import datetime
import json
import sys
import os

# Add the parent directory to the path so we can import the package
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from mbta_routing.route_planner import RoutePlanner
from mbta_routing.config import Config
from mbta_routing.api_client import APIClient
from mbta_routing.errors import MBTAError, NoTripFoundError
from mbta_routing.leg_finder import SELECTORS


def setup_logging(debug=False):
    """Configure logging based on debug flag."""
    level = logging.DEBUG if debug or Config.DEBUG else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def format_time(time_str):
    """Format time string into datetime object."""
    try:
        # Try parsing ISO format
        return datetime.datetime.fromisoformat(time_str.replace('Z', '+00:00'))
    except ValueError:
        if len(time_str) <= 5:  # Handle just time like "14:30"
            try:
                time_only = datetime.datetime.strptime(time_str, "%H:%M").time()
                return datetime.datetime.combine(datetime.date.today(), time_only)
            except ValueError:
                pass
        for fmt in ("%Y-%m-%d %H:%M", "%Y-%m-%d %H:%M:%S", "%d/%m/%Y %H:%M"):
            try:
                return datetime.datetime.strptime(time_str, fmt)
            except ValueError:
                continue
        logging.error(f"Could not parse time string: {time_str}")
        return None


def format_distance(distance_km):
    if distance_km < 1.0:
        return f"{distance_km * 1000:.0f} meters"
    return f"{distance_km:.1f} km ({distance_km * 0.621371:.1f} miles)"


def plan_trip(origin, destination, time_str=None, accessible=False, selector="first", as_json=False):
    """Plan a trip between two stops."""
    departure = None
    if time_str:
        departure = format_time(time_str)
        if not departure:
            print(f"❌ Invalid departure time format: {time_str}")
            return 1

    planner = RoutePlanner(leg_selector=SELECTORS[selector])
    try:
        plan = planner.plan_trip(origin, destination, departure, wheelchair_accessible=accessible)
    except NoTripFoundError as e:
        print(f"❌ {e}")
        return 1

    if as_json:
        print(json.dumps(plan.to_dict(), indent=2))
        return 0

    print(f"✅ Trip planned successfully:")
    print(f"  🚉 From: {plan.origin.name} ({plan.origin.stop_id})")
    print(f"  🏁 To: {plan.destination.name} ({plan.destination.stop_id})")
    print(f"  🕒 Departure: {plan.departure_time.strftime('%I:%M %p')}")
    print(f"  🕒 Arrival: {plan.arrival_time.strftime('%I:%M %p')}")
    print(f"  ⏱️ Travel time: {plan.duration.total_seconds() / 60:.1f} minutes")
    print(f"  📏 Distance: {format_distance(plan.total_distance)}")
    print(f"  ♿ Accessible: {'yes' if plan.accessible_trip else 'no'}")

    print("\nItinerary details:")
    for i, leg in enumerate(plan.legs):
        print(f"  Leg {i+1}: {leg.instructions}")
        print(f"    {leg.origin.name} {leg.departure_time.strftime('%H:%M')} -> "
              f"{leg.destination.name} {leg.arrival_time.strftime('%H:%M')} (trip {leg.trip_id})")
    return 0


def list_transfers(route_a, route_b, as_json=False):
    """List transfer points between two routes."""
    planner = RoutePlanner()
    transfer_points = planner.find_transfer_points([route_a], [route_b])

    if as_json:
        print(json.dumps([tp.to_dict() for tp in transfer_points], indent=2))
        return 0

    if not transfer_points:
        print(f"❌ No transfer points found between routes {route_a} and {route_b}.")
        return 1

    print(f"✅ Found {len(transfer_points)} transfer points:")
    for tp in transfer_points:
        minutes = tp.min_transfer_time.total_seconds() / 60
        print(f"  🔁 {tp.stop.name} ({tp.stop.stop_id}) - allow {minutes:.0f} min")
    return 0


def nearby_stations(lat, lon, radius, max_results, only_stations=True, accessible=False, as_json=False):
    """Find stations near a coordinate."""
    client = APIClient()
    results = client.find_nearby_stations(lat, lon, radius, max_results, only_stations,
                                          wheelchair_accessible=accessible)

    if as_json:
        print(json.dumps(
            [dict(stop.to_dict(), distance_km=distance) for stop, distance in results],
            indent=2
        ))
        return 0

    if not results:
        print(f"❌ No stations found within {radius:.1f} km of the specified coordinates.")
        return 1

    print(f"✅ Found {len(results)} stations:")
    for i, (stop, distance) in enumerate(results):
        print(f"  {i+1}. {stop.name} ({stop.stop_id}) - {format_distance(distance)}")
    return 0


def estimate(origin, destination, route=None, as_json=False):
    """Estimate travel time between two stops."""
    planner = RoutePlanner()
    result = planner.estimate_travel_time(origin, destination, route_id=route)

    if as_json:
        print(json.dumps(result.to_dict(), indent=2))
        return 0

    print(f"⏱️ {result.origin.name} -> {result.destination.name}: about {result.minutes:.0f} minutes")
    print(f"  📏 {format_distance(result.distance_km)}")
    print(f"  ℹ️ {result.source}")
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="MBTA Routing CLI - trip planning and station search",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Plan a trip between two stations
  ./main_cli.py plan place-harsq place-dwnxg --time "14:30"

  # List transfer points between two routes
  ./main_cli.py transfers Red Orange

  # Find the three closest stations to a point
  ./main_cli.py nearby 42.355 -71.060 --max 3
        """
    )

    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    parser.add_argument('--json', action='store_true', help='Print results as JSON')

    subparsers = parser.add_subparsers(dest='command', help='Sub-command help')

    plan_parser = subparsers.add_parser('plan', help='Plan a trip between two stops')
    plan_parser.add_argument('origin', type=str, help='Origin stop id')
    plan_parser.add_argument('destination', type=str, help='Destination stop id')
    plan_parser.add_argument('--time', type=str, help='Departure time (e.g., "14:30" or ISO format)')
    plan_parser.add_argument('--accessible', action='store_true', help='Require wheelchair accessible trips')
    plan_parser.add_argument('--selector', choices=sorted(SELECTORS), default='first',
                             help='How to choose among candidate trips')

    transfers_parser = subparsers.add_parser('transfers', help='List transfer points between two routes')
    transfers_parser.add_argument('route_a', type=str, help='Route to transfer from')
    transfers_parser.add_argument('route_b', type=str, help='Route to transfer to')

    nearby_parser = subparsers.add_parser('nearby', help='Find stations near a coordinate')
    nearby_parser.add_argument('lat', type=float, help='Latitude')
    nearby_parser.add_argument('lon', type=float, help='Longitude')
    nearby_parser.add_argument('--radius', type=float, default=1.0, help='Search radius in km')
    nearby_parser.add_argument('--max', type=int, default=5, help='Maximum number of results')
    nearby_parser.add_argument('--all-stops', action='store_true', help='Include platforms and stops, not just stations')
    nearby_parser.add_argument('--accessible', action='store_true', help='Only wheelchair accessible stations')

    estimate_parser = subparsers.add_parser('estimate', help='Estimate travel time between two stops')
    estimate_parser.add_argument('origin', type=str, help='Origin stop id')
    estimate_parser.add_argument('destination', type=str, help='Destination stop id')
    estimate_parser.add_argument('--route', type=str, help='Route to base the estimate on')

    args = parser.parse_args()
    setup_logging(args.debug)

    try:
        if args.command == 'plan':
            return plan_trip(args.origin, args.destination, args.time, args.accessible,
                             args.selector, as_json=args.json)
        elif args.command == 'transfers':
            return list_transfers(args.route_a, args.route_b, as_json=args.json)
        elif args.command == 'nearby':
            return nearby_stations(args.lat, args.lon, args.radius, args.max,
                                   only_stations=not args.all_stops, accessible=args.accessible,
                                   as_json=args.json)
        elif args.command == 'estimate':
            return estimate(args.origin, args.destination, args.route, as_json=args.json)
        else:
            parser.print_help()
            return 0
    except MBTAError as e:
        print(f"❌ {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
