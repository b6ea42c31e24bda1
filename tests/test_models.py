import datetime

import pytest

from mbta_routing.resource import Relationships, parse_datetime
from mbta_routing.route import Route
from mbta_routing.schedule import IncludedEntities, ScheduleEvent
from mbta_routing.stop import Stop
from mbta_routing.trip import Trip, TripLeg, TripPlan, TransferPoint

from mbta_fixtures import (
    CENTRAL,
    DOWNTOWN,
    HARVARD,
    PARK,
    local,
    route_resource,
    schedule_resource,
    stop_resource,
    trip_resource,
)


def make_leg(origin, destination, departure, arrival, distance=1.0, accessible=True):
    return TripLeg(origin, destination, "Red", "Red Line", "T1", departure, arrival,
                   distance=distance, headsign="Ashmont", direction_id=0, is_accessible=accessible)


def test_relationships_to_one_and_to_many():
    rels = Relationships({
        "route": {"data": {"id": "Red", "type": "route"}},
        "child_stops": {"data": [{"id": "70075", "type": "stop"}, {"id": "70076", "type": "stop"}]},
        "facilities": {"links": {}},
        "parent_station": {"data": None},
    })
    assert rels.get("route") == "Red"
    assert rels.get_many("child_stops") == ["70075", "70076"]
    assert rels.get("child_stops") == "70075"
    assert rels.get("facilities") is None
    assert "parent_station" not in rels
    assert "route" in rels


def test_relationships_empty():
    rels = Relationships(None)
    assert rels.get("trip") is None
    assert rels.get_many("trip") == []


def test_parse_datetime():
    parsed = parse_datetime("2025-05-01T08:10:00-04:00")
    assert parsed.hour == 8
    assert parsed.utcoffset() == datetime.timedelta(hours=-4)
    assert parse_datetime("2025-05-01T12:10:00Z").utcoffset() == datetime.timedelta(0)
    assert parse_datetime("not a time") is None
    assert parse_datetime(None) is None


def test_stop_from_resource_reads_parent_station():
    stop = Stop.from_resource(stop_resource("70075", "Park Street", 42.356, -71.062,
                                            location_type=0, parent_station="place-pktrm"))
    assert stop.parent_station_id == "place-pktrm"
    assert stop.is_platform()
    assert not stop.is_station()
    assert stop.location_description() == "Platform"
    assert stop.to_dict()["wheelchair_accessible"] is True


def test_stop_placeholder():
    stop = Stop.placeholder("ghost")
    assert stop.name == "Unknown Stop"
    assert (stop.lat, stop.lon) == (0.0, 0.0)
    assert not stop.is_accessible()
    assert stop.accessibility_description() == "Unknown"


def test_route_from_resource_and_display_name():
    route = Route.from_resource(route_resource("Red", "Red Line"))
    assert route.display_name == "Red Line"
    assert route.type_description() == "Subway"
    assert route.direction_name(1) == "North"
    assert route.direction_destination(0) == "Ashmont/Braintree"
    assert route.direction_name(5) == ""

    bus = Route("1", short_name="1", route_type=3)
    assert bus.display_name == "1"
    assert Route("X").display_name == "X"


def test_trip_from_resource_takes_route_from_relationships():
    trip = Trip.from_resource(trip_resource("T1", route_id="Orange", headsign="Oak Grove"))
    assert trip.route_id == "Orange"
    assert trip.headsign == "Oak Grove"
    assert trip.is_wheelchair_accessible()


@pytest.mark.parametrize("flag, expected", [(1, True), (True, True), (0, False), (2, False), (False, False), (None, False)])
def test_trip_accessibility_and_bike_flags(flag, expected):
    assert Trip("T1", wheelchair_accessible=flag).is_wheelchair_accessible() is expected
    assert Trip("T1", bikes_allowed=flag).is_bike_allowed() is expected


def test_schedule_event_time_fallbacks():
    event = ScheduleEvent("s1", "T1", "70061", 1, arrival_time="2025-05-01T08:10:00-04:00")
    assert event.parsed_departure() == event.parsed_arrival()

    first_stop = ScheduleEvent("s2", "T1", "70061", 1, departure_time="2025-05-01T08:12:00-04:00")
    assert first_stop.parsed_arrival().minute == 12

    assert ScheduleEvent("s3", "T1", "70061", 1).parsed_departure() is None


def test_schedule_event_from_resource():
    event = ScheduleEvent.from_resource(schedule_resource("T9", "70063", 3, "2025-05-01T09:00:00-04:00",
                                                          route_id="Red"))
    assert (event.trip_id, event.stop_id, event.route_id, event.stop_sequence) == ("T9", "70063", "Red", 3)
    assert event.is_pickup_available()
    assert event.is_drop_off_available()


def test_included_entities_from_payload():
    included = IncludedEntities.from_payload([
        trip_resource("T1"),
        route_resource("Red", "Red Line"),
        stop_resource("70075", "Park Street", 42.356, -71.062, location_type=0, parent_station="place-pktrm"),
        {"id": "x", "type": "facility"},
        {"type": "trip"},
    ])
    assert list(included.trips) == ["T1"]
    assert list(included.routes) == ["Red"]
    assert included.station_id("70075") == "place-pktrm"
    assert included.station_id("place-harsq") == "place-harsq"


def test_trip_leg_duration_and_instructions():
    leg = make_leg(HARVARD, CENTRAL, local(8, 5), local(8, 9))
    assert leg.duration == datetime.timedelta(minutes=4)
    assert leg.instructions == "Board the Red Line toward Ashmont"
    leg_dict = leg.to_dict()
    assert leg_dict["duration_minutes"] == 4
    assert leg_dict["origin"] == {"id": "place-harsq", "name": "Harvard"}


def test_instructions_without_headsign():
    leg = make_leg(HARVARD, CENTRAL, local(8, 5), local(8, 9))
    leg.headsign = ""
    assert leg.instructions == "Board the Red Line"


def test_trip_plan_derived_values_include_transfer_wait():
    first = make_leg(HARVARD, PARK, local(8, 5), local(8, 15), distance=4.0)
    second = make_leg(PARK, DOWNTOWN, local(8, 20), local(8, 30), distance=0.5, accessible=False)
    plan = TripPlan(HARVARD, DOWNTOWN, [first, second])

    assert plan.departure_time == local(8, 5)
    assert plan.arrival_time == local(8, 30)
    assert plan.duration == datetime.timedelta(minutes=25)
    assert plan.duration > first.duration + second.duration
    assert plan.total_distance == pytest.approx(4.5)
    assert plan.accessible_trip is False

    plan_dict = plan.to_dict()
    assert [leg["leg_number"] for leg in plan_dict["legs"]] == [1, 2]
    assert plan_dict["duration_minutes"] == 25


def test_trip_plan_requires_a_leg():
    with pytest.raises(ValueError):
        TripPlan(HARVARD, DOWNTOWN, [])


def test_transfer_point_to_dict():
    point = TransferPoint(PARK, "Red", "Green-B", suggested_wait_time=datetime.timedelta(minutes=5))
    point_dict = point.to_dict()
    assert point_dict["stop_id"] == "place-pktrm"
    assert point_dict["from_route"] == "Red"
    assert point_dict["to_route"] == "Green-B"
    assert point_dict["min_transfer_time"] == 3
    assert point_dict["suggested_wait_time"] == 5
    assert "suggested_wait_time" not in TransferPoint(PARK, "Red", "Orange").to_dict()
