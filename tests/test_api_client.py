import threading
from unittest.mock import patch, MagicMock

import pytest
import requests

from mbta_routing.api_client import APIClient, haversine_distance, validate_coordinates
from mbta_routing.errors import (
    InvalidInputError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    RequestCancelledError,
    RequestTimeoutError,
    UnauthorizedError,
)

from mbta_fixtures import (
    schedule_resource,
    stop_resource,
    trip_resource,
    route_resource,
)


def make_response(payload, status_code=200, text=None, headers=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    response.text = text if text is not None else ""
    response.headers = headers or {}
    return response


DOWNTOWN_STATIONS = [
    stop_resource("place-pktrm", "Park Street", 42.35639457, -71.0624242),
    stop_resource("place-dwnxg", "Downtown Crossing", 42.355518, -71.060225),
    stop_resource("place-boyls", "Boylston", 42.35302, -71.06459),
    stop_resource("place-armnl", "Arlington", 42.351902, -71.070893),
    stop_resource("place-coecl", "Copley", 42.349974, -71.077447),
]


def test_haversine_distance_basic():
    # Distance between (0,0) and (0,1) approx 111.19km
    dist = haversine_distance(0, 0, 0, 1)
    assert 111 <= dist <= 112


def test_haversine_distance_same_point_is_zero():
    assert haversine_distance(42.3554, -71.0603, 42.3554, -71.0603) == 0.0


def test_haversine_distance_symmetric():
    a = (42.3736, -71.1190)
    b = (42.3954, -71.1426)
    assert haversine_distance(*a, *b) == pytest.approx(haversine_distance(*b, *a))
    assert haversine_distance(*a, *b) > 0


def test_haversine_distance_has_no_hardcoded_pairs():
    # Harvard -> Central is about 1.5 km by the formula, not a canned constant
    dist = haversine_distance(42.3736, -71.1190, 42.3654, -71.1037)
    assert dist == pytest.approx(1.55, abs=0.05)


@pytest.mark.parametrize("lat, lon", [(91, 0), (-90.5, 0), (0, 181), (0, -180.1), (float("nan"), 0), ("abc", 0)])
def test_validate_coordinates_rejects_bad_input(lat, lon):
    with pytest.raises(InvalidInputError):
        validate_coordinates(lat, lon)


def test_get_stop_parses_resource():
    client = APIClient()
    payload = {"data": stop_resource("place-dwnxg", "Downtown Crossing", 42.355518, -71.060225)}
    with patch('requests.get', return_value=make_response(payload)) as mock_get:
        stop = client.get_stop("place-dwnxg")

    assert stop.stop_id == "place-dwnxg"
    assert stop.is_station()
    assert stop.is_accessible()
    args, kwargs = mock_get.call_args
    assert args[0] == "https://api-v3.mbta.com/stops/place-dwnxg"
    assert kwargs["headers"]["x-api-key"] == "test-api-key"
    assert kwargs["timeout"] == 5


def test_get_stop_not_found():
    client = APIClient()
    body = '{"errors": [{"status": "404", "code": "not_found", "title": "Resource Not Found"}]}'
    with patch('requests.get', return_value=make_response(None, status_code=404, text=body)):
        with pytest.raises(NotFoundError) as excinfo:
            client.get_stop("nope")
    assert excinfo.value.code == "not_found"


@pytest.mark.parametrize("status, error_class", [(401, UnauthorizedError), (403, UnauthorizedError), (429, RateLimitError)])
def test_http_errors_are_mapped(status, error_class):
    client = APIClient()
    with patch('requests.get', return_value=make_response(None, status_code=status, text="denied")):
        with pytest.raises(error_class):
            client.list_stops()


def test_timeout_raises_timeout_error():
    client = APIClient(timeout=2)
    with patch('requests.get', side_effect=requests.exceptions.Timeout("slow")):
        with pytest.raises(RequestTimeoutError) as excinfo:
            client.list_stops()
    assert excinfo.value.timeout == 2


def test_connection_error_raises_network_error():
    client = APIClient()
    with patch('requests.get', side_effect=requests.exceptions.ConnectionError("down")):
        with pytest.raises(NetworkError):
            client.get_route("Red")


def test_cancelled_request_is_never_sent():
    client = APIClient()
    cancel = threading.Event()
    cancel.set()
    with patch('requests.get') as mock_get:
        with pytest.raises(RequestCancelledError):
            client.get_stop("place-dwnxg", cancel_event=cancel)
    mock_get.assert_not_called()


def test_get_schedules_returns_events_and_included():
    client = APIClient()
    payload = {
        "data": [
            schedule_resource("T1", "70061", 1, "2025-05-01T08:10:00-04:00"),
            schedule_resource("T1", "70069", 4, "2025-05-01T08:16:00-04:00"),
        ],
        "included": [
            trip_resource("T1"),
            route_resource("Red", "Red Line"),
            stop_resource("70061", "Alewife", 42.396, -71.142, location_type=0, parent_station="place-alfcl"),
        ],
    }
    params = {"filter[route]": "Red", "filter[date]": "2025-05-01"}
    with patch('requests.get', return_value=make_response(payload)) as mock_get:
        events, included = client.get_schedules(params)

    assert [e.stop_id for e in events] == ["70061", "70069"]
    assert events[0].trip_id == "T1"
    assert events[0].route_id == "Red"
    assert events[1].stop_sequence == 4
    assert included.trips["T1"].route_id == "Red"
    assert included.routes["Red"].long_name == "Red Line"
    assert included.station_id("70061") == "place-alfcl"
    assert mock_get.call_args[1]["params"]["filter[date]"] == "2025-05-01"


def test_get_schedules_defaults_service_date():
    client = APIClient()
    with patch('requests.get', return_value=make_response({"data": []})) as mock_get:
        events, included = client.get_schedules({"filter[stop]": "place-dwnxg"})
    assert events == []
    assert len(mock_get.call_args[1]["params"]["filter[date]"]) == 10


def test_find_nearby_stations_downtown_crossing():
    client = APIClient()
    with patch('requests.get', return_value=make_response({"data": DOWNTOWN_STATIONS})) as mock_get:
        results = client.find_nearby_stations(42.355, -71.060, 1.0, 3, True)

    assert mock_get.call_args[1]["params"] == {"filter[location_type]": "1"}
    assert len(results) == 3
    assert [stop.stop_id for stop, _ in results] == ["place-dwnxg", "place-pktrm", "place-boyls"]
    assert results[0][1] == pytest.approx(0.0, abs=0.1)
    distances = [distance for _, distance in results]
    assert distances == sorted(distances)
    assert all(distance <= 1.0 for distance in distances)


def test_find_nearby_stations_without_limit_respects_radius():
    client = APIClient()
    with patch('requests.get', return_value=make_response({"data": DOWNTOWN_STATIONS})) as mock_get:
        results = client.find_nearby_stations(42.355, -71.060, 1.0, 0, only_stations=False)

    assert mock_get.call_args[1]["params"] == {}
    # Copley is about 1.5 km away
    assert [stop.stop_id for stop, _ in results] == ["place-dwnxg", "place-pktrm", "place-boyls", "place-armnl"]


def test_find_nearby_stations_ties_break_on_stop_id():
    client = APIClient()
    twins = [
        stop_resource("b-stop", "B", 42.36, -71.06),
        stop_resource("a-stop", "A", 42.36, -71.06),
    ]
    with patch('requests.get', return_value=make_response({"data": twins})):
        results = client.find_nearby_stations(42.355, -71.060, 2.0, 5)
    assert [stop.stop_id for stop, _ in results] == ["a-stop", "b-stop"]


def test_find_nearby_stations_accessible_filter():
    client = APIClient()
    stations = [
        stop_resource("place-dwnxg", "Downtown Crossing", 42.355518, -71.060225, wheelchair_boarding=2),
        stop_resource("place-pktrm", "Park Street", 42.35639457, -71.0624242, wheelchair_boarding=1),
    ]
    with patch('requests.get', return_value=make_response({"data": stations})):
        results = client.find_nearby_stations(42.355, -71.060, 1.0, 5, wheelchair_accessible=True)
    assert [stop.stop_id for stop, _ in results] == ["place-pktrm"]


def test_find_nearby_stations_rejects_invalid_input():
    client = APIClient()
    with patch('requests.get') as mock_get:
        with pytest.raises(InvalidInputError):
            client.find_nearby_stations(123.0, -71.0, 1.0, 3)
        with pytest.raises(InvalidInputError):
            client.find_nearby_stations(42.0, -71.0, -1.0, 3)
    mock_get.assert_not_called()


def test_response_arriving_after_cancel_is_discarded():
    client = APIClient()
    cancel = threading.Event()
    payload = {"data": stop_resource("place-dwnxg", "Downtown Crossing", 42.355518, -71.060225)}

    def cancel_mid_flight(*args, **kwargs):
        cancel.set()
        return make_response(payload)

    with patch('requests.get', side_effect=cancel_mid_flight) as mock_get:
        with pytest.raises(RequestCancelledError):
            client.get_stop("place-dwnxg", cancel_event=cancel)
    mock_get.assert_called_once()
