from .resource import Relationships

LOCATION_TYPE_PLATFORM = 0
LOCATION_TYPE_STATION = 1
LOCATION_TYPE_ENTRANCE = 2
LOCATION_TYPE_GENERIC_NODE = 3
LOCATION_TYPE_BOARDING_AREA = 4

WHEELCHAIR_BOARDING_UNKNOWN = 0
WHEELCHAIR_BOARDING_ACCESSIBLE = 1
WHEELCHAIR_BOARDING_INACCESSIBLE = 2

LOCATION_TYPE_DESCRIPTIONS = {
    LOCATION_TYPE_PLATFORM: "Platform",
    LOCATION_TYPE_STATION: "Station",
    LOCATION_TYPE_ENTRANCE: "Entrance",
    LOCATION_TYPE_GENERIC_NODE: "Generic Node",
    LOCATION_TYPE_BOARDING_AREA: "Boarding Area",
}

WHEELCHAIR_BOARDING_DESCRIPTIONS = {
    WHEELCHAIR_BOARDING_UNKNOWN: "Unknown",
    WHEELCHAIR_BOARDING_ACCESSIBLE: "Accessible",
    WHEELCHAIR_BOARDING_INACCESSIBLE: "Inaccessible",
}


class Stop:
    def __init__(self, stop_id, name, lat, lon, location_type=LOCATION_TYPE_PLATFORM,
                 wheelchair_boarding=WHEELCHAIR_BOARDING_UNKNOWN, municipality="",
                 address="", parent_station_id=None):
        self.stop_id = stop_id
        self.name = name
        self.lat = float(lat)
        self.lon = float(lon)
        self.location_type = location_type
        self.wheelchair_boarding = wheelchair_boarding
        self.municipality = municipality or ""
        self.address = address or ""
        self.parent_station_id = parent_station_id

    @classmethod
    def from_resource(cls, resource):
        """Builds a Stop from a JSON:API `stop` resource."""
        attrs = resource.get('attributes') or {}
        relationships = Relationships(resource.get('relationships'))
        return cls(
            stop_id=resource['id'],
            name=attrs.get('name') or "Unknown Stop",
            lat=attrs.get('latitude') or 0.0,
            lon=attrs.get('longitude') or 0.0,
            location_type=attrs.get('location_type') or LOCATION_TYPE_PLATFORM,
            wheelchair_boarding=attrs.get('wheelchair_boarding') or WHEELCHAIR_BOARDING_UNKNOWN,
            municipality=attrs.get('municipality'),
            address=attrs.get('address'),
            parent_station_id=relationships.get('parent_station'),
        )

    @classmethod
    def placeholder(cls, stop_id):
        return cls(stop_id=stop_id, name="Unknown Stop", lat=0.0, lon=0.0)

    def is_accessible(self):
        return self.wheelchair_boarding == WHEELCHAIR_BOARDING_ACCESSIBLE

    def is_station(self):
        return self.location_type == LOCATION_TYPE_STATION

    def is_platform(self):
        return self.location_type == LOCATION_TYPE_PLATFORM

    def location_description(self):
        return LOCATION_TYPE_DESCRIPTIONS.get(self.location_type, "Unknown")

    def accessibility_description(self):
        return WHEELCHAIR_BOARDING_DESCRIPTIONS.get(self.wheelchair_boarding, "Unknown")

    def to_dict(self):
        stop_dict = {
            "id": self.stop_id,
            "name": self.name,
            "latitude": self.lat,
            "longitude": self.lon,
            "municipality": self.municipality,
            "location_type": self.location_type,
            "location_description": self.location_description(),
            "wheelchair_accessible": self.is_accessible(),
            "accessibility_status": self.accessibility_description(),
        }
        if self.address:
            stop_dict["address"] = self.address
        return stop_dict

    def __repr__(self):
        return f"Stop({self.stop_id}, {self.name}, {self.lat}, {self.lon})"
