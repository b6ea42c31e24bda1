ROUTE_TYPE_LIGHT_RAIL = 0
ROUTE_TYPE_SUBWAY = 1
ROUTE_TYPE_COMMUTER_RAIL = 2
ROUTE_TYPE_BUS = 3
ROUTE_TYPE_FERRY = 4

ROUTE_TYPE_DESCRIPTIONS = {
    ROUTE_TYPE_LIGHT_RAIL: "Light Rail",
    ROUTE_TYPE_SUBWAY: "Subway",
    ROUTE_TYPE_COMMUTER_RAIL: "Commuter Rail",
    ROUTE_TYPE_BUS: "Bus",
    ROUTE_TYPE_FERRY: "Ferry",
}


class Route:
    def __init__(self, route_id, long_name="", short_name="", route_type=None,
                 direction_names=None, direction_destinations=None):
        self.route_id = route_id
        self.long_name = long_name or ""
        self.short_name = short_name or ""
        self.route_type = route_type
        self.direction_names = list(direction_names or [])
        self.direction_destinations = list(direction_destinations or [])

    @classmethod
    def from_resource(cls, resource):
        attrs = resource.get('attributes') or {}
        return cls(
            route_id=resource['id'],
            long_name=attrs.get('long_name'),
            short_name=attrs.get('short_name'),
            route_type=attrs.get('type'),
            direction_names=attrs.get('direction_names'),
            direction_destinations=attrs.get('direction_destinations'),
        )

    @property
    def display_name(self):
        # Buses have an empty long_name on some feeds; fall back to the number
        return self.long_name or self.short_name or self.route_id

    def type_description(self):
        return ROUTE_TYPE_DESCRIPTIONS.get(self.route_type, "Unknown")

    def direction_name(self, direction):
        if direction is not None and 0 <= direction < len(self.direction_names):
            return self.direction_names[direction]
        return ""

    def direction_destination(self, direction):
        if direction is not None and 0 <= direction < len(self.direction_destinations):
            return self.direction_destinations[direction]
        return ""

    def __repr__(self):
        return f"Route({self.route_id}, {self.display_name})"
