from datetime import datetime
from typing import Any, Dict, List, Optional


class Relationships:
    """
    Relationship ids of a JSON:API resource, resolved once when the resource is parsed.

    The MBTA API nests related ids as ``{"route": {"data": {"id": "Red", "type": "route"}}}``.
    To-many relationships carry a list under ``data`` instead of a single object.
    """

    def __init__(self, raw: Optional[Dict[str, Any]] = None) -> None:
        self._ids: Dict[str, List[str]] = {}
        for name, rel in (raw or {}).items():
            if not isinstance(rel, dict):
                continue
            data = rel.get('data')
            if isinstance(data, dict):
                data = [data]
            if not isinstance(data, list):
                continue
            ids = [item['id'] for item in data if isinstance(item, dict) and item.get('id')]
            if ids:
                self._ids[name] = ids

    def get(self, name: str) -> Optional[str]:
        """Returns the first related id for `name`, or None."""
        ids = self._ids.get(name)
        return ids[0] if ids else None

    def get_many(self, name: str) -> List[str]:
        return list(self._ids.get(name, []))

    def __contains__(self, name):
        return name in self._ids

    def __repr__(self):
        return f"Relationships({self._ids})"


def parse_datetime(datetime_str):
    """Parse an ISO format datetime string."""
    if not datetime_str:
        return None
    try:
        return datetime.fromisoformat(datetime_str.replace('Z', '+00:00'))
    except (ValueError, AttributeError):
        return None
