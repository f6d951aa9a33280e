"""JSON encoding for payloads and reports that carry datetimes, enums and sets"""
import json
from datetime import date, datetime
from enum import Enum

class ListeningJSONEncoder(json.JSONEncoder):
    """Encodes datetimes as ISO strings, enums by value and sets as sorted lists"""
    def default(self, obj):
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, (set, frozenset)):
            return sorted(obj, key=str)
        return super().default(obj)

def json_dumps(obj, **kwargs) -> str:
    """Dump JSON with the listening encoder"""
    return json.dumps(obj, cls=ListeningJSONEncoder, **kwargs)
