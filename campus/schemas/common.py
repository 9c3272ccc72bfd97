import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from campus.utils.weeks import resolve_week_start

Weekday = Literal[
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"
]

# 24h HH:MM
TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"
TIME_SLOT_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d-([01]\d|2[0-3]):[0-5]\d$"


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def decode_json_string(value: Any) -> Any:
    """Accept JSON-encoded payloads sent as strings."""
    if isinstance(value, str):
        return json.loads(value)
    return value


def normalize_week_start(value: Any) -> str:
    if not value:
        raise ValueError("week start date is required")
    return resolve_week_start(value)


class MessageResponse(CamelModel):
    success: bool = True
    message: str
