from datetime import datetime, timezone
from typing import Annotated, Dict, Optional

from pydantic import BaseModel, ConfigDict, JsonValue
from pydantic.alias_generators import to_camel
from pydantic.functional_validators import AfterValidator

# Open-ended maps stay JSON-shaped: scalars, lists and nested objects only
Metadata = Dict[str, JsonValue]

def to_utc_naive(value: datetime) -> datetime:
    """Timestamps are stored as naive UTC"""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value

UtcDatetime = Annotated[datetime, AfterValidator(to_utc_naive)]

def clamp_confidence(value: Optional[int]) -> Optional[int]:
    if value is None:
        return value
    return max(0, min(100, value))

Confidence = Annotated[int, AfterValidator(clamp_confidence)]

def ensure_after(start: Optional[datetime], end: Optional[datetime], message: str) -> None:
    if start is not None and end is not None and end <= start:
        raise ValueError(message)

class CamelModel(BaseModel):
    """Input model accepting both snake_case and camelCase keys"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
