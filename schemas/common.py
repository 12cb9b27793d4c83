# common.py
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
from pydantic import BaseModel, ConfigDict, TypeAdapter
from pydantic.alias_generators import to_camel

from models.models import utc_now


TWO_PLACES = Decimal("0.01")


def round2(value: Decimal) -> Decimal:
    return Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC so expiry comparisons never mix naive and aware values."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class DocumentModel(BaseModel):
    """
    Base of every record stored in the document store.
    Persisted and returned with camelCase keys; accepted in either case.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude={"id"})


_DATETIME = TypeAdapter(datetime)


def now_json() -> str:
    """Current UTC time in the same JSON form the schemas persist datetimes in."""
    return _DATETIME.dump_python(utc_now(), mode="json")
