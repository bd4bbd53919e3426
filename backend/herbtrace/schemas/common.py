"""Common schema pieces shared by the stage, chain and auth schemas.

The frontend speaks camelCase (``collectorId``, ``testedQuantityKg``);
Python code uses snake_case.  ``CamelModel`` accepts both on input and
emits camelCase on output.
"""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

NonBlankStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class GeoPoint(CamelModel):
    """A latitude/longitude pair. Both halves are always required together."""
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class MessageResponse(CamelModel):
    message: str
