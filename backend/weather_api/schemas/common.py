"""
Shared schema pieces: camelCase wire names, UTC datetimes, the {status, message} envelope.
"""
from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from weather_api.services.timeutils import as_utc

# Naive values (from SQLite or from clients) are read as UTC
UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


class ApiModel(BaseModel):
    """Python attributes are snake_case; JSON keys are camelCase. Either is accepted on input."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageResponse(ApiModel):
    status: int
    message: str


class CountResponse(MessageResponse):
    """Bulk write outcome; message repeats the count for humans."""
    count: int


class IdsRequest(ApiModel):
    ids: list[str]
