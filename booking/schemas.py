# booking/schemas.py
import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, StrictStr


class AppointmentRequest(BaseModel):
    # absent or null fields are reported as missing, not as malformed JSON
    model_config = ConfigDict(populate_by_name=True)

    first_name: Optional[StrictStr] = Field(None, alias="firstName")
    last_name: Optional[StrictStr] = Field(None, alias="lastName")
    visit_date: Optional[StrictStr] = Field(None, alias="visitDate")   # YYYY-MM-DD


class AppointmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    visit_date: dt.date = Field(alias="visitDate")
    created_at: dt.datetime = Field(alias="createdAt")


class ErrorResponse(BaseModel):
    error: str
    message: str
