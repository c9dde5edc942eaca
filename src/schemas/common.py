from datetime import datetime

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True, use_enum_values=False)


class TimestampSchema(BaseSchema):
    created_at: datetime | None = None
    updated_at: datetime | None = None
