import datetime

import pydantic as p

from .id import UserID


class BaseModel(p.BaseModel):
    # logging configuration fields are aliased to the keys dictConfig expects ("()", "class")
    model_config = p.ConfigDict(serialize_by_alias=True)


class WithCtime(BaseModel):
    create_time: datetime.datetime


class WithMtime(BaseModel):
    update_time: datetime.datetime


class WithTimestamps(WithCtime, WithMtime): ...


class WithAuthors(BaseModel):
    created_by: UserID
    updated_by: UserID
