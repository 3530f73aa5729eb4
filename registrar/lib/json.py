from __future__ import annotations

import datetime
import decimal
import enum
import functools
import json as pyjson
import pathlib
import typing as t

JSONPrimitive = str | int | float | bool | None
JSONValue = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]


@functools.cache
def _encoder_map() -> dict[type, t.Callable[[t.Any], JSONValue]]:
    return {
        datetime.date: lambda o: o.isoformat(),
        datetime.datetime: lambda o: o.isoformat(),
        decimal.Decimal: str,
        enum.Enum: lambda o: o.value,
        pathlib.Path: str,
        set: list,
        frozenset: list,
    }


class JSONEncoder(pyjson.JSONEncoder):
    """Encodes pydantic models (json mode), enums by value and the usual scalars.

    Used as the engine's JSONB serializer and by the log formatter.
    """

    def get_encoders(self) -> dict[type, t.Callable[[t.Any], JSONValue]]:
        return _encoder_map()

    def default(self, o: t.Any) -> JSONValue:
        if hasattr(o, "model_dump"):
            return o.model_dump(mode="json")

        for tp, encoder in self.get_encoders().items():
            if isinstance(o, tp):
                return encoder(o)

        return pyjson.JSONEncoder.default(self, o)


def dumps(obj: t.Any, *, cls: type[pyjson.JSONEncoder] = JSONEncoder, **kw: t.Any) -> str:
    return pyjson.dumps(obj, cls=cls, **kw)


def loads(s: str | bytes | bytearray, **kw: t.Any) -> JSONValue:
    return pyjson.loads(s, **kw)
