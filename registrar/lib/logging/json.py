import typing as t

from registrar.lib.json import JSONEncoder as BaseJSONEncoder
from registrar.lib.json import JSONValue


class JSONEncoder(BaseJSONEncoder):
    def default(self, o: t.Any) -> JSONValue:
        # a log line must never fail to render
        try:
            return super().default(o)
        except TypeError:
            return repr(o)
