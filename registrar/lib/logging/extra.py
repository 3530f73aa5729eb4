import inspect
import json
import logging
import string
import textwrap
import typing as t

import pygments
from pygments.formatters import Terminal256Formatter
from pygments.lexers.data import JsonLexer  # pyright: ignore [reportMissingTypeStubs]
from pygments.style import Style

from .json import JSONEncoder
from .style import LogStyle

# attributes of a bare LogRecord, plus those set while formatting; anything else arrived through `extra=`
ReservedKeys = frozenset(vars(logging.LogRecord("", logging.NOTSET, "", 0, "", None, None))) | {
    "asctime",
    "exception",
    "id",
    "log_color",
    "message",
}


class ExtraFormatter(logging.Formatter):
    """Wraps a base formatter and appends the record's `extra` fields as JSON.

    Multi-line messages are indented under the first line, and the JSON is
    highlighted when the handler writes to a terminal.
    """

    def __init__(
        self,
        base: type[logging.Formatter],
        format: str | None,
        datefmt: str | None = None,
        indent: bool = True,
        pyg_style: t.Type[Style] = LogStyle,
        style: t.Literal["%", "{", "$"] = "%",
        validate: bool = True,
        *,
        defaults: t.Any = None,
        **kwargs: t.Any,
    ):
        self.base = base(format, datefmt=datefmt, style=style, validate=validate, defaults=defaults, **kwargs)
        self.pyg_style = pyg_style
        self.handler: logging.Handler | None = None
        self.indent = indent

    def format(self, record: logging.LogRecord) -> str:
        self._indent_continuation_lines(record)
        message = self.base.format(record)

        extra = {k: v for k, v in record.__dict__.items() if k not in ReservedKeys}
        if not extra:
            return message
        if self.handler is None:
            self.handler = self._calling_handler()

        js = json.dumps(extra, sort_keys=True, indent=(4 if self.indent else None), cls=JSONEncoder)
        return f"{message} {self._highlight(js).strip()}"

    def _indent_continuation_lines(self, record: logging.LogRecord) -> None:
        msg = record.getMessage()
        if "\n" not in msg:
            return
        formatted = self.base.format(record)
        prefix = formatted[: formatted.find(msg)]
        width = sum(1 for c in prefix if c in string.printable)
        first, rest = msg.split("\n", 1)
        record.msg = record.message = f"{first}\n{textwrap.indent(rest, ' ' * width)}"
        record.args = None

    @staticmethod
    def _calling_handler() -> logging.Handler | None:
        # Handler.format() is two frames up: _calling_handler <- format <- Handler.format
        frame = inspect.currentframe()
        for _ in range(2):
            if frame is None:
                return None
            frame = frame.f_back
        caller = frame.f_locals.get("self") if frame is not None else None
        return caller if isinstance(caller, logging.Handler) else None

    def _highlight(self, js: str) -> str:
        stream = getattr(self.handler, "stream", None)
        if stream is None or not stream.isatty() or getattr(self.base, "no_color", False):
            return js
        hl = pygments.highlight  # pyright: ignore [reportUnknownMemberType, reportUnknownVariableType]
        return hl(js, JsonLexer(), Terminal256Formatter(style=self.pyg_style), None)

    def __getattr__(self, name: str) -> t.Any:
        return getattr(self.base, name)
