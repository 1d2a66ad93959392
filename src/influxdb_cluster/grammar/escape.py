"""Escaping rules for the line protocol and InfluxQL identifiers."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Iterable, Union
import re

from .ds import Raw


class Escaper:
    """Prefixes every special character (and backslash) with ``escaper``.

    The escaped value is wrapped in ``wrap`` on both sides.
    """

    def __init__(self, chars: Iterable[str], wrap: str = "", escaper: str = "\\") -> None:
        specials = "".join(chars) + "\\"
        self._re = re.compile("[" + re.escape(specials) + "]")
        self.wrap = wrap
        self.escaper = escaper

    def escape(self, value: Union[str, Raw]) -> str:
        if isinstance(value, Raw):
            return value.get_value()
        escaped = self._re.sub(lambda m: self.escaper + m.group(0), str(value))
        return f"{self.wrap}{escaped}{self.wrap}"

    __call__ = escape


measurement_escaper = Escaper([",", " "])
tag_escaper = Escaper([",", "=", " "])
quote_escaper = Escaper(['"'], '"')
string_lit_escaper = Escaper(["'"], "'")

# escape.tag('my tag=') -> 'my\ tag\='
# escape.quoted('my_"db') -> '"my_\"db"'
escape = SimpleNamespace(
    measurement=measurement_escaper.escape,
    tag=tag_escaper.escape,
    quoted=quote_escaper.escape,
    string_lit=string_lit_escaper.escape,
)
