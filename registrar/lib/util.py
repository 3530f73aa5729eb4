import decimal
import typing as t
from collections.abc import Mapping

from .sentinel import NotSet

KT = t.TypeVar("KT")
VT = t.TypeVar("VT")
RecursiveMapping = VT | Mapping[KT, "RecursiveMapping[KT, VT]"]


def deep_update(
    d1: dict[KT, RecursiveMapping[KT, VT]], d2: Mapping[KT, RecursiveMapping[KT, VT]]
) -> dict[KT, RecursiveMapping[KT, VT]]:
    result = d1.copy()
    for k, v in d2.items():
        if isinstance(v, Mapping) and k in result and isinstance(result[k], Mapping):
            result[k] = deep_update(result[k], v)  # type: ignore
        else:
            result[k] = v
    return result


def round_mark(value: float, precision: int = 2) -> float:
    """Round a reported mark half away from zero; intermediate sums are never rounded.

    The float's shortest repr is rounded, so 2.675 gives 2.68 although its
    binary value lies just below the half.
    """
    quantum = decimal.Decimal(1).scaleb(-precision)
    return float(decimal.Decimal(repr(value)).quantize(quantum, rounding=decimal.ROUND_HALF_UP))


def provided(**kwargs: t.Any) -> dict[str, t.Any]:
    """The keyword arguments that are not NotSet, for building UPDATE values"""
    return {k: v for k, v in kwargs.items() if not isinstance(v, NotSet)}
