"""Forward-compatible enum decoding shared by both pipelines."""

from dataclasses import dataclass
from enum import IntEnum
from typing import TypeVar


@dataclass(frozen=True, slots=True)
class Unrecognized:
    """An enum code outside the known set, kept verbatim."""

    code: int

    def __str__(self) -> str:
        return f"UNRECOGNIZED({self.code})"


E = TypeVar("E", bound=IntEnum)


def lookup_enum(enum_cls: type[E], code: int) -> E | Unrecognized:
    """Map a numeric code onto `enum_cls`, or wrap it as Unrecognized."""
    try:
        return enum_cls(code)
    except ValueError:
        return Unrecognized(code)


def enum_name(value: IntEnum | Unrecognized | None) -> str | None:
    """Render a decoded enum for logs and JSON summaries."""
    if value is None:
        return None
    if isinstance(value, Unrecognized):
        return str(value)
    return value.name
