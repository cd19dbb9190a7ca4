"""Management resource addresses.

An :class:`Address` is an ordered path of ``key=value`` elements from the
root of the management model, e.g. ``/host=master/server=server-one``.
Addresses are immutable and hashable so they can key caches and appear in
frozen result objects.

Example
-------
>>> address = Address.of(("host", "master"), ("server", "server-one"))
>>> str(address)
'/host=master/server=server-one'
>>> [str(p) for p in address.prefixes()]
['/host=master', '/host=master/server=server-one']
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Iterator

REDACTED: str = "<redacted>"

PathElement = tuple[str, str]


@dataclass(frozen=True)
class Address:
    """Ordered, immutable sequence of ``(key, value)`` path elements.

    Attributes
    ----------
    elements:
        The path elements, root first.
    """

    elements: tuple[PathElement, ...] = ()

    ROOT: ClassVar[Address]

    def __post_init__(self) -> None:
        for element in self.elements:
            if len(element) != 2 or not element[0]:
                raise ValueError(f"Invalid address element {element!r}.")

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def of(cls, *elements: PathElement) -> Address:
        """Build an address from ``(key, value)`` pairs."""
        return cls(tuple((str(k), str(v)) for k, v in elements))

    @classmethod
    def from_string(cls, text: str) -> Address:
        """Parse the canonical ``/key=value/key=value`` rendering.

        Only the form produced by ``str(address)`` is accepted; this is not
        a general command-line address grammar.

        Raises
        ------
        ValueError
            If a segment has no ``=`` separator or an empty key.
        """
        stripped = text.strip()
        if stripped in ("", "/"):
            return cls()
        elements: list[PathElement] = []
        for segment in stripped.strip("/").split("/"):
            key, sep, value = segment.partition("=")
            if not sep or not key:
                raise ValueError(f"Malformed address segment {segment!r} in {text!r}.")
            elements.append((key, value))
        return cls(tuple(elements))

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def append(self, key: str, value: str) -> Address:
        """Return a new address with one element added at the end."""
        return Address(self.elements + ((key, value),))

    def concat(self, other: Address) -> Address:
        """Return ``self`` followed by every element of ``other``."""
        return Address(self.elements + other.elements)

    def prefixes(self) -> list[Address]:
        """Return every non-root prefix, shortest first, ending with ``self``."""
        return [Address(self.elements[: i + 1]) for i in range(len(self.elements))]

    def redact_from(self, index: int, placeholder: str = REDACTED) -> Address:
        """Replace the value of every element at or after ``index``."""
        kept = self.elements[:index]
        hidden = tuple((key, placeholder) for key, _ in self.elements[index:])
        return Address(kept + hidden)

    def value_of(self, key: str) -> str | None:
        """Return the value of the first element with ``key``, if any."""
        for element_key, value in self.elements:
            if element_key == key:
                return value
        return None

    @property
    def is_root(self) -> bool:
        return not self.elements

    @property
    def last(self) -> PathElement | None:
        return self.elements[-1] if self.elements else None

    def as_list(self) -> list[PathElement]:
        return list(self.elements)

    def __iter__(self) -> Iterator[PathElement]:
        return iter(self.elements)

    def __len__(self) -> int:
        return len(self.elements)

    def __str__(self) -> str:
        if not self.elements:
            return "/"
        return "".join(f"/{key}={value}" for key, value in self.elements)


Address.ROOT = Address()
