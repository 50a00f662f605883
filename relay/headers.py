"""
Case-insensitive ordered header multimap.

Entries keep the spelling and position of the first time a name was seen.
``add`` appends a new entry for a name (repeated headers such as
``set-cookie``), while ``merge`` folds a value onto the existing entry with
``", "`` the way repeated response headers are combined before relaying.
"""

from typing import Iterable, Iterator, List, Optional, Tuple

HeaderItems = Iterable[Tuple[str, str]]


class HeaderMultiMap:
    def __init__(self, items: Optional[HeaderItems] = None):
        self._entries: List[Tuple[str, str]] = []
        for name, value in items or ():
            self.add(name, value)

    @classmethod
    def from_raw(cls, raw: Iterable[Tuple[bytes, bytes]]) -> "HeaderMultiMap":
        """Build from ASGI/httpx raw byte pairs, decoding as latin-1."""
        return cls(
            (name.decode("latin-1"), value.decode("latin-1")) for name, value in raw
        )

    def add(self, name: str, value: str) -> None:
        self._entries.append((name, value))

    def merge(self, name: str, value: str) -> None:
        key = name.lower()
        for index, (existing_name, existing_value) in enumerate(self._entries):
            if existing_name.lower() == key:
                self._entries[index] = (existing_name, f"{existing_value}, {value}")
                return
        self._entries.append((name, value))

    def set(self, name: str, value: str) -> None:
        """Replace every entry for ``name`` with a single value."""
        key = name.lower()
        for index, (existing_name, _) in enumerate(self._entries):
            if existing_name.lower() == key:
                self._entries[index] = (existing_name, value)
                self._entries[index + 1:] = [
                    entry for entry in self._entries[index + 1:] if entry[0].lower() != key
                ]
                return
        self._entries.append((name, value))

    def setdefault(self, name: str, value: str) -> str:
        if name not in self:
            self.add(name, value)
            return value
        return self.get(name)

    def remove(self, name: str) -> None:
        key = name.lower()
        self._entries = [entry for entry in self._entries if entry[0].lower() != key]

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        values = self.get_all(name)
        if not values:
            return default
        return ", ".join(values)

    def get_all(self, name: str) -> List[str]:
        key = name.lower()
        return [value for entry_name, value in self._entries if entry_name.lower() == key]

    def items(self) -> List[Tuple[str, str]]:
        return list(self._entries)

    def names(self) -> List[str]:
        names = []
        seen = set()
        for name, _ in self._entries:
            if name.lower() not in seen:
                seen.add(name.lower())
                names.append(name)
        return names

    def raw(self) -> List[Tuple[bytes, bytes]]:
        """Lower-cased latin-1 byte pairs, as ASGI responses expect them."""
        return [
            (name.lower().encode("latin-1"), value.encode("latin-1"))
            for name, value in self._entries
        ]

    def copy(self) -> "HeaderMultiMap":
        return HeaderMultiMap(self._entries)

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        key = name.lower()
        return any(entry_name.lower() == key for entry_name, _ in self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HeaderMultiMap):
            return NotImplemented
        return [(n.lower(), v) for n, v in self._entries] == [
            (n.lower(), v) for n, v in other._entries
        ]

    def __repr__(self) -> str:
        return f"HeaderMultiMap({self._entries!r})"
