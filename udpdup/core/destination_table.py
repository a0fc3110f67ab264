"""DestinationTable — the validated, ordered list of forwarding targets.

The table is built once from configuration and is read-only afterwards.
Building is all-or-nothing: a single bad entry rejects the whole table so
that a misconfigured destination stops startup instead of failing silently
at send time.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from pydantic import ValidationError

from udpdup.core.errors import InvalidDestination
from udpdup.models.destination import Destination, DestinationEntry

logger = logging.getLogger(__name__)


def _entry_fields(entry: DestinationEntry | Mapping[str, Any]) -> tuple[Any, Any]:
    if isinstance(entry, DestinationEntry):
        return entry.ip, entry.port
    if isinstance(entry, Mapping):
        return entry.get("ip"), entry.get("port")
    raise TypeError(f"unsupported destination entry type: {type(entry).__name__}")


class DestinationTable:
    """Immutable ordered sequence of ``Destination`` objects.

    Usage
    -----
    >>> table = DestinationTable.build([{"ip": "127.0.0.1", "port": 8514}])
    >>> [str(d) for d in table]
    ['127.0.0.1:8514']
    """

    __slots__ = ("_destinations",)

    def __init__(self, destinations: Iterable[Destination] = ()) -> None:
        self._destinations: tuple[Destination, ...] = tuple(destinations)

    @classmethod
    def build(
        cls, entries: Iterable[DestinationEntry | Mapping[str, Any]]
    ) -> DestinationTable:
        """Validate every raw entry and return a table.

        Raises
        ------
        InvalidDestination
            If any entry's host is not an IP literal or its port is outside
            1-65535.  No partial table is ever returned.
        """
        destinations: list[Destination] = []
        for index, entry in enumerate(entries):
            try:
                host, port = _entry_fields(entry)
            except TypeError as exc:
                raise InvalidDestination(f"dests[{index}]: {exc}", index=index) from exc
            try:
                destinations.append(Destination(host=host, port=port))
            except ValidationError as exc:
                problems = "; ".join(
                    f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                    for err in exc.errors()
                )
                raise InvalidDestination(
                    f"dests[{index}] ({host!r}, {port!r}) is invalid: {problems}",
                    index=index,
                ) from exc

        logger.info("Loaded %d destination(s)", len(destinations))
        return cls(destinations)

    def __iter__(self) -> Iterator[Destination]:
        return iter(self._destinations)

    def __len__(self) -> int:
        return len(self._destinations)

    def __bool__(self) -> bool:
        return bool(self._destinations)

    def __getitem__(self, index: int) -> Destination:
        return self._destinations[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DestinationTable):
            return NotImplemented
        return self._destinations == other._destinations

    def __hash__(self) -> int:
        return hash(self._destinations)

    def __repr__(self) -> str:
        return f"DestinationTable([{', '.join(str(d) for d in self._destinations)}])"
