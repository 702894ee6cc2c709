"""
History panel glue around a NameCache.

Turns raw history entries into labelled rows and asks the owner to
re-render whenever a name in the current list settles. Layout and drawing
stay with the caller.
"""

from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Mapping, Optional

from .cache import NameCache
from .extract import extract_entry_id, extract_identifier, placeholder_label


@dataclass(frozen=True)
class HistoryRow:
    position: int
    entry_id: Optional[Any]
    identifier: Optional[str]
    label: str


class HistoryPanel:
    """
    Renderer-facing view of the history list.

    `on_change` receives the fresh rows after any visible name settles. It is
    called from the worker thread that finished the lookup, so GUI callers
    should marshal it onto their UI thread.
    """

    def __init__(
        self,
        cache: NameCache,
        history: Optional[Iterable[Mapping[str, Any]]] = None,
        on_change: Optional[Callable[[List[HistoryRow]], None]] = None,
        on_select: Optional[Callable[[Any], None]] = None,
        on_close: Optional[Callable[[], None]] = None,
    ):
        self.cache = cache
        self.on_change = on_change
        self.on_select = on_select
        self.on_close = on_close
        self.is_open = False
        self._history: List[Mapping[str, Any]] = []
        self._unsubscribe = cache.subscribe(self._handle_update)
        if history is not None:
            self.set_history(history)

    def set_history(self, history: Iterable[Mapping[str, Any]]) -> List[HistoryRow]:
        """Replace the list shown and kick off lookups for new identifiers."""
        self._history = list(history or [])
        return self.rows()

    def rows(self) -> List[HistoryRow]:
        rows = []
        for position, entry in enumerate(self._history):
            identifier = extract_identifier(entry)
            if identifier is None:
                label = placeholder_label(position)
            else:
                label = self.cache.get_or_resolve(identifier)
            rows.append(HistoryRow(position, extract_entry_id(entry), identifier, label))
        return rows

    def labels(self) -> List[str]:
        return [row.label for row in self.rows()]

    def _handle_update(self, identifier: str, display_name: str) -> None:
        if self.on_change is None:
            return
        if any(extract_identifier(entry) == identifier for entry in self._history):
            self.on_change(self.rows())

    def open(self) -> List[HistoryRow]:
        self.is_open = True
        return self.rows()

    def close(self) -> None:
        self.is_open = False
        if self.on_close:
            self.on_close()

    def select(self, position: int) -> Optional[Any]:
        """
        Report the entry id at `position` to on_select and close the panel.

        Rows without an entry id are not selectable; returns None for them.
        """
        if position < 0 or position >= len(self._history):
            raise IndexError(f"no history row at position {position}")
        entry_id = extract_entry_id(self._history[position])
        if entry_id is None:
            return None
        if self.on_select:
            self.on_select(entry_id)
        self.close()
        return entry_id

    def detach(self) -> None:
        """Stop listening to the cache. The cache itself stays usable."""
        self._unsubscribe()
