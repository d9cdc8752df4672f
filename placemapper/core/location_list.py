"""List collaborator: the on-screen list of placed and unresolved entries."""
import itertools
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional
from placemapper.core.models import UnresolvedEntry


class LocationListRenderer(ABC):
    """Operations the registry needs from the location list UI."""

    @abstractmethod
    def add_entry(self, location_id: int, label: str) -> None:
        pass

    @abstractmethod
    def add_unresolved_entry(self, query: str, is_error: bool) -> str:
        """Add a not-found/error row and return its row key."""
        pass

    @abstractmethod
    def remove_entry(self, location_id: int) -> None:
        pass

    @abstractmethod
    def remove_unresolved_entry(self, row_key: str) -> None:
        pass

    @abstractmethod
    def update_label(self, location_id: int, label: str) -> None:
        pass


@dataclass
class ListRow:
    """One row of the location list."""
    key: str
    text: str
    location_id: Optional[int] = None
    query: Optional[str] = None
    is_error: bool = False

    @property
    def is_placed(self) -> bool:
        return self.location_id is not None


class LocationList(LocationListRenderer):
    """Row model for the list, newest row first."""

    def __init__(self):
        self.rows: List[ListRow] = []
        self._unresolved_keys = itertools.count(1)

    def _find(self, key: str) -> Optional[int]:
        for index, row in enumerate(self.rows):
            if row.key == key:
                return index
        return None

    def add_entry(self, location_id: int, label: str) -> None:
        self.rows.insert(0, ListRow(key=f"loc-{location_id}", text=label, location_id=location_id))

    def add_unresolved_entry(self, query: str, is_error: bool) -> str:
        key = f"unresolved-{next(self._unresolved_keys)}"
        message = UnresolvedEntry(query, is_error).message
        self.rows.insert(0, ListRow(key=key, text=f'"{query}" - {message}', query=query, is_error=is_error))
        return key

    def _remove_row(self, key: str) -> None:
        index = self._find(key)
        if index is not None:
            del self.rows[index]

    def remove_entry(self, location_id: int) -> None:
        self._remove_row(f"loc-{location_id}")

    def remove_unresolved_entry(self, row_key: str) -> None:
        self._remove_row(row_key)

    def update_label(self, location_id: int, label: str) -> None:
        index = self._find(f"loc-{location_id}")
        if index is not None:
            self.rows[index].text = label

    def __len__(self) -> int:
        return len(self.rows)
