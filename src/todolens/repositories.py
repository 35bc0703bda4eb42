from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from threading import RLock
from typing import Callable, Dict, List, Optional

from .models import TodoEntity

Mutator = Callable[[TodoEntity], TodoEntity]


# PUBLIC_INTERFACE
class Repository(ABC):
    """Abstract repository contract for todo storage backends."""

    @abstractmethod
    def create(self, todo: TodoEntity) -> TodoEntity:
        """Store a new todo under its owner and its space. Return the stored copy."""

    @abstractmethod
    def find(self, todo_id: str, user_id: Optional[str] = None) -> Optional[TodoEntity]:
        """
        Return a todo by id, or None if not found.
        When user_id is given only that user's todos are searched.
        """

    @abstractmethod
    def list(self, user_id: str) -> List[TodoEntity]:
        """Return the todos owned by user_id in insertion order."""

    @abstractmethod
    def list_space(self, space_id: str) -> List[TodoEntity]:
        """Return the todos created in space_id in creation order."""

    @abstractmethod
    def update(self, todo_id: str, mutator: Mutator, user_id: Optional[str] = None) -> Optional[TodoEntity]:
        """
        Apply mutator to a copy of the todo and store the result.
        Return the updated todo, or None if not found (for user_id: not owned by that user).
        """

    @abstractmethod
    def count(self) -> int:
        """Return the number of stored todos."""


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository keeping two indexes over one table of todos:
    owner user id -> todo ids, and space id -> todo ids, both insertion-ordered.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: Dict[str, TodoEntity] = {}
        self._by_user: Dict[str, Dict[str, None]] = {}
        self._by_space: Dict[str, List[str]] = {}

    def create(self, todo: TodoEntity) -> TodoEntity:
        entity = copy.deepcopy(todo)
        todo_id = entity["id"]
        user_id = entity["createdBy"]["id"]
        space_id = entity["spaceId"]
        with self._lock:
            if todo_id in self._items:
                raise ValueError(f"Duplicate todo id {todo_id}")
            self._items[todo_id] = entity
            self._by_user.setdefault(user_id, {})[todo_id] = None
            self._by_space.setdefault(space_id, []).append(todo_id)
            return copy.deepcopy(entity)

    def find(self, todo_id: str, user_id: Optional[str] = None) -> Optional[TodoEntity]:
        with self._lock:
            if not self._visible(todo_id, user_id):
                return None
            return copy.deepcopy(self._items[todo_id])

    def list(self, user_id: str) -> List[TodoEntity]:
        with self._lock:
            ids = self._by_user.get(user_id, {})
            return [copy.deepcopy(self._items[i]) for i in ids]

    def list_space(self, space_id: str) -> List[TodoEntity]:
        with self._lock:
            ids = self._by_space.get(space_id, [])
            return [copy.deepcopy(self._items[i]) for i in ids]

    def update(self, todo_id: str, mutator: Mutator, user_id: Optional[str] = None) -> Optional[TodoEntity]:
        with self._lock:
            if not self._visible(todo_id, user_id):
                return None
            existing = self._items[todo_id]
            updated = mutator(copy.deepcopy(existing))

            # Both indexes are keyed on these fields
            if (
                updated["id"] != existing["id"]
                or updated["createdBy"]["id"] != existing["createdBy"]["id"]
                or updated["spaceId"] != existing["spaceId"]
            ):
                raise ValueError("id, createdBy.id and spaceId of a todo are immutable")

            self._items[todo_id] = updated
            return copy.deepcopy(updated)

    def count(self) -> int:
        with self._lock:
            return len(self._items)

    def _visible(self, todo_id: str, user_id: Optional[str]) -> bool:
        if user_id is None:
            return todo_id in self._items
        return todo_id in self._by_user.get(user_id, {})


# PUBLIC_INTERFACE
def get_repository() -> Repository:
    """
    Factory for the process-wide store. Called once at application start;
    the instance is then shared with the dispatcher and the routers.
    """
    return InMemoryRepository()
