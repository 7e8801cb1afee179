"""Session-scoped key/value storage backends."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from ..exceptions import StorageQuotaExceededError


@runtime_checkable
class SessionStorage(Protocol):
    """String key/value store living as long as the client session."""

    def get_item(self, key: str) -> str | None:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...


@dataclass(slots=True)
class InMemorySessionStorage:
    """Process-local session storage with an optional byte quota.

    The quota counts UTF-8 bytes of keys and values, mirroring how browser
    session storage rejects writes once its budget is exhausted.
    """

    quota_bytes: int | None = None
    _items: dict[str, str] = field(default_factory=dict)

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            projected = self.used_bytes() - self._entry_size(key) + _size(key) + _size(value)
            if projected > self.quota_bytes:
                raise StorageQuotaExceededError(
                    f"writing '{key}' needs {projected} bytes, quota is {self.quota_bytes}"
                )
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)

    def used_bytes(self) -> int:
        return sum(_size(key) + _size(value) for key, value in self._items.items())

    def _entry_size(self, key: str) -> int:
        value = self._items.get(key)
        if value is None:
            return 0
        return _size(key) + _size(value)


def _size(text: str) -> int:
    return len(text.encode("utf-8"))


__all__ = ["InMemorySessionStorage", "SessionStorage"]
