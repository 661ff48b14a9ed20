from finance_tracker.storage.base import KeyValueStore


class InMemoryStore(KeyValueStore):
    """Volatile store, used in tests and when no data directory is configured."""

    def __init__(self, initial: dict[str, str] | None = None):
        self.values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def remove(self, key: str) -> None:
        self.values.pop(key, None)

    def get_all_keys(self) -> list[str]:
        return list(self.values)
