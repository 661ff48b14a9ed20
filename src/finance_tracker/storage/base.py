from abc import ABC, abstractmethod


class KeyValueStore(ABC):
    """Durable string key/value storage shared by the ledger and price cache."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value or None when the key is absent."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete a key. Missing keys are ignored."""
        pass

    @abstractmethod
    def get_all_keys(self) -> list[str]:
        pass

    def remove_many(self, keys: list[str]) -> None:
        for key in keys:
            self.remove(key)
