import json
import os

from finance_tracker.errors import PersistenceError
from finance_tracker.logger import get_logger
from finance_tracker.storage.base import KeyValueStore

logger = get_logger(__name__)


class JsonFileStore(KeyValueStore):
    """
    Key/value store backed by a single JSON object on disk.

    Every write rewrites the whole file through a temporary sibling, so the
    file on disk always holds the last complete state.
    """

    def __init__(self, data_path: str = "store.json"):
        self.data_path = data_path
        self.values: dict[str, str] = {}
        self.load()

    def load(self) -> None:
        if not os.path.exists(self.data_path):
            self.values = {}
            return
        try:
            with open(self.data_path, encoding="utf-8") as handle:
                data = json.load(handle)
        except json.JSONDecodeError:
            logger.warning("[STORE] %s is not valid JSON; starting empty.", self.data_path)
            self.values = {}
            return
        except OSError as exc:
            raise PersistenceError(f"Cannot read {self.data_path}: {exc}") from exc

        if not isinstance(data, dict):
            logger.warning("[STORE] %s does not hold an object; starting empty.", self.data_path)
            self.values = {}
            return
        self.values = {str(key): str(value) for key, value in data.items()}

    def save(self) -> None:
        directory = os.path.dirname(self.data_path)
        temp_path = f"{self.data_path}.tmp"
        try:
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(temp_path, "w", encoding="utf-8") as handle:
                json.dump(self.values, handle, indent=2, ensure_ascii=False)
            os.replace(temp_path, self.data_path)
        except OSError as exc:
            raise PersistenceError(f"Cannot write {self.data_path}: {exc}") from exc

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value
        self.save()

    def remove(self, key: str) -> None:
        if self.values.pop(key, None) is not None:
            self.save()

    def get_all_keys(self) -> list[str]:
        return list(self.values)

    def remove_many(self, keys: list[str]) -> None:
        removed = [key for key in keys if self.values.pop(key, None) is not None]
        if removed:
            self.save()
