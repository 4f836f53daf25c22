"""Key/value storage over a directory tree.

Keys are relative POSIX paths (`queues/twitter/new_messages/message-1.json`).
All durable state of a tenant (ledger, detail records, queues, receipts,
images) goes through this interface.
"""
import json
import os
import shutil
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional


class Storage(ABC):
    """Operations the pipeline needs from its backing store."""

    @abstractmethod
    def list_by_prefix(self, prefix: str) -> List[str]:
        """Return keys starting with `prefix`, sorted lexicographically."""

    @abstractmethod
    def read(self, key: str) -> bytes:
        ...

    @abstractmethod
    def write(self, key: str, data: bytes) -> None:
        ...

    @abstractmethod
    def move(self, key: str, target: "Storage", target_key: Optional[str] = None) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    @abstractmethod
    def exists(self, key: str) -> bool:
        ...

    @abstractmethod
    def modified_at(self, key: str) -> datetime:
        """Time the value under `key` was last written."""

    def ensure_dir(self, key: str) -> None:
        """Create a container for keys below `key`, where the store needs one."""

    def read_text(self, key: str) -> str:
        return self.read(key).decode("utf-8")

    def write_text(self, key: str, text: str) -> None:
        self.write(key, text.encode("utf-8"))

    def read_json(self, key: str, default: Any = None) -> Any:
        if not self.exists(key):
            return default
        return json.loads(self.read_text(key))

    def write_json(self, key: str, value: Any) -> None:
        self.write_text(key, json.dumps(value, indent=2, ensure_ascii=False))


class FileStorage(Storage):
    """Storage backed by plain files below `root`."""

    def __init__(self, root: Path):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def path(self, key: str) -> Path:
        return self.root / key

    def list_by_prefix(self, prefix: str) -> List[str]:
        directory, _, name_prefix = prefix.rpartition("/")
        base = self.root / directory if directory else self.root
        try:
            names = [
                p.name for p in base.iterdir()
                if p.is_file() and p.name.startswith(name_prefix) and not p.name.startswith(".")
            ]
        except FileNotFoundError:
            return []
        names.sort()
        return [f"{directory}/{name}" if directory else name for name in names]

    def read(self, key: str) -> bytes:
        return self.path(key).read_bytes()

    def write(self, key: str, data: bytes) -> None:
        path = self.path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_name(f".{path.name}.tmp")
        with open(tmp_path, "wb") as f:
            f.write(data)
        os.replace(tmp_path, path)

    def move(self, key: str, target: Storage, target_key: Optional[str] = None) -> None:
        target_key = target_key or key
        if isinstance(target, FileStorage):
            destination = target.path(target_key)
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(self.path(key)), str(destination))
            return
        target.write(target_key, self.read(key))
        self.delete(key)

    def delete(self, key: str) -> None:
        self.path(key).unlink(missing_ok=True)

    def exists(self, key: str) -> bool:
        return self.path(key).is_file()

    def modified_at(self, key: str) -> datetime:
        return datetime.fromtimestamp(self.path(key).stat().st_mtime, tz=timezone.utc)

    def ensure_dir(self, key: str) -> None:
        self.path(key).mkdir(parents=True, exist_ok=True)
