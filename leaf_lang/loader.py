import logging
import os
from abc import ABC, abstractmethod
from typing import Dict, Optional

from .exceptions import FileDoesNotExist

log = logging.getLogger(__name__)


class FileLoader(ABC):
    """Abstracts template file access so the compiler can be hosted anywhere."""

    @abstractmethod
    def load(self, path: str) -> bytes: ...

    def join(self, base: str, name: str) -> str:
        return os.path.join(base, name)


class DiskLoader(FileLoader):
    """Reads template files from the local filesystem."""

    def load(self, path: str) -> bytes:
        try:
            with open(path, "rb") as f:
                data = f.read()
        except (OSError, ValueError):
            raise FileDoesNotExist(path) from None
        log.debug("Loaded %s (%d bytes)", path, len(data))
        return data


class MemoryLoader(FileLoader):
    """Serves templates from a dict of path -> source, for tests and embedding."""

    def __init__(self, files: Optional[Dict[str, bytes]] = None):
        self.files: Dict[str, bytes] = {}
        for path, source in (files or {}).items():
            self.add(path, source)

    def add(self, path: str, source) -> None:
        if isinstance(source, str):
            source = source.encode("utf-8")
        self.files[os.path.normpath(path)] = bytes(source)

    def load(self, path: str) -> bytes:
        try:
            return self.files[os.path.normpath(path)]
        except KeyError:
            raise FileDoesNotExist(path) from None
