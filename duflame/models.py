from __future__ import annotations
import os
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

ROOT_NAME = "[ROOT]"
OTHERS_NAME = "[OTHERS]"

@dataclass
class UsageNode:
    name: str
    size: int = 0
    is_dir: bool = True
    aggregate: bool = False
    parent: Optional["UsageNode"] = field(default=None, repr=False, compare=False)
    children: List["UsageNode"] = field(default_factory=list)

    def add_size(self, size: int):
        # caller must hold the scanner's size lock
        n = self
        while n is not None:
            n.size += size
            n = n.parent

    def depth(self) -> int:
        d = 0
        n = self.parent
        while n is not None:
            d += 1
            n = n.parent
        return d

    def rel_path(self) -> str:
        names: List[str] = []
        n = self
        while n.parent is not None:
            names.append(n.name)
            n = n.parent
        return os.path.join(*reversed(names)) if names else ""

    def iter_all(self) -> Iterator["UsageNode"]:
        yield self
        for c in self.children:
            yield from c.iter_all()

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "size": self.size,
            "is_dir": self.is_dir,
            "entries": [c.to_dict() for c in self.children],
        }

@dataclass
class Entry:
    name: str
    is_dir: bool
    size: int = 0
    error: Optional[OSError] = None

@dataclass
class ScanError:
    path: str
    error: BaseException

@dataclass
class ScanResult:
    root: UsageNode
    errors: List[ScanError]
    files: int
    dirs: int
    bytes_scanned: int
    elapsed_sec: float
    workers: int
