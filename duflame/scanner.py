from __future__ import annotations
import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional

from .drives import default_workers
from .models import Entry, ScanError, ScanResult, UsageNode, ROOT_NAME

logger = logging.getLogger(__name__)

ErrorCb = Callable[[BaseException, str], None]  # (error, path)
ListDir = Callable[[str], List[Entry]]

def list_entries(path: str) -> List[Entry]:
    """Directory listing primitive: entries sorted by name, symlinks not followed.

    A failed lstat on a single file is attached to its entry instead of
    failing the whole listing, so the scanner can stop at that point.
    """
    out: List[Entry] = []
    with os.scandir(path) as it:
        for entry in it:
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
            except OSError as e:
                out.append(Entry(name=entry.name, is_dir=False, error=e))
                continue
            if is_dir:
                out.append(Entry(name=entry.name, is_dir=True))
                continue
            try:
                st = entry.stat(follow_symlinks=False)
            except OSError as e:
                out.append(Entry(name=entry.name, is_dir=False, error=e))
                continue
            out.append(Entry(name=entry.name, is_dir=False, size=int(st.st_size)))
    out.sort(key=lambda e: e.name)
    return out

def _log_error(err: BaseException, path: str):
    logger.warning("cannot read %s: %s", path, err)

class WaitGroup:
    """Counter of outstanding units; wait() blocks until it drops to zero."""

    def __init__(self):
        self._count = 0
        self._cond = threading.Condition()

    def add(self, n: int = 1):
        with self._cond:
            self._count += n

    def done(self):
        with self._cond:
            self._count -= 1
            if self._count <= 0:
                self._cond.notify_all()

    def wait(self):
        with self._cond:
            while self._count > 0:
                self._cond.wait()

class TreeBuilder:
    def __init__(self,
                 workers: int,
                 on_error: Optional[ErrorCb] = None,
                 list_dir: ListDir = list_entries,
                 dirs_only: bool = False):
        self.workers = max(1, workers)
        self.on_error = on_error or _log_error
        self.list_dir = list_dir
        self.dirs_only = dirs_only

        self.errors: List[ScanError] = []
        self.files = 0
        self.dirs = 0
        self.bytes_scanned = 0

        self._tokens = threading.BoundedSemaphore(self.workers)
        self._size_lock = threading.Lock()
        self._errors_lock = threading.Lock()
        self._wg = WaitGroup()
        self._pool: Optional[ThreadPoolExecutor] = None

    def build(self, root: UsageNode, root_path: str) -> UsageNode:
        # threads beyond the budget park on the token semaphore
        with ThreadPoolExecutor(max_workers=self.workers + 4,
                                thread_name_prefix="duflame-scan") as pool:
            self._pool = pool
            self._spawn(root, root_path)
            self._wg.wait()
        self._pool = None
        return root

    def _spawn(self, node: UsageNode, path: str):
        self._wg.add()
        try:
            self._pool.submit(self._expand, node, path)
        except BaseException:
            self._wg.done()
            raise

    def _expand(self, node: UsageNode, path: str):
        try:
            with self._tokens:
                self._fill(node, path)
        except Exception as e:
            logger.exception("unexpected failure while scanning %s", path)
            self._report(e, path)
        finally:
            self._wg.done()

    def _fill(self, node: UsageNode, path: str):
        try:
            entries = self.list_dir(path)
        except OSError as e:
            self._report(e, path)
            return

        logger.debug("listed %s (%d entries)", path, len(entries))
        for entry in entries:
            entry_path = os.path.join(path, entry.name)
            if entry.error is not None:
                self._report(entry.error, entry_path)
                return

            if entry.is_dir:
                child = UsageNode(name=entry.name, parent=node)
                node.children.append(child)
                with self._size_lock:
                    self.dirs += 1
                self._spawn(child, entry_path)
                continue

            target = node
            if not self.dirs_only:
                target = UsageNode(name=entry.name, is_dir=False, parent=node)
                node.children.append(target)
            with self._size_lock:
                target.add_size(entry.size)
                self.files += 1
                self.bytes_scanned += entry.size

    def _report(self, err: BaseException, path: str):
        with self._errors_lock:
            self.errors.append(ScanError(path=path, error=err))
        try:
            self.on_error(err, path)
        except Exception:
            logger.exception("error callback failed for %s", path)

def scan_tree(root_path: str,
              workers: Optional[int] = None,
              on_error: Optional[ErrorCb] = None,
              list_dir: ListDir = list_entries,
              dirs_only: bool = False) -> ScanResult:
    t0 = time.time()
    builder = TreeBuilder(workers or default_workers(),
                          on_error=on_error, list_dir=list_dir, dirs_only=dirs_only)
    root = UsageNode(name=ROOT_NAME)
    logger.info("scanning %s with %d workers", root_path, builder.workers)
    builder.build(root, root_path)
    return ScanResult(
        root=root,
        errors=builder.errors,
        files=builder.files,
        dirs=builder.dirs,
        bytes_scanned=builder.bytes_scanned,
        elapsed_sec=time.time() - t0,
        workers=builder.workers,
    )
