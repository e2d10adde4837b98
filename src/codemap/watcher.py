"""
Watch mode: regenerate the output whenever watched files change.

Provides file system monitoring using the watchdog library with:
- a static snapshot of watchable directories taken at start time
- name based filtering (hidden files, own output files, extension filter)
- a debouncer that turns event bursts into a single batch callback
"""

from __future__ import annotations

import os
import queue
import threading
import time
from collections.abc import Callable, Sequence
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator
from watchdog.events import (
    DirModifiedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from codemap.classifier import is_directory_eligible
from codemap.config import DEFAULT_DEBOUNCE_MS, DEFAULT_OUTPUT_NAMES, normalize_extensions
from codemap.logging import logger

BatchCallback = Callable[[list[str]], None]

_STOP = object()


class WatchOptions(BaseModel):
    """Options for :class:`Watcher`."""

    model_config = ConfigDict(frozen=True)

    ignore_dirs: tuple[str, ...] = ()
    extension_filter: frozenset[str] | None = None
    debounce_ms: int = Field(default=DEFAULT_DEBOUNCE_MS, ge=0)
    output_names: frozenset[str] = DEFAULT_OUTPUT_NAMES

    @field_validator("extension_filter", mode="before")
    @classmethod
    def _normalize_filter(cls, value: object) -> frozenset[str] | None:
        if not value:
            return None
        return normalize_extensions(tuple(value))  # type: ignore[arg-type]


def collect_watch_directories(root: Path, ignore_dirs: Sequence[str] = ()) -> list[Path]:
    """Snapshot every directory to watch under ``root``.

    Uses the scanner's directory rules; symbolic links are not followed and
    directories that cannot be listed are left out.

    Args:
        root (Path): the watched root, always the first element
        ignore_dirs (Sequence[str]): directory names ignored on top of the defaults

    Returns:
        list[Path]: the directories in pre-order, siblings sorted by name
    """
    dirs: list[Path] = []
    stack = [root]
    while stack:
        current = stack.pop()
        dirs.append(current)
        try:
            with os.scandir(current) as it:
                children = sorted(
                    (
                        Path(e.path)
                        for e in it
                        if e.is_dir(follow_symlinks=False) and is_directory_eligible(e.name, ignore_dirs)
                    ),
                    key=lambda p: p.name,
                )
        except OSError:
            continue
        stack.extend(reversed(children))
    return dirs


def should_trigger_rebuild(
    name: str,
    extension_filter: frozenset[str] | None = None,
    output_names: frozenset[str] = DEFAULT_OUTPUT_NAMES,
) -> bool:
    """Decide whether a change to ``name`` should regenerate the output.

    Args:
        name (str): the base name of the changed path
        extension_filter (frozenset[str] | None): when set, only these extensions trigger
        output_names (frozenset[str]): file names written by the tool itself

    Returns:
        bool: True if the change should trigger a rebuild
    """
    if not name or name.startswith(".") or name in output_names:
        return False
    if extension_filter:
        return Path(name).suffix.lower() in extension_filter
    return True


class Debouncer:
    """Batch rapid change notifications into one callback.

    Producers call :meth:`submit` from any thread. A single worker thread
    drains the queue, keeps the pending set, and pushes the deadline back on
    every new path. When the deadline passes with paths pending, the callback
    receives the whole deduplicated batch exactly once.
    """

    def __init__(self, callback: BatchCallback, delay_ms: int = DEFAULT_DEBOUNCE_MS) -> None:
        self._callback = callback
        self._delay = delay_ms / 1000.0
        self._queue: queue.Queue[object] = queue.Queue()
        self._thread: threading.Thread | None = None

    @property
    def delay_ms(self) -> int:
        return int(self._delay * 1000)

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        q: queue.Queue[object] = queue.Queue()
        self._queue = q
        self._thread = threading.Thread(target=self._run, args=(q,), name="codemap-debouncer", daemon=True)
        self._thread.start()

    def submit(self, path: str) -> None:
        self._queue.put(path)

    def stop(self, timeout: float | None = 5.0) -> None:
        """Stop the worker; pending paths are dropped, not flushed."""
        thread = self._thread
        if thread is None:
            return
        self._thread = None
        self._queue.put(_STOP)
        if thread is not threading.current_thread():
            thread.join(timeout=timeout)

    def _run(self, q: queue.Queue[object]) -> None:
        pending: dict[str, None] = {}
        deadline: float | None = None
        while True:
            timeout = None if deadline is None else max(0.0, deadline - time.monotonic())
            try:
                item = q.get(timeout=timeout)
            except queue.Empty:
                batch = sorted(pending)
                pending.clear()
                deadline = None
                if batch:
                    self._emit(batch)
                continue
            if item is _STOP:
                return
            pending[str(item)] = None
            deadline = time.monotonic() + self._delay

    def _emit(self, batch: list[str]) -> None:
        try:
            self._callback(batch)
        except Exception:  # noqa: BLE001
            logger.exception("Error in change batch callback")


class _ChangeHandler(FileSystemEventHandler):
    """Forward qualifying changes in one watched directory to the debouncer."""

    def __init__(self, submit: Callable[[str], None], options: WatchOptions) -> None:
        super().__init__()
        self._submit = submit
        self._options = options

    def _consider(self, raw_path: str | bytes) -> None:
        path = os.fsdecode(raw_path)
        if should_trigger_rebuild(Path(path).name, self._options.extension_filter, self._options.output_names):
            self._submit(path)

    def on_created(self, event: FileSystemEvent) -> None:
        self._consider(event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if isinstance(event, DirModifiedEvent):
            return
        self._consider(event.src_path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._consider(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        self._consider(event.src_path)
        self._consider(event.dest_path)


class Watcher:
    """Watch a project tree and call ``on_change_batch`` with debounced batches.

    The state machine is ``idle -> running -> idle``; :meth:`start` while
    running and :meth:`stop` while idle are no-ops. :meth:`stop` may be
    called from a signal handler.
    """

    def __init__(
        self,
        root: Path | str,
        on_change_batch: BatchCallback,
        options: WatchOptions | None = None,
        observer_factory: Callable[[], BaseObserver] = Observer,
    ) -> None:
        self._root = Path(root).absolute()
        self._options = options or WatchOptions()
        self._observer_factory = observer_factory
        self._debouncer = Debouncer(on_change_batch, self._options.debounce_ms)
        self._observer: BaseObserver | None = None
        self._watched: list[Path] = []
        self._lock = threading.RLock()
        self._stopped = threading.Event()
        self._stopped.set()

    @property
    def watched_directories(self) -> list[Path]:
        return list(self._watched)

    def start(self) -> None:
        with self._lock:
            if self._observer is not None:
                return
            directories = collect_watch_directories(self._root, self._options.ignore_dirs)
            observer = self._observer_factory()
            handler = _ChangeHandler(self._debouncer.submit, self._options)
            self._debouncer.start()
            try:
                observer.start()
            except Exception:
                self._debouncer.stop()
                raise
            # A running observer starts each emitter inside schedule(), so
            # attach failures surface here one directory at a time.
            watched: list[Path] = []
            for directory in directories:
                try:
                    observer.schedule(handler, str(directory), recursive=False)
                except OSError as e:
                    logger.warning("Cannot watch %s: %s", directory, e)
                    continue
                watched.append(directory)
            self._observer = observer
            self._watched = watched
            self._stopped.clear()
            logger.info("Watch mode active - monitoring %d directories", len(watched))

    def stop(self) -> None:
        with self._lock:
            observer = self._observer
            if observer is None:
                return
            self._observer = None
            self._watched = []
            observer.stop()
            self._debouncer.stop()
            if observer is not threading.current_thread():
                observer.join(timeout=5.0)
            self._stopped.set()
            logger.info("Watch mode stopped")

    def is_running(self) -> bool:
        with self._lock:
            return self._observer is not None

    def wait(self, timeout: float | None = None) -> bool:
        """Block until :meth:`stop` is called.

        Returns:
            bool: True once stopped, False if ``timeout`` elapsed first
        """
        return self._stopped.wait(timeout)
