"""
Traversal and sync engine for s3upload.

Walks the input paths recursively on a bounded thread pool and sends every
regular file through key mapping, the freshness check and the upload.
"""

import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from threading import Event, Lock
from typing import Callable, Dict, Iterable, List, Optional, Union

import click

from s3upload.config import RunConfig
from s3upload.errors import FilesystemError, KeyCollisionError
from s3upload.excludes import PathKind, classify_path, relative_form
from s3upload.protocols.s3 import is_up_to_date, upload_object
from s3upload.utils import calculate_key, echo_notice, echo_progress


@dataclass(frozen=True)
class UploadTask:
    """A regular file found during traversal, ready for the freshness check."""

    local_path: Path
    key: str
    mtime: float
    size: int


@dataclass
class SyncResult:
    """Outcome of a run: counters plus the first error, if any."""

    uploaded: int = 0
    would_upload: int = 0
    up_to_date: int = 0
    ignored: int = 0
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class FirstError:
    """Single-assignment slot holding the first failure of a run."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._error: Optional[BaseException] = None

    def set(self, error: BaseException) -> bool:
        """Store error if the slot is empty. Returns True if it was stored."""
        with self._lock:
            if self._error is not None:
                return False
            self._error = error
            return True

    @property
    def error(self) -> Optional[BaseException]:
        with self._lock:
            return self._error


class TaskGroup:
    """
    Join barrier for the branches dispatched at one directory level.

    The group starts with one unit held by its creator, which is released
    with done() once every child has been dispatched. When the count drops to
    zero the group releases one unit of its parent, or sets its event if it
    is the root.
    """

    def __init__(self, parent: Optional["TaskGroup"] = None) -> None:
        self._parent = parent
        self._lock = Lock()
        self._count = 1
        self._event = Event()

    def add(self, n: int = 1) -> None:
        with self._lock:
            if self._count <= 0:
                raise RuntimeError("TaskGroup already completed")
            self._count += n

    def done(self) -> None:
        with self._lock:
            self._count -= 1
            finished = self._count == 0
        if finished:
            if self._parent is not None:
                self._parent.done()
            self._event.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._event.wait(timeout)


class SyncEngine:
    """
    Upload a set of files and directories to the configured bucket.

    Each input path and each directory entry becomes a branch on the thread
    pool. Every dispatched branch runs to completion; the first error is the
    one reported, and run() returns once all branches have finished.
    """

    def __init__(self, config: RunConfig, client) -> None:
        self.config = config
        self.client = client
        self._first_error = FirstError()
        self._result = SyncResult()
        self._result_lock = Lock()
        self._keys: Dict[str, Path] = {}
        self._keys_lock = Lock()
        self._executor: Optional[ThreadPoolExecutor] = None

    def run(
        self,
        paths: Iterable[Union[str, Path]],
        on_complete: Optional[Callable[[SyncResult], None]] = None,
    ) -> SyncResult:
        """
        Traverse paths and upload every stale file.

        Args:
            paths: Input files and directories, absolute or relative to the
                working directory.
            on_complete: Optional callback invoked once with the result.

        Returns:
            The run result. result.error holds the first failure, if any.
        """
        self._first_error = FirstError()
        self._result = SyncResult()
        self._keys = {}
        root = TaskGroup()
        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            self._executor = executor
            for path in paths:
                self._dispatch(self._resolve(path), root)
            root.done()
            root.wait()
        self._executor = None

        self._result.error = self._first_error.error
        if on_complete is not None:
            on_complete(self._result)
        return self._result

    def _resolve(self, path: Union[str, Path]) -> Path:
        """Make path absolute against the working directory."""
        joined = os.path.join(str(self.config.working_dir), os.fspath(path))
        return Path(os.path.normpath(joined))

    def _dispatch(self, path: Path, group: TaskGroup) -> None:
        group.add()
        try:
            self._executor.submit(self._run_branch, path, group)
        except RuntimeError as e:
            self._first_error.set(e)
            group.done()

    def _run_branch(self, path: Path, group: TaskGroup) -> None:
        """Process one path. Releases exactly one unit of group."""
        handed_off = False
        try:
            kind, st = classify_path(path, self.config.ignore, self.config.working_dir)

            if kind is PathKind.IGNORED:
                echo_notice(
                    f"Ignoring {self._display(path)}", verbose=self.config.verbose
                )
                with self._result_lock:
                    self._result.ignored += 1
            elif kind is PathKind.NOT_FOUND:
                raise FilesystemError(path, "no such file or directory")
            elif kind is PathKind.SPECIAL:
                echo_notice(
                    f"Skipping {self._display(path)} (not a regular file or directory)",
                    verbose=self.config.verbose,
                )
            elif kind is PathKind.DIRECTORY:
                children = self._list_directory(path)
                child_group = TaskGroup(parent=group)
                handed_off = True
                try:
                    for child in children:
                        self._dispatch(child, child_group)
                finally:
                    child_group.done()
            else:
                self._sync_file(
                    path, st.st_mtime, st.st_size  # type: ignore[union-attr]
                )
        except Exception as e:
            self._first_error.set(e)
        finally:
            if not handed_off:
                group.done()

    def _list_directory(self, path: Path) -> List[Path]:
        try:
            names = sorted(os.listdir(path))
        except OSError as e:
            raise FilesystemError(path, f"cannot list: {e.strerror or e}") from e
        return [path / name for name in names]

    def _register_key(self, key: str, local_path: Path) -> bool:
        """Record key for local_path. Returns False if already registered for it."""
        with self._keys_lock:
            existing = self._keys.get(key)
            if existing is None:
                self._keys[key] = local_path
                return True
        if existing == local_path:
            return False
        raise KeyCollisionError(key, existing, local_path)

    def _sync_file(self, path: Path, mtime: float, size: int) -> None:
        config = self.config
        key = calculate_key(path, config.working_dir, config.prefix)
        if not self._register_key(key, path):
            echo_notice(
                f"Skipping {self._display(path)} (already queued)",
                verbose=config.verbose,
            )
            return

        task = UploadTask(local_path=path, key=key, mtime=mtime, size=size)
        target = f"s3://{config.bucket}/{task.key}"

        if is_up_to_date(self.client, config.bucket, task.key, task.mtime):
            echo_progress(
                f"⏭️  {self._display(path)} is up to date ({target})",
                quiet=config.quiet,
            )
            with self._result_lock:
                self._result.up_to_date += 1
            return

        if config.dry_run:
            echo_progress(
                f"📝 [DRY RUN] Would upload {self._display(path)} → {target}",
                quiet=config.quiet,
            )
            with self._result_lock:
                self._result.would_upload += 1
            return

        echo_progress(
            f"⬆️  Uploading {self._display(path)} → {target}", quiet=config.quiet
        )
        upload_object(
            self.client, config.bucket, task.key, task.local_path, task.size, config.acl
        )
        echo_progress(
            click.style(f"✅ {self._display(path)} → {target}", fg="green"),
            quiet=config.quiet,
        )
        with self._result_lock:
            self._result.uploaded += 1

    def _display(self, path: Path) -> str:
        return relative_form(path, self.config.working_dir)
