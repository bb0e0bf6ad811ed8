"""Share — the registry of file systems and the grants that open them.

A ``Share`` maps file-system names to backends and to an ordered list of
grants.  Callers get a ``View`` for one name and present ``Evidence``
with every operation; the view admits the operation if any grant for
that file system is valid, allows the path, and verifies the evidence.
"""

from __future__ import annotations

import logging
import secrets
import threading
from typing import IO, TYPE_CHECKING

from grantfs.evidence import ANONYMOUS
from grantfs.events import EventBus, EventType, ShareEvent
from grantfs.exceptions import AccessDenied, AlreadyRegistered, UnknownFileSystem
from grantfs.fs.utils import clean_path, validate_path
from grantfs.fs.walk import SkipDir, walk
from grantfs.grants import DENY, permits, verify_token, with_cancel

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from grantfs.evidence import Evidence
    from grantfs.fs import FileInfo, FileSystem
    from grantfs.grants import CancelFunc, Grant

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL = 60.0


class _Issued:
    __slots__ = ("cancel", "file_system", "grant")

    def __init__(self, file_system: str, grant: Grant, cancel: CancelFunc) -> None:
        self.file_system = file_system
        self.grant = grant
        self.cancel = cancel


class Share:
    """Registry binding named file systems to their grants.

    Both maps are guarded by one lock.  Grant lists are copied out under
    the lock and evaluated outside it, so slow identity checks never block
    registration or other requests.

    Args:
        events: Bus that receives share activity; a private one is created
            if omitted.
        sweep_interval: If given, start a background sweeper at once with
            this interval in seconds.
    """

    def __init__(
        self,
        *,
        events: EventBus | None = None,
        sweep_interval: float | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self._fs: dict[str, FileSystem] = {}
        self._grants: dict[str, list[Grant]] = {}
        self._issued: dict[str, _Issued] = {}
        self.events = events if events is not None else EventBus()

        self._stop = threading.Event()
        self._sweeper: threading.Thread | None = None
        if sweep_interval is not None:
            self.start_sweeper(sweep_interval)

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def add_file_system(self, fs: FileSystem) -> None:
        """Register *fs* under ``fs.name``.  Names are unique per share."""
        name = fs.name
        with self._lock:
            if name in self._fs:
                raise AlreadyRegistered(f"File system already registered: {name}")
            self._fs[name] = fs
            self._grants[name] = []
        logger.debug("Registered file system %s", name)
        self.events.emit(ShareEvent(EventType.FILE_SYSTEM_ADDED, file_system=name))

    def file_systems(self) -> list[str]:
        """Registered names, sorted."""
        with self._lock:
            return sorted(self._fs)

    def file_system(self, name: str) -> FileSystem:
        """The backend registered as *name*, without any access checks."""
        with self._lock:
            try:
                return self._fs[name]
            except KeyError:
                raise UnknownFileSystem(f"File system not registered: {name}") from None

    def add_grant(self, name: str, grant: Grant | None) -> None:
        """Append *grant* to the grants for *name*.

        A ``None`` grant is stored as ``DENY``.
        """
        grant = DENY if grant is None else grant
        with self._lock:
            if name not in self._fs:
                raise UnknownFileSystem(f"No such file system: {name}")
            self._grants[name].append(grant)
        logger.debug("Added grant %r to %s", grant, name)
        self.events.emit(ShareEvent(EventType.GRANT_ADDED, file_system=name))

    def grants(self, name: str) -> list[Grant]:
        """A snapshot of the grants for *name*."""
        with self._lock:
            try:
                return list(self._grants[name])
            except KeyError:
                raise UnknownFileSystem(f"No such file system: {name}") from None

    def view(self, name: str) -> View:
        """A gated accessor for the file system *name*."""
        return View(self, name, self.file_system(name))

    # ------------------------------------------------------------------
    # Access decision
    # ------------------------------------------------------------------

    def allowed(self, name: str, evidence: Evidence, path: str) -> bool:
        """Whether any grant for *name* admits *evidence* to *path*.

        *path* is validated and canonicalized exactly as ``View`` does.
        """
        return _resolve(self.grants(name), evidence, path) is not None

    # ------------------------------------------------------------------
    # Issued tokens
    # ------------------------------------------------------------------

    def issue(self, name: str, grant: Grant | None) -> str:
        """Attach *grant* to *name*, verifying a fresh random token.

        The returned token is the handle for ``lookup`` and ``revoke``.
        Scope and validity come from *grant*; the token only adds a way
        to verify.
        """
        token = secrets.token_urlsafe(32)
        issued, cancel = with_cancel(verify_token(grant, token))
        self.add_grant(name, issued)
        with self._lock:
            self._issued[token] = _Issued(name, issued, cancel)
        logger.info("Issued access token for %s", name)
        return token

    def lookup(self, token: str) -> Grant | None:
        """The still-valid grant issued for *token*, or None."""
        with self._lock:
            entry = self._issued.get(token)
        if entry is None or not entry.grant.valid():
            return None
        return entry.grant

    def revoke(self, token: str) -> bool:
        """Cancel the grant issued for *token*.  Return True if it existed."""
        with self._lock:
            entry = self._issued.pop(token, None)
        if entry is None:
            return False
        entry.cancel()
        logger.info("Revoked access token for %s", entry.file_system)
        return True

    # ------------------------------------------------------------------
    # Housekeeping
    # ------------------------------------------------------------------

    def sweep(self) -> int:
        """Drop invalid grants from every grant list and the token table.

        Returns the number of grants removed.  Access decisions never
        depend on sweeping; an invalid grant already denies.
        """
        with self._lock:
            handles = list(self._issued.items())
            lists = {name: list(grants) for name, grants in self._grants.items()}

        dead_tokens = [token for token, entry in handles if not _still_valid(entry.grant)]
        dead = {
            name: {id(g) for g in grants if not _still_valid(g)}
            for name, grants in lists.items()
        }

        purged: dict[str, int] = {}
        with self._lock:
            for token in dead_tokens:
                self._issued.pop(token, None)
            for name, ids in dead.items():
                if not ids or name not in self._grants:
                    continue
                before = len(self._grants[name])
                self._grants[name] = [g for g in self._grants[name] if id(g) not in ids]
                purged[name] = before - len(self._grants[name])

        total = sum(purged.values())
        for name, count in purged.items():
            if count:
                self.events.emit(
                    ShareEvent(EventType.GRANTS_PURGED, file_system=name, count=count)
                )
        logger.debug("Sweep removed %d grant(s), %d token(s)", total, len(dead_tokens))
        return total

    def start_sweeper(self, interval: float = DEFAULT_SWEEP_INTERVAL) -> None:
        """Run ``sweep`` every *interval* seconds on a daemon thread."""
        if interval <= 0:
            raise ValueError("interval must be positive")
        with self._lock:
            if self._sweeper is not None:
                raise RuntimeError("sweeper already running")
            self._stop.clear()
            self._sweeper = threading.Thread(
                target=self._sweep_loop,
                args=(interval,),
                name="grantfs-sweeper",
                daemon=True,
            )
            self._sweeper.start()

    def close(self) -> None:
        """Stop the sweeper, if running, and wait for it to exit."""
        with self._lock:
            sweeper, self._sweeper = self._sweeper, None
        if sweeper is None:
            return
        self._stop.set()
        sweeper.join()

    def __enter__(self) -> Share:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _sweep_loop(self, interval: float) -> None:
        while not self._stop.wait(interval):
            try:
                self.sweep()
            except Exception:
                logger.warning("Grant sweep failed", exc_info=True)


class View:
    """One file system and its grants, with every operation gated.

    Paths are canonicalized with ``clean_path`` before the grant check
    and the same canonical path is passed to the backend.  Denials always
    raise ``AccessDenied("access denied")``.  Backend errors after access
    is granted pass through unchanged.
    """

    def __init__(self, share: Share, name: str, fs: FileSystem) -> None:
        self._share = share
        self._name = name
        self._fs = fs

    @property
    def name(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f"View({self._name!r})"

    def check(self, evidence: Evidence, path: str) -> bool:
        """Whether *evidence* may access *path*."""
        return _resolve(self._share.grants(self._name), evidence, path) is not None

    def open(self, evidence: Evidence, path: str) -> IO[bytes]:
        """Open *path* for reading."""
        return self._fs.open(self._authorize(evidence, path))

    def stat(self, evidence: Evidence, path: str) -> FileInfo:
        return self._fs.stat(self._authorize(evidence, path))

    def read_dir(self, evidence: Evidence, path: str) -> list[FileInfo]:
        """Entries of the directory *path*.  Access is checked on *path* only."""
        return self._fs.read_dir(self._authorize(evidence, path))

    def list(self, evidence: Evidence = ANONYMOUS) -> list[str]:
        """Every file *evidence* may open, as root-relative paths.

        Paths the evidence may not access are silently omitted.
        Unreadable subdirectories are skipped; failing to stat the root
        raises.
        """
        grants = self._share.grants(self._name)
        files: list[str] = []

        def visit(path: str, info: FileInfo | None, error: OSError | None) -> None:
            if error is not None:
                if info is not None and info.is_directory:
                    raise SkipDir
                raise error
            if info is None or info.is_directory:
                return
            if _admits(grants, evidence, path):
                files.append(path)

        walk(self._fs, "", visit)
        return files

    def walk(
        self,
        evidence: Evidence,
        root: str,
        fn: Callable[[str, FileInfo | None, OSError | None], None],
    ) -> None:
        """Like ``grantfs.fs.walk`` but *fn* only sees permitted paths.

        Every directory is still traversed, so permitted files below an
        unpermitted directory are reported.  Errors on unpermitted paths
        are dropped.
        """
        grants = self._share.grants(self._name)

        def visit(path: str, info: FileInfo | None, error: OSError | None) -> None:
            if _admits(grants, evidence, path):
                fn(path, info, error)

        walk(self._fs, root, visit)

    def _authorize(self, evidence: Evidence, path: str) -> str:
        clean = _resolve(self._share.grants(self._name), evidence, path)
        if clean is not None:
            self._share.events.emit(
                ShareEvent(EventType.ACCESS_GRANTED, file_system=self._name, path=clean)
            )
            return clean
        ok, reason = validate_path(path)
        if not ok:
            logger.debug("Rejected path for %s: %s", self._name, reason)
        self._share.events.emit(
            ShareEvent(
                EventType.ACCESS_DENIED,
                file_system=self._name,
                path=clean_path(path) if ok else path,
            )
        )
        raise AccessDenied("access denied")


def _resolve(grants: Sequence[Grant], evidence: Evidence, path: str) -> str | None:
    """The canonical form of *path* if some grant admits *evidence* to it.

    A path given with a trailing slash is also checked in that form, so
    ``allow_prefix(g, "public/")`` admits ``"public/"`` itself.
    """
    ok, _ = validate_path(path)
    if not ok:
        return None
    clean = clean_path(path)
    if _admits(grants, evidence, clean):
        return clean
    if clean and path.endswith("/") and _admits(grants, evidence, clean + "/"):
        return clean
    return None


def _admits(grants: Sequence[Grant], evidence: Evidence, path: str) -> bool:
    for grant in grants:
        try:
            if permits(grant, evidence, path):
                return True
        except Exception:
            logger.warning("Grant %r failed; skipping it", grant, exc_info=True)
    return False


def _still_valid(grant: Grant) -> bool:
    try:
        return grant.valid()
    except Exception:
        logger.warning("Grant %r failed its validity check", grant, exc_info=True)
        return False
