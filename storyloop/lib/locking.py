"""
Lock management for storyloop.

One writer per ledger: mutating commands hold an flock on a sibling
`<ledger>.lock` file for the whole load-mutate-save cycle.
"""

import fcntl
import os
import sys
import time
import signal
import atexit
from pathlib import Path
from contextlib import contextmanager


class LockTimeout(Exception):
    """Lock acquisition timed out."""
    pass


def lock_path_for(ledger_path: Path) -> Path:
    """Lock file that guards a ledger file."""
    return ledger_path.with_name(ledger_path.name + ".lock")


def is_locked(ledger_path: Path) -> bool:
    """True if another writer currently holds the ledger lock."""
    lock_file = lock_path_for(ledger_path)
    if not lock_file.exists():
        return False

    fd = open(lock_file, 'r')
    try:
        fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        fcntl.flock(fd, fcntl.LOCK_UN)
        return False
    except BlockingIOError:
        return True
    finally:
        fd.close()


@contextmanager
def _acquire_lock(lock_file: Path, timeout: float, lock_name: str):
    """
    Internal helper to acquire a file lock.

    Args:
        lock_file: Path to the lock file
        timeout: Seconds to wait for lock
        lock_name: Human-readable name for error messages
    """
    lock_file.parent.mkdir(parents=True, exist_ok=True)

    # Lock files are never deleted; unlinking races with a waiting process.
    fd = open(lock_file, 'w')
    start = time.time()

    while True:
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
            break
        except BlockingIOError:
            if time.time() - start >= timeout:
                fd.close()
                raise LockTimeout(f"Could not acquire {lock_name} within {timeout}s")
            time.sleep(min(0.2, max(timeout, 0.01)))

    def cleanup():
        try:
            fcntl.flock(fd, fcntl.LOCK_UN)
            fd.close()
        except (OSError, ValueError):
            pass

    atexit.register(cleanup)
    original_sigterm = signal.signal(signal.SIGTERM, lambda *_: sys.exit(1))
    original_sigint = signal.signal(signal.SIGINT, lambda *_: sys.exit(1))

    try:
        fd.write(f"{os.getpid()}\n")
        fd.flush()
        yield
    finally:
        atexit.unregister(cleanup)
        signal.signal(signal.SIGTERM, original_sigterm)
        signal.signal(signal.SIGINT, original_sigint)
        cleanup()


@contextmanager
def ledger_lock(ledger_path: Path, timeout: float = 60):
    """
    Acquire the ledger's writer lock, yield, release on exit.

    Serializes all mutations of one ledger so at most one story
    transition is in flight at a time.
    """
    with _acquire_lock(lock_path_for(ledger_path), timeout, f"lock for {ledger_path.name}"):
        yield
