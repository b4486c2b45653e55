"""
Slot Handler

chameo keeps at most three wallpapers on disk, each in a named slot inside the wallpaper
directory:

    current.<ext>  the wallpaper on screen
    next.<ext>     downloaded ahead of time, shown on the next run
    prev.<ext>     the wallpaper shown before current

A slot is identified by its file name only. The extension comes from the downloaded image and
is kept through every rename, so current.png becomes prev.png on the next rotation.

Only one chameo run may touch the directory at a time. SlotLock is an flock on a file in the
wallpaper directory that the pipeline holds for as long as it renames or fills slots.
"""

import fcntl
import time
from pathlib import Path
from collections.abc import Callable

from chameo.errors import LockContention

CURRENT = "current"
NEXT = "next"
PREV = "prev"
SLOTS = (CURRENT, NEXT, PREV)

KNOWN_EXTENSIONS = ("jpg", "png", "jpeg", "webp")


class SlotLock:
    """
    Exclusive lock on lock_file. Polls for up to timeout seconds, then raises LockContention.
    """

    def __init__(self, lock_file: Path, timeout: float = 5, poll_interval: float = 0.1):
        self.lock_file = Path(lock_file)
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.fd = None

    def __enter__(self):
        self.lock_file.parent.mkdir(parents=True, exist_ok=True)
        self.fd = open(self.lock_file, "w")

        start_time = time.monotonic()
        while True:
            try:
                fcntl.flock(self.fd.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                return self
            except BlockingIOError:
                if time.monotonic() - start_time >= self.timeout:
                    self.fd.close()
                    self.fd = None
                    raise LockContention(
                        f"Another chameo run is holding {self.lock_file}. Try again later."
                    )
                time.sleep(self.poll_interval)

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.fd:
            fcntl.flock(self.fd.fileno(), fcntl.LOCK_UN)
            self.fd.close()
            self.fd = None
        return False


class SlotRotator:
    """
    Owns the slot files in directory. Nothing else in chameo renames or deletes them.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory).expanduser()

    def stem(self, slot: str) -> Path:
        """Slot path without extension, e.g. ~/Pictures/chameo/next"""

        if slot not in SLOTS:
            raise ValueError(f"Unknown slot '{slot}', expected one of {SLOTS}.")
        return self.directory / slot

    def files(self, slot: str) -> list[Path]:
        """
        Every file currently backing slot. Known extensions come first in their listed order,
        followed by any other extension the source may have supplied.
        """

        stem = self.stem(slot)
        known = [
            stem.with_name(f"{slot}.{ext}")
            for ext in KNOWN_EXTENSIONS
            if stem.with_name(f"{slot}.{ext}").is_file()
        ]
        others = sorted(
            path
            for path in self.directory.glob(f"{slot}.*")
            if path.is_file() and path not in known
        )
        return known + others

    def path(self, slot: str) -> Path | None:
        files = self.files(slot)
        return files[0] if files else None

    def state(self) -> dict[str, Path | None]:
        return {slot: self.path(slot) for slot in SLOTS}

    def is_first_run(self) -> bool:
        """
        True when there is no current wallpaper with one of the known extensions.
        """

        stem = self.stem(CURRENT)
        return not any(
            stem.with_name(f"{CURRENT}.{ext}").is_file() for ext in KNOWN_EXTENSIONS
        )

    def clear(self, slot: str):
        for path in self.files(slot):
            path.unlink()

    def move(self, source: str, dest: str) -> Path | None:
        """
        Rename the file in slot source to slot dest, keeping its extension. dest must be empty.
        Returns the new path, or None if source was empty.
        """

        path = self.path(source)
        if path is None:
            return None

        # any leftovers in the source slot would break the one-file-per-slot rule
        for extra in self.files(source)[1:]:
            extra.unlink()

        return path.rename(self.stem(dest).with_name(f"{dest}{path.suffix}"))

    def rotate(self) -> dict[str, Path | None]:
        """
        Advance the slots: drop prev, current becomes prev, next becomes current. Returns the
        resulting state. next is left empty and has to be refilled by the caller.
        """

        self.directory.mkdir(parents=True, exist_ok=True)

        self.clear(PREV)
        self.move(CURRENT, PREV)

        # clear again in case a second 'current' file was lying around
        self.clear(CURRENT)
        self.move(NEXT, CURRENT)

        return self.state()

    def refill(self, slot: str, fetch: Callable[[Path], Path]) -> Path:
        """
        Empty slot and fill it by calling fetch with the slot's stem. fetch is expected to
        write '<stem>.<ext>' and return that path. Whatever fetch raises propagates.
        """

        self.directory.mkdir(parents=True, exist_ok=True)
        self.clear(slot)
        return fetch(self.stem(slot))
