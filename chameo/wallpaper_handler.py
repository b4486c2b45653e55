"""
swww Wallpaper Handler

This module puts the current slot on screen by dropping into the swww CLI, the wallpaper
daemon used on Wayland compositors like Hyprland. More information on swww can be found at:
https://github.com/LGFae/swww

swww needs its daemon running before 'swww img' does anything. If chameo has to start the
daemon itself, nothing is on screen yet, so the first image is set without a transition and
then set again with one.

It also holds the small process helpers (pgrep, signals) the theme writer uses to ask a
running terminal to reload its config.
"""

import os
import shutil
import signal
import subprocess
import time
from pathlib import Path

from chameo.errors import DisplayError
from chameo.errors import SourceImageMissing
from chameo.errors import ToolMissing
from chameo.image_handler import validate_image

DAEMON = "swww-daemon"
COMMAND_TIMEOUT = 30


def require_tool(name: str) -> str:
    """Return the full path of executable name, or raise ToolMissing."""

    path = shutil.which(name)
    if path is None:
        raise ToolMissing(
            f"{name} is not installed. Install it using your package manager."
        )
    return path


def find_processes(name: str) -> list[int]:
    """
    PIDs of running processes whose name is exactly name. An empty list means none are running.
    """

    pgrep = require_tool("pgrep")

    # pgrep exits 1 when nothing matched, which is not an error for us
    result = subprocess.run(
        [pgrep, "-x", name],
        capture_output=True,
        text=True,
        timeout=COMMAND_TIMEOUT,
    )

    if result.returncode not in (0, 1):
        raise ToolMissing(f"pgrep failed looking for {name}: {result.stderr.strip()}")

    return [int(pid) for pid in result.stdout.split() if pid.isdigit()]


def signal_processes(name: str, signum: int = signal.SIGUSR1) -> list[int]:
    """
    Send signum to every running process called name. Returns the PIDs that were signalled.
    Processes that exit between lookup and kill are skipped.
    """

    signalled = []
    for pid in find_processes(name):
        try:
            os.kill(pid, signum)
            signalled.append(pid)
        except ProcessLookupError:
            continue

    return signalled


class SwwwDisplay:
    """
    Wrapper around the swww command line. transition_type and transition_pos are passed
    through to 'swww img' when a transition is requested.
    """

    def __init__(
        self,
        transition_type: str = "random",
        transition_pos: str = "center",
        settle_delay: float = 1,
    ):
        self.transition_type = transition_type
        self.transition_pos = transition_pos
        self.settle_delay = settle_delay
        self.swww = require_tool("swww")

    def daemon_running(self) -> bool:
        return bool(find_processes(DAEMON))

    def ensure_daemon(self) -> bool:
        """
        Start swww-daemon if it isn't running. Returns True if a wallpaper was already being
        displayed (the daemon was up), False if the daemon had to be started.
        """

        if self.daemon_running():
            return True

        daemon = require_tool(DAEMON)

        # detach so the daemon outlives this run
        subprocess.Popen(
            [daemon],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )

        # give the daemon a moment before the first 'swww img'
        time.sleep(self.settle_delay)
        return False

    def set_wallpaper(self, img_path: Path, transition: bool = True):
        """
        Display img_path. Raise DisplayError if the file isn't an image or swww fails.
        """

        img_path = Path(img_path).expanduser().resolve()

        if not img_path.is_file():
            raise DisplayError(
                f"Invalid path provided for image location: {img_path} does not exist."
            )

        try:
            validate_image(img_path)
        except SourceImageMissing as error:
            raise DisplayError(str(error))

        cmd = [self.swww, "img", str(img_path)]
        if transition:
            cmd += [
                "--transition-type",
                self.transition_type,
                "--transition-pos",
                self.transition_pos,
            ]

        try:
            subprocess.run(
                cmd,
                check=True,
                capture_output=True,
                text=True,
                timeout=COMMAND_TIMEOUT,
            )

        except subprocess.CalledProcessError as error:
            raise DisplayError(
                f"Could not set wallpaper: {error.stderr.strip() or error}"
            )

        except subprocess.TimeoutExpired:
            raise DisplayError(f"Timed out setting wallpaper to {img_path.name}.")

    def show(self, img_path: Path, already_set: bool = True):
        """
        Put img_path on screen. When nothing was displayed yet, set it once without a
        transition, wait for it to load, then set it again with a transition.
        """

        if not already_set:
            self.set_wallpaper(img_path, transition=False)
            time.sleep(self.settle_delay)

        self.set_wallpaper(img_path, transition=True)
