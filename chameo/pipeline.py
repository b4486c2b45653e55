"""
chameo pipeline

One chameo run, start to finish:

    1) make sure swww is available and its daemon is up
    2) under the slot lock, either fill 'current' and 'next' (first run) or rotate the slots
       and refill 'next' (every run after that)
    3) put 'current' on screen
    4) extract a palette from 'current' and write it into the kitty and Hyprland configs

The lower level modules raise; this is where it's decided what is fatal. A failed fetch on the
first run leaves nothing to show, so it ends the run. A failed refill of 'next' later on is only
a warning because the rotation already happened and the next run will try again.
"""

import random
from dataclasses import dataclass
from dataclasses import field
from functools import partial
from pathlib import Path

from chameo import catalog_handler
from chameo import image_handler
from chameo import selector
from chameo.config import ChameoConfig
from chameo.errors import FetchError
from chameo.slot_handler import CURRENT
from chameo.slot_handler import NEXT
from chameo.slot_handler import PREV
from chameo.slot_handler import SlotLock
from chameo.slot_handler import SlotRotator
from chameo.theme_handler import TargetResult
from chameo.theme_handler import apply_theme
from chameo.theme_handler import default_targets
from chameo.wallpaper_handler import SwwwDisplay
from chameo.console import describe
from chameo.console import confirm_success
from chameo.console import warn


@dataclass
class RunResult:
    first_run: bool
    current: Path = None
    next: Path = None
    next_error: FetchError = None
    theme: dict[str, TargetResult] = field(default_factory=dict)


def fetch_wallpaper(
    stem: Path,
    config: ChameoConfig,
    timeframe: str = "1M",
    ratios: str = "16x9",
    rng: random.Random = random,
) -> Path:
    """
    Query the catalog, pick a candidate meeting the minimum resolution and download it to
    '<stem>.<ext>'. Raise a FetchError subclass if any step fails.
    """

    describe(
        f":earth_asia-emoji: looking for a {config.MIN_WIDTH}x{config.MIN_HEIGHT}+ wallpaper "
        f"(top {timeframe}, {ratios})..."
    )

    candidates = catalog_handler.query(
        timeframe,
        ratios,
        url=config.CATALOG_URL,
        api_key=config.API_KEY,
        timeout=config.REQUEST_TIMEOUT,
    )

    selection = selector.select(
        candidates,
        config.MIN_WIDTH,
        config.MIN_HEIGHT,
        max_attempts=config.MAX_ATTEMPTS,
        rng=rng,
    )

    if isinstance(selection, selector.Exhausted):
        for candidate in selection.rejected:
            describe(f"skipping wallpaper with resolution {candidate.resolution} (too small)")

    candidate = selector.require(selection, config.MIN_WIDTH, config.MIN_HEIGHT)
    describe(
        f"found wallpaper with resolution {candidate.resolution} "
        f"after {selection.attempts} attempt(s)"
    )

    path = image_handler.download_image(
        candidate.url, stem, timeout=config.REQUEST_TIMEOUT
    )
    confirm_success(f":floppy_disk-emoji: download complete: {path}")
    return path


def first_run(rotator: SlotRotator, fetch) -> None:
    describe("First run detected! Setting up both current and next wallpapers...")

    # both slots are mandatory here, any FetchError ends the run
    describe("fetching current wallpaper...")
    rotator.refill(CURRENT, fetch)

    describe("fetching next wallpaper...")
    rotator.refill(NEXT, fetch)


def steady_state(rotator: SlotRotator, fetch) -> FetchError | None:
    """Rotate the slots and refill 'next'. Returns the refill error, if there was one."""

    before = rotator.state()
    rotator.rotate()

    if before[CURRENT] is not None:
        describe(f"moved current wallpaper to {PREV}")

    if before[NEXT] is not None:
        describe(f"moved next wallpaper to {CURRENT}")
    else:
        warn("no next wallpaper found to move to current")

    describe("fetching new next wallpaper...")
    try:
        rotator.refill(NEXT, fetch)

    except FetchError as error:
        warn(
            f"failed to set next wallpaper, will continue using current wallpaper. {error}"
        )
        return error

    return None


def run(
    config: ChameoConfig,
    timeframe: str = "1M",
    ratios: str = "16x9",
    rng: random.Random = random,
    display: SwwwDisplay = None,
    targets: list = None,
) -> RunResult:
    """
    Perform one rotation and re-theme. Errors that end the run propagate to the caller.
    """

    if display is None:
        display = SwwwDisplay(
            transition_type=config.TRANSITION_TYPE,
            transition_pos=config.TRANSITION_POS,
        )

    if targets is None:
        targets = default_targets(config.KITTY_CONFIG, config.HYPRLAND_CONFIG)

    daemon_was_running = display.ensure_daemon()
    if not daemon_was_running:
        describe("started swww daemon")

    rotator = SlotRotator(config.CHAMEO_WALLPAPER_DIR)
    fetch = partial(
        fetch_wallpaper, config=config, timeframe=timeframe, ratios=ratios, rng=rng
    )

    # the lock is held until theming is done so a concurrent run can't rename
    # 'current' out from under the display and palette steps
    with SlotLock(config.lock_file, timeout=config.LOCK_TIMEOUT):

        result = RunResult(first_run=rotator.is_first_run())

        if result.first_run:
            first_run(rotator, fetch)
        else:
            result.next_error = steady_state(rotator, fetch)

        state = rotator.state()
        result.current = state[CURRENT]
        result.next = state[NEXT]

        if result.current is None:
            warn("no current wallpaper found to apply")
            return result

        describe(
            f":desktop_computer-emoji: setting wallpaper {result.current.name} using swww..."
        )
        # nothing of ours is on screen yet on a first run
        display.show(
            result.current, already_set=daemon_was_running and not result.first_run
        )
        confirm_success(":white_check_mark-emoji: wallpaper set successfully!")

        describe(":art-emoji: extracting color palette from current wallpaper...")
        palette = image_handler.extract_palette(
            result.current, order=config.PALETTE_ORDER
        )

        result.theme = apply_theme(palette, targets)

    if result.first_run:
        confirm_success(
            "Setup complete! You now have both current and next wallpapers ready."
        )
    else:
        confirm_success("Rotation complete!")

    describe(f"Current: {result.current}")
    describe(f"Next: {result.next}")

    return result
