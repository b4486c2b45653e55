"""
Image Handler

Utilities for downloading wallpapers and reading colors out of them.

Downloading images: supports only plain GET requests for image files specified by URL. Searching
the catalog is done by chameo.catalog_handler. The downloaded bytes are checked with Pillow before
they are moved into place so a slot never holds a half-written file or an HTML error page.

Palette extraction: the image is shrunk to a small working size and quantized down to at most
16 colors with Pillow. This is not meant to be a perceptual theme generator, just a quick way to
get a handful of representative colors.
"""

import io
import os
from pathlib import Path
from urllib.parse import urlparse

from PIL import Image, UnidentifiedImageError
import requests

from chameo.errors import DownloadFailure
from chameo.errors import SourceImageMissing
from chameo.errors import QuantizerUnavailable
from chameo.palette import Palette
from chameo.palette import PALETTE_SIZE
from chameo.palette import rgb_to_hex

WORKING_SIZE = (400, 400)


def validate_image(input) -> str:
    """
    Determine whether input is a valid image and return its format. Pillow reads the header to
    determine the file type without decoding the whole image.
    """

    try:
        with Image.open(input) as image:

            return image.format

    except UnidentifiedImageError:
        raise SourceImageMissing(f"Input {str(input)} does not appear to be an image.")

    except FileNotFoundError:
        raise SourceImageMissing(f"Input {str(input)} could not be found.")


def extension_for(url: str, content: bytes = None) -> str:
    """
    File extension for a download: the suffix of the URL path (wallhaven urls always carry
    one), falling back to the image format Pillow detects in content.
    """

    suffix = Path(urlparse(url).path).suffix.lstrip(".").lower()
    if suffix:
        return suffix

    if content is not None:
        try:
            with Image.open(io.BytesIO(content)) as image:
                return image.format.lower()
        except UnidentifiedImageError:
            pass

    raise DownloadFailure(f"Could not determine a file extension for {url}.")


def download_image(url: str, stem: Path, timeout: float = None) -> Path:
    """
    Download the image at url and save it as '<stem>.<ext>', where ext is taken from the url.
    Returns the location on the filesystem where the image was saved.

    The payload is written to a hidden temporary file next to the destination and renamed into
    place once it has been verified to be an image. Raise DownloadFailure otherwise.
    """

    stem = Path(stem).expanduser()

    if stem.is_dir():
        raise DownloadFailure(f"Destination {stem} is a directory.")

    stem.parent.mkdir(parents=True, exist_ok=True)

    try:
        r = requests.get(url, timeout=timeout)

    except requests.exceptions.RequestException as error:
        raise DownloadFailure(str(error))

    # successful request but received a bad response from the server.
    try:
        r.raise_for_status()
    except requests.exceptions.HTTPError:
        raise DownloadFailure(
            f"Download error: something went wrong trying to access {url} (status code {r.status_code})"
        )

    # successful request but did not get back image data as the response.
    try:
        with Image.open(io.BytesIO(r.content)) as image:
            image.verify()

    except (UnidentifiedImageError, SyntaxError, OSError):
        raise DownloadFailure(
            f"Download error: the target resource at {url} does not appear to be an image."
        )

    destination_path = stem.with_name(f"{stem.name}.{extension_for(url, r.content)}")
    partial_path = stem.with_name(f".{destination_path.name}.part")

    try:
        partial_path.write_bytes(r.content)
        os.replace(partial_path, destination_path)

    except OSError as error:
        partial_path.unlink(missing_ok=True)
        raise DownloadFailure(f"Could not save {destination_path}: {error}")

    return destination_path


def quantize_colors(image: Image.Image, colors: int = PALETTE_SIZE) -> list[str]:
    """
    Reduce image to at most `colors` colors and return the swatches as hex strings in the order
    of the quantized palette. Only palette entries actually used by the reduced image are kept.
    """

    try:
        reduced = image.quantize(colors=colors, method=Image.Quantize.MEDIANCUT)
    except (ValueError, OSError) as error:
        raise QuantizerUnavailable(f"Could not reduce colors: {error}")

    palette = reduced.getpalette() or []
    used = sorted(index for _, index in reduced.getcolors(maxcolors=256) or [])

    return [
        rgb_to_hex(palette[index * 3 : index * 3 + 3])
        for index in used
        if index * 3 + 3 <= len(palette)
    ]


def extract_palette(
    img_path: Path, order: str = "raw", working_size: tuple[int, int] = WORKING_SIZE
) -> Palette:
    """
    Read the 16 color palette of the image at img_path. Alpha is dropped, the image is shrunk to
    fit working_size and quantized. See Palette.from_swatches for the meaning of order.
    """

    img_path = Path(img_path)

    if not img_path.is_file():
        raise SourceImageMissing(f"No wallpaper found at {img_path}.")

    try:
        with Image.open(img_path) as image:
            # RGBA and palette images both come out as plain RGB, which also strips alpha
            working = image.convert("RGB")

    except UnidentifiedImageError:
        raise SourceImageMissing(f"{img_path.name} is not a readable image.")

    except OSError as error:
        raise SourceImageMissing(f"Could not read {img_path}: {error}")

    working.thumbnail(working_size)

    return Palette.from_swatches(quantize_colors(working), order=order)
