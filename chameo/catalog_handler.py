"""
Wallhaven Catalog Client

This module is a thin wrapper around the wallhaven search API (GET only). It asks the catalog
for its toplist over a given timeframe and turns the 'data' array of the response into a list
of Candidate records. Picking one of them and downloading it is done elsewhere
(chameo.selector and chameo.image_handler) so this file stays limited to building a
well-formed request and reading the response.

Wallhaven API reference: https://wallhaven.cc/help/api
"""

from dataclasses import dataclass

import requests

from chameo.errors import NetworkFailure


CATALOG_URL = "https://wallhaven.cc/api/v1/search"


@dataclass(frozen=True)
class Candidate:
    """One entry of a catalog result: where to download it and how big it is."""

    url: str
    width: int
    height: int
    ratio: str = ""

    @property
    def resolution(self) -> str:
        return f"{self.width}x{self.height}"


def build_params(timeframe: str, ratios: str) -> dict:
    """
    Query parameters for a toplist search. timeframe (e.g. 1d, 1w, 1M, 1y) and ratios
    (e.g. 16x9) are passed through as-is; wallhaven validates them.
    """

    return {
        "ratios": ratios,
        "sorting": "toplist",
        "order": "desc",
        "topRange": timeframe,
    }


def query(
    timeframe: str = "1M",
    ratios: str = "16x9",
    url: str = CATALOG_URL,
    api_key: str = "",
    timeout: float = None,
) -> list[Candidate]:
    """
    Ask the catalog for candidates. Returns the candidates in the order the catalog ranks them,
    which may be an empty list. Raise NetworkFailure if no usable response came back. No retry
    is done here.
    """

    headers = {"User-Agent": "chameo"}
    if api_key:
        headers["X-API-Key"] = api_key

    try:
        r = requests.get(
            url,
            params=build_params(timeframe, ratios),
            headers=headers,
            timeout=timeout,
        )

    except requests.exceptions.RequestException as error:
        raise NetworkFailure(
            f"Failed to connect to the wallpaper catalog. Check your internet connection. ({error})"
        )

    try:
        r.raise_for_status()
    except requests.exceptions.HTTPError:
        raise NetworkFailure(
            f"Catalog error: something went wrong trying to access {url} (status code {r.status_code})"
        )

    try:
        payload = r.json()
    except ValueError:
        raise NetworkFailure(f"Catalog at {url} did not return valid JSON.")

    if not isinstance(payload, dict) or not isinstance(payload.get("data"), list):
        raise NetworkFailure(f"Catalog at {url} returned an unexpected response.")

    return parse_candidates(payload["data"])


def parse_candidates(data: list) -> list[Candidate]:
    """
    Convert the 'data' array of a search response into Candidates. Entries without a download
    path or with unusable dimensions are dropped.
    """

    candidates = []

    for entry in data:
        if not isinstance(entry, dict) or not entry.get("path"):
            continue

        try:
            width = int(entry.get("dimension_x"))
            height = int(entry.get("dimension_y"))
        except (TypeError, ValueError):
            continue

        candidates.append(
            Candidate(
                url=entry["path"],
                width=width,
                height=height,
                ratio=str(entry.get("ratio", "")),
            )
        )

    return candidates
