"""
Minimal HTTP helpers for the catalog clients (urllib.request).

``get_json`` hands back the status code instead of raising on 4xx/5xx,
because the clients treat some of them (404) as answers.
"""

from __future__ import annotations

import json
import logging
import shutil
import urllib.error
import urllib.request
from pathlib import Path
from typing import Any

from toolshim import __version__
from toolshim.core.errors import CatalogError

logger = logging.getLogger(__name__)

USER_AGENT = f"toolshim/{__version__}"


def _request(url: str, headers: dict[str, str] | None) -> urllib.request.Request:
    merged = {"User-Agent": USER_AGENT}
    merged.update(headers or {})
    return urllib.request.Request(url, headers=merged)


def get_json(
    url: str,
    headers: dict[str, str] | None = None,
    timeout: float = 30.0,
) -> tuple[int, Any]:
    """GET ``url`` and decode a JSON body.

    Returns:
        ``(status, data)``. ``data`` is None for a non-200 status.

    Raises:
        CatalogError: On a network failure or a body that is not JSON.
    """
    logger.debug("GET %s", url)
    try:
        with urllib.request.urlopen(_request(url, headers), timeout=timeout) as resp:
            status = resp.status
            body = resp.read()
    except urllib.error.HTTPError as e:
        logger.debug("HTTP %d for %s", e.code, url)
        return e.code, None
    except (urllib.error.URLError, TimeoutError) as e:
        raise CatalogError(f"Cannot reach {url}: {e}") from e

    if status != 200:
        return status, None
    try:
        return status, json.loads(body)
    except ValueError as e:
        raise CatalogError(f"Invalid JSON from {url}: {e}") from e


def download_to(
    url: str,
    dest: Path,
    headers: dict[str, str] | None = None,
    timeout: float = 30.0,
) -> Path:
    """Stream ``url`` into the file ``dest``.

    Raises:
        CatalogError: On a network failure or a non-200 status.
    """
    logger.info("downloading %s", url)
    try:
        with urllib.request.urlopen(_request(url, headers), timeout=timeout) as resp:
            if resp.status != 200:
                raise CatalogError(f"HTTP {resp.status} for {url}")
            with open(dest, "wb") as out:
                shutil.copyfileobj(resp, out)
    except urllib.error.HTTPError as e:
        raise CatalogError(f"HTTP {e.code} for {url}") from e
    except (urllib.error.URLError, TimeoutError) as e:
        raise CatalogError(f"Cannot download {url}: {e}") from e
    logger.debug("saved %s", dest)
    return dest
