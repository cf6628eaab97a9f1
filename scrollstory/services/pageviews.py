from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from scrollstory.core.dataset import RawDataset

logger = logging.getLogger(__name__)

PAGEVIEWS_URL = (
    "https://wikimedia.org/api/rest_v1/metrics/pageviews/per-article/"
    "en.wikipedia.org/all-access/all-agents/{article}/monthly/{start}/{end}"
)
PAGEIMAGES_URL = "https://en.wikipedia.org/w/api.php"

# Wikimedia rejects requests without a descriptive agent
USER_AGENT = "scrollstory/0.1 (scroll-linked story renderer)"

DEFAULT_START = "20230101"
DEFAULT_END = "20231231"


def encode_article(name: str) -> str:
    return quote(name.replace(" ", "_"), safe="")


def fetch_pageviews(
        name: str,
        article: str,
        start: str = DEFAULT_START,
        end: str = DEFAULT_END,
        timeout_sec: float = 10.0,
        with_image: bool = False,
) -> RawDataset:
    """
    Monthly pageviews for one Wikipedia article.

    Rows look like {"date": "2023010100", "views": 1234}. Any network or
    payload problem is logged and returned as an empty dataset.
    """
    url = PAGEVIEWS_URL.format(article=encode_article(article), start=start, end=end)
    headers = {"User-Agent": USER_AGENT}

    try:
        resp = requests.get(url, headers=headers, timeout=timeout_sec)
        resp.raise_for_status()
        items = resp.json()["items"]
        rows: List[Dict[str, Any]] = [
            {"date": item["timestamp"], "views": item["views"]} for item in items
        ]
    except (requests.RequestException, ValueError, KeyError, TypeError) as e:
        logger.warning(
            "Pageviews fetch failed",
            extra={"dataset": name, "article": article, "error": str(e)},
        )
        return RawDataset(name=name)

    meta: Dict[str, Any] = {}
    if with_image:
        meta["image_url"] = fetch_thumbnail_url(article, timeout_sec=timeout_sec) or ""

    return RawDataset(name=name, rows=rows, meta=meta)


def fetch_thumbnail_url(article: str, timeout_sec: float = 10.0, size: int = 200) -> Optional[str]:
    params = {
        "action": "query",
        "format": "json",
        "prop": "pageimages",
        "titles": article.replace(" ", "_"),
        "pithumbsize": size,
        "origin": "*",
    }
    try:
        resp = requests.get(
            PAGEIMAGES_URL, params=params, headers={"User-Agent": USER_AGENT}, timeout=timeout_sec
        )
        resp.raise_for_status()
        pages = resp.json()["query"]["pages"]
    except (requests.RequestException, ValueError, KeyError) as e:
        logger.warning("Thumbnail fetch failed", extra={"article": article, "error": str(e)})
        return None

    for page in pages.values():
        thumb = page.get("thumbnail") or {}
        if thumb.get("source"):
            return thumb["source"]
    return None
