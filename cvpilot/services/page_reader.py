"""Adapter around the page reader collaborator that inspects the active page."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from cvpilot import config
from cvpilot.models import PageInfo, PageKind, VacancyContext

_LOGGER = logging.getLogger(__name__)

PAGE_INFO_REQUEST = {"type": "GET_PAGE_INFO"}
OTHER_PAGE = PageInfo()


class PageReader:
    """Collaborator answering ``GET_PAGE_INFO`` requests for the active page.

    ``current_url`` is the address of the active page when the reader knows
    it; readers that cannot tell leave it as None.
    """

    current_url: Optional[str] = None

    async def send(self, message: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        raise NotImplementedError


class StaticPageReader(PageReader):
    """Reader that answers with a fixed response."""

    def __init__(self, response: Optional[Dict[str, Any]] = None, url: Optional[str] = None) -> None:
        self.response = response
        self.current_url = url
        self.requests = 0

    async def send(self, message: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        self.requests += 1
        return self.response


def is_supported_url(url: str, host: Optional[str] = None) -> bool:
    """Return True if the URL belongs to the supported job board."""
    host = (host or config.SUPPORTED_HOST).lower()
    netloc = (urlparse(url).hostname or "").lower()
    return netloc == host or netloc.endswith("." + host)


def normalize_page_info(response: Any) -> PageInfo:
    """Turn a raw page reader response into a PageInfo.

    Anything that is not a usable vacancy or resume answer counts as "other".
    """
    if not isinstance(response, dict):
        return OTHER_PAGE

    data = response.get("data")
    kind = response.get("type")

    if kind == PageKind.VACANCY.value and isinstance(data, dict):
        return PageInfo(kind=PageKind.VACANCY, vacancy=VacancyContext.from_payload(data))

    if kind == PageKind.RESUME.value and isinstance(data, dict):
        text = data.get("text")
        if isinstance(text, str) and text.strip():
            return PageInfo(kind=PageKind.RESUME, resume_text=text.strip())

    return OTHER_PAGE


async def read_page_context(reader: Optional[PageReader]) -> PageInfo:
    """Ask the reader about the active page, treating any failure as "other"."""
    if reader is None:
        return OTHER_PAGE

    if reader.current_url is not None and not is_supported_url(reader.current_url):
        return OTHER_PAGE

    try:
        response = await reader.send(dict(PAGE_INFO_REQUEST))
    except Exception:  # the reader lives in another context; any failure means no page data
        _LOGGER.debug("Page reader did not answer", exc_info=True)
        return OTHER_PAGE

    return normalize_page_info(response)
