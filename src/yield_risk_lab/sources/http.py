"""Shared JSON-over-HTTP helper for the upstream adapters."""

from __future__ import annotations

import json
import logging
import urllib.parse
import urllib.request
from typing import Any, Mapping

from ..errors import FetchError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15.0
DEFAULT_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "YieldRiskLab/1.0",
}


def get_json(
    source: str,
    url: str,
    *,
    params: Mapping[str, Any] | None = None,
    headers: Mapping[str, str] | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Any:
    """GET ``url`` and decode the JSON body.

    Non-2xx responses, transport errors, timeouts and malformed JSON all
    raise :class:`FetchError` tagged with ``source``.  No retries are made.
    """

    if params:
        url = f"{url}?{urllib.parse.urlencode(params)}"
    req = urllib.request.Request(url, headers={**DEFAULT_HEADERS, **(headers or {})})
    logger.debug("GET %s", url)
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            return json.load(resp)
    except (OSError, ValueError) as exc:
        # HTTPError/URLError/TimeoutError are OSErrors; JSONDecodeError is a ValueError
        raise FetchError(source, exc) from exc


__all__ = ["DEFAULT_HEADERS", "DEFAULT_TIMEOUT", "get_json"]
