"""
Robust HTTP session with retries/backoff for all outbound requests.
"""
import logging
from typing import Any, Mapping, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": "Wattado/1.0 (+https://wattado.app)",
    "Accept": "application/json",
}


def _make_session(
    total: int = 3,
    backoff_factor: float = 0.5,
    status_forcelist: tuple[int, ...] = (429, 500, 502, 503, 504),
) -> requests.Session:
    sess = requests.Session()
    retry = Retry(
        total=total,
        read=total,
        connect=total,
        backoff_factor=backoff_factor,
        status_forcelist=status_forcelist,
        allowed_methods=frozenset(["GET"]),
        raise_on_status=False,
        respect_retry_after_header=True,
    )
    adapter = HTTPAdapter(max_retries=retry)
    sess.mount("https://", adapter)
    sess.mount("http://", adapter)
    return sess


_SESSION: Optional[requests.Session] = None


def configure(max_retries: int) -> None:
    global _SESSION
    _SESSION = _make_session(total=max_retries)


def session() -> requests.Session:
    global _SESSION
    if _SESSION is None:
        _SESSION = _make_session()
    return _SESSION


def get(
    url: str,
    *,
    params: Optional[Mapping[str, Any]] = None,
    headers: Optional[Mapping[str, str]] = None,
    timeout: float = 12,
) -> requests.Response:
    merged = dict(DEFAULT_HEADERS)
    if headers:
        merged.update(headers)
    resp = session().get(url, params=params, headers=merged, timeout=timeout)
    logger.debug("GET %s -> %s", url, resp.status_code)
    return resp
