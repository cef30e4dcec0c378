"""HTTP helpers shared by the retrieval channels."""

from typing import Any, Optional

import requests

from . import __version__

USER_AGENT = f"ofgem-watch-agent/{__version__} (+publication watcher)"
DEFAULT_TIMEOUT = 30


def create_session() -> requests.Session:
    session = requests.Session()
    session.headers.update({"User-Agent": USER_AGENT})
    return session


def get_text(
    session: requests.Session,
    url: str,
    timeout: float = DEFAULT_TIMEOUT,
    params: Optional[dict] = None,
) -> str:
    response = session.get(url, params=params, timeout=timeout)
    response.raise_for_status()
    return response.text


def get_json(
    session: requests.Session,
    url: str,
    timeout: float = DEFAULT_TIMEOUT,
    params: Optional[dict] = None,
) -> Any:
    """
    GET a URL and decode the JSON body.

    Raises:
        requests.RequestException: On transport errors, timeouts or non-2xx status.
        ValueError: If the body is not valid JSON.
    """
    response = session.get(
        url,
        params=params,
        timeout=timeout,
        headers={"Accept": "application/json"},
    )
    response.raise_for_status()
    return response.json()
