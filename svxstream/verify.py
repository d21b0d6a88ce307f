"""Post-install reachability check of the Icecast web endpoint."""

from __future__ import annotations

import logging
import time

import httpx

from svxstream.config import GRACE_SECONDS, PROBE_TIMEOUT, STREAM_PORT

logger = logging.getLogger(__name__)

OK_STATUSES = frozenset({200, 302})


def _probe_url(host: str, port: int) -> httpx.URL:
    # httpx brackets IPv6 literals; a host with a stray ":port" is rejected.
    return httpx.URL(scheme="http", host=host, port=port, path="/")


def check_url(host: str, port: int = STREAM_PORT) -> str:
    try:
        return str(_probe_url(host, port))
    except httpx.InvalidURL:
        return f"http://{host}:{port}/"


def check_reachable(
    host: str,
    port: int = STREAM_PORT,
    timeout: float = PROBE_TIMEOUT,
    client: httpx.Client | None = None,
) -> bool:
    """HEAD ``http://<host>:<port>/`` once; True only for a 200 or 302.

    Redirects are not followed so a 302 from Icecast counts as success.
    Any transport error, timeout or unusable host returns False.
    """
    url = check_url(host, port)
    try:
        target = _probe_url(host, port)
        if client is not None:
            resp = client.head(target, timeout=timeout, follow_redirects=False)
        else:
            resp = httpx.head(target, timeout=timeout, follow_redirects=False)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        logger.debug("HEAD %s failed: %s", url, exc)
        return False
    logger.debug("HEAD %s -> %d", url, resp.status_code)
    return resp.status_code in OK_STATUSES


def wait_and_check(host: str, port: int = STREAM_PORT, grace: float = GRACE_SECONDS) -> bool:
    """Give freshly restarted services *grace* seconds, then probe."""
    if grace > 0:
        time.sleep(grace)
    return check_reachable(host, port)
