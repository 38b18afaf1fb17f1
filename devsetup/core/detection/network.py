"""
L3 Detection — Network reachability probing.

A single bounded HEAD request against a well-known registry. Used by
the preflight checker; never raises.
"""

from __future__ import annotations

import logging
import time
import urllib.request

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://registry.npmjs.org"
DEFAULT_TIMEOUT = 2.5


def check_endpoint_reachable(
    url: str = DEFAULT_ENDPOINT,
    timeout: float = DEFAULT_TIMEOUT,
) -> dict:
    """Probe ``url`` for reachability.

    Returns::

        {"reachable": True, "url": "https://...", "status": 200, "latency_ms": 42}
        or
        {"reachable": False, "url": "https://...", "error": "timed out", "latency_ms": 2500}
    """
    start = time.monotonic()

    try:
        req = urllib.request.Request(
            url,
            method="HEAD",
            headers={"User-Agent": "devsetup/0.1"},
        )
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            elapsed = int((time.monotonic() - start) * 1000)
            status = resp.getcode()
            return {
                "reachable": 200 <= status < 400,
                "url": url,
                "status": status,
                "latency_ms": elapsed,
            }
    except Exception as exc:
        elapsed = int((time.monotonic() - start) * 1000)
        logger.debug("Reachability probe to %s failed: %s", url, exc)
        return {
            "reachable": False,
            "url": url,
            "error": str(exc)[:200],
            "latency_ms": elapsed,
        }


def is_network_reachable(url: str = DEFAULT_ENDPOINT, timeout: float = DEFAULT_TIMEOUT) -> bool:
    return bool(check_endpoint_reachable(url, timeout)["reachable"])
