from __future__ import annotations

"""Public IP lookup.

CONTRACT
- Inputs: lookup URL (plain-text "what is my IP" service), timeout
- Outputs:
  - IP address string, or None
- Invariants:
  - Never raises; the caller only uses the result for display
"""

import ipaddress

import requests
from loguru import logger


def lookup_public_ip(url: str, timeout_s: float = 5) -> str | None:
    try:
        resp = requests.get(url, timeout=timeout_s)
    except requests.RequestException as e:
        logger.warning("Public IP lookup failed: {}", e)
        return None
    if resp.status_code != 200:
        logger.warning("Public IP lookup returned HTTP {}", resp.status_code)
        return None
    candidate = resp.text.strip()
    try:
        ipaddress.ip_address(candidate)
    except ValueError:
        logger.warning("Public IP lookup returned unexpected body: {!r}", candidate[:64])
        return None
    return candidate
