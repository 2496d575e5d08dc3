"""
=============================================================================
ACCESS CONTROL
=============================================================================

Decides whether a request may use the route it matched.

=============================================================================
WHERE THE CREDENTIAL COMES FROM
=============================================================================

    1. Authorization: Bearer <credential>      (first Bearer header, trimmed)
    2. ?key=<credential>                       (first occurrence, RAW)

The header wins when both are present. Non-Bearer Authorization headers
(e.g. Basic) are skipped; with no Bearer header at all the query string is
consulted instead.

=============================================================================
DECISION TABLE
=============================================================================

    route.auth   credential   route.key   → result
    ──────────   ──────────   ─────────     ──────────────────────────────
    false        (any)        (any)         admit
    true         none         (any)         deny
    true         present      set           admit iff credential == key
    true         present      unset         admit iff credential in keys

A route-specific key REPLACES the global set for that route: a key that
is valid everywhere else still gets 401 on a route with its own key.

=============================================================================
"""

import logging
from typing import AbstractSet, Iterable, Optional

from .query import raw_param
from .router import Route


logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def extract_credential(authorization: Iterable[str], query: str) -> Optional[str]:
    """
    Pull the caller's credential out of the request.

    Args:
        authorization: Every Authorization header value, in arrival order
                       (``request.header_values("authorization")``).
        query: Raw query string.

    Returns:
        The credential string, or None if the request carries none.
    """
    for value in authorization:
        if value.startswith(BEARER_PREFIX):
            return value[len(BEARER_PREFIX):].strip()

    return raw_param(query, "key")


def authorize(
    route: Route,
    authorization: Iterable[str],
    query: str,
    allowed_keys: AbstractSet[str],
) -> bool:
    """
    Decide admission for ``route``.

    Returns:
        True to admit, False to answer 401.
    """
    if not route.auth:
        return True

    credential = extract_credential(authorization, query)
    if credential is None:
        logger.debug(f"No credential presented for {route.path}")
        return False

    if route.key is not None:
        admitted = credential == route.key
    else:
        admitted = credential in allowed_keys

    if not admitted:
        # Never log the credential itself
        logger.warning(f"Rejected credential for {route.path}")

    return admitted
