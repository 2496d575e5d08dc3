"""
Naive query-string extraction.

The gateway only ever looks at three parameters (``command``, ``name`` and
``key``), so instead of building a full ``parse_qs`` mapping it scans the raw
query string for the first ``name=value`` pair:

    raw query:  "name=Steve%20Jr&key=abc+def&name=Alex"

    raw_param(q, "name")      -> "Steve%20Jr"   first occurrence, untouched
    decoded_param(q, "name")  -> "Steve Jr"     URL-decoded, '+' as space
    raw_param(q, "key")       -> "abc+def"      credentials stay raw

Credentials are compared in their raw form while ``name`` and ``command`` are
decoded. Existing deployments hand out keys that were never meant to be
URL-encoded, so decoding them would change which keys match.
"""

from typing import Optional
from urllib.parse import unquote_plus


def raw_param(query: str, name: str) -> Optional[str]:
    """
    Return the raw value of the first ``name=`` pair in ``query``.

    Pairs without ``=`` or with an empty name are ignored. Returns None when
    the parameter is absent; an empty string when present without a value.
    """
    if not query:
        return None

    for pair in query.split("&"):
        idx = pair.find("=")
        if idx <= 0:
            continue
        if pair[:idx] == name:
            return pair[idx + 1:]

    return None


def decoded_param(query: str, name: str) -> Optional[str]:
    """Like :func:`raw_param`, but URL-decodes the value."""
    value = raw_param(query, name)
    if value is None:
        return None
    return unquote_plus(value, encoding="utf-8", errors="replace")
