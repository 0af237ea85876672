import ipaddress
from typing import Optional


def is_literal_address(host: Optional[str]) -> bool:
    """
    Return True when host is an IPv4 or IPv6 address literal.

    Uses the ipaddress parser rather than a pattern match, so names that merely
    look numeric (e.g. '1.2.3.4.example.com', '999.1.1.1') are treated as DNS names.
    An IPv6 literal may be wrapped in brackets and may carry a zone id.
    """
    if not host:
        return False

    candidate = host
    if candidate.startswith('[') and candidate.endswith(']'):
        candidate = candidate[1:-1]

    try:
        ipaddress.ip_address(candidate)
    except ValueError:
        return False
    return True
