"""
Parsing of the raw redirect request received by the loopback listener.

Only the request line is looked at. Headers, method and body are ignored,
and parsing never fails: malformed input is reported through the error
field of the returned outcome.
"""

import string
from typing import Dict

from .outcome import CallbackOutcome


_HEX_DIGITS = frozenset(string.hexdigits)

# Query parameters of an authorization response we care about.
_CALLBACK_PARAMS = ('code', 'error', 'error_description')


def percent_decode(value: str) -> str:
    """
    Decode a query string value.

    %XX sequences become the byte they encode and '+' becomes a space.
    A '%' that is not followed by two hex digits is kept as is, along with
    the characters after it. Decoded bytes are read as UTF-8.

    Args:
        value: The raw value from the query string.

    Returns:
        The decoded string.
    """
    out = bytearray()
    i = 0
    n = len(value)
    while i < n:
        c = value[i]
        if c == '%':
            hexPair = value[i + 1:i + 3]
            if len(hexPair) == 2 and hexPair[0] in _HEX_DIGITS and hexPair[1] in _HEX_DIGITS:
                out.append(int(hexPair, 16))
            else:
                out += ('%' + hexPair).encode('utf-8')
            i += 1 + len(hexPair)
            continue
        if c == '+':
            out += b' '
        else:
            out += c.encode('utf-8')
        i += 1
    return out.decode('utf-8', errors='replace')


def _split_query(query: str) -> Dict[str, str]:
    # Later duplicates overwrite earlier ones.
    params = {}
    for pair in query.split('&'):
        name, _, value = pair.partition('=')
        params[name] = value
    return params


def parse_callback_request(raw: bytes) -> CallbackOutcome:
    """
    Extract the authorization outcome from a raw HTTP request.

    Args:
        raw: The bytes read from the browser connection.

    Returns:
        A CallbackOutcome with code, error and error_description decoded.
    """
    request = raw.decode('utf-8', errors='replace')
    requestLine = request.split('\n', 1)[0].rstrip('\r')

    parts = requestLine.split()
    if len(parts) < 2:
        return CallbackOutcome(error='Invalid HTTP request')

    target = parts[1]
    if '?' not in target:
        return CallbackOutcome(error='No query parameters in callback')

    params = _split_query(target.split('?', 1)[1])
    values = {}
    for name in _CALLBACK_PARAMS:
        if name in params:
            values[name] = percent_decode(params[name])
    return CallbackOutcome(**values)
