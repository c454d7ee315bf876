"""
POP Request Signing

This module implements the provider's POP signing convention: a canonical
sorted query string, the provider's special percent-encoding, and an
HMAC-SHA1 signature keyed by the access key secret with "&" appended.

Every function here is pure apart from gen_timestamp() and gen_nonce(),
which read the clock and the random source.
"""

import base64
import uuid
from datetime import datetime, timezone
from typing import Iterable, Mapping, Optional, Union
from urllib.parse import quote_plus

from cryptography.hazmat.primitives import hashes, hmac

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def gen_timestamp(when: Optional[datetime] = None) -> str:
    """
    Format a time the way the remote verifier expects it.

    Args:
        when: Time to format (default: now). Naive datetimes are taken as UTC.

    Returns:
        str: e.g. "2017-07-12T02:42:19Z"
    """
    if when is None:
        when = datetime.now(timezone.utc)
    elif when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return when.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def gen_phone_numbers_str(phone_numbers: Union[str, Iterable[str]]) -> str:
    """Join phone numbers with "," as PhoneNumbers expects"""
    if isinstance(phone_numbers, str):
        return phone_numbers
    return ",".join(phone_numbers)


def gen_nonce() -> str:
    """Generate a fresh SignatureNonce"""
    return str(uuid.uuid4())


def query_escape(value: str) -> str:
    # space -> "+", everything outside A-Za-z0-9-_.~ escaped
    return quote_plus(value, safe="")


def sorted_query_string(params: Mapping[str, str]) -> str:
    """
    Build the canonical query string used as the signing input.

    Args:
        params: Request parameters

    Returns:
        str: "k1=v1&k2=v2..." sorted by key, each part form-encoded
    """
    return "&".join(
        f"{query_escape(key)}={query_escape(params[key])}"
        for key in sorted(params)
    )


def special_url_encode(value: str) -> str:
    """
    Percent-encode a string following the POP protocol.

    Standard form encoding is applied first, then "+" becomes "%20",
    "*" becomes "%2A" and "%7E" goes back to a literal "~".
    """
    encoded = query_escape(value)
    encoded = encoded.replace("+", "%20")
    encoded = encoded.replace("*", "%2A")
    encoded = encoded.replace("%7E", "~")
    return encoded


def string_to_sign(http_method: str, sorted_query_str: str) -> str:
    return "&".join([
        http_method,
        special_url_encode("/"),
        special_url_encode(sorted_query_str),
    ])


def signed_string(http_method: str, sorted_query_str: str, access_key_secret: str) -> str:
    """
    Compute the Signature query parameter for a request.

    Args:
        http_method: HTTP method, e.g. "GET"
        sorted_query_str: Output of sorted_query_string()
        access_key_secret: The caller's access key secret

    Returns:
        str: The signature, already special-encoded for the query string
    """
    # The provider requires "&" appended to the secret
    mac = hmac.HMAC((access_key_secret + "&").encode("utf-8"), hashes.SHA1())
    mac.update(string_to_sign(http_method, sorted_query_str).encode("utf-8"))

    signature = base64.b64encode(mac.finalize()).decode("ascii")
    return special_url_encode(signature)
