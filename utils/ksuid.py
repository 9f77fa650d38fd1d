"""
KSUID - K-Sortable Unique Identifier.

Frame and error ids. 4 bytes of seconds since the KSUID epoch followed by
16 random bytes, base62-encoded into 27 characters, so ids sort by creation
second.
"""

import os
import time

# KSUID epoch: 2014-05-13
KSUID_EPOCH = 1400000000
BASE62 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
KSUID_LENGTH = 27


def _encode(n):
    chars = []
    while n > 0:
        n, remainder = divmod(n, 62)
        chars.append(BASE62[remainder])
    return "".join(reversed(chars)).rjust(KSUID_LENGTH, "0")


def generate_ksuid(now=None):
    """Generate a 27-character sortable unique ID."""
    seconds = int(now if now is not None else time.time()) - KSUID_EPOCH
    raw = seconds.to_bytes(4, "big") + os.urandom(16)
    return _encode(int.from_bytes(raw, byteorder="big"))
