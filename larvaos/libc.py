"""Character, number and string helpers of the kernel's small C library."""

from __future__ import annotations

import re
from collections.abc import Iterator
from itertools import count as _count

_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"
_ATOI_PATTERN = re.compile(r"[ \t\n\x0b\x0c\r]*([+-]?)([0-9]*)")


def _code(c) -> int:
    if isinstance(c, str):
        if len(c) != 1:
            raise ValueError(f"expected a single character, got {c!r}")
        return ord(c)
    return int(c)


def _same_kind(original, code: int):
    return chr(code) if isinstance(original, str) else code


def isupper(c) -> bool:
    """True for an ASCII upper-case letter (character or code)."""
    return ord("A") <= _code(c) <= ord("Z")


def islower(c) -> bool:
    """True for an ASCII lower-case letter (character or code)."""
    return ord("a") <= _code(c) <= ord("z")


def isdigit(c) -> bool:
    """True for an ASCII decimal digit (character or code)."""
    return ord("0") <= _code(c) <= ord("9")


def tolower(c):
    """Lower-case an ASCII letter; other values come back unchanged."""
    code = _code(c)
    return _same_kind(c, code | 0x20 if isupper(code) else code)


def toupper(c):
    """Upper-case an ASCII letter; other values come back unchanged."""
    code = _code(c)
    return _same_kind(c, code & ~0x20 if islower(code) else code)


def itoa(value, base=10) -> str:
    """Render an integer in ``base`` (2 to 36) with lower-case digits."""
    if not 2 <= base <= 36:
        raise ValueError(f"unsupported base: {base}")
    magnitude = abs(value)
    digits = []
    while True:
        magnitude, digit = divmod(magnitude, base)
        digits.append(_DIGITS[digit])
        if not magnitude:
            break
    sign = "-" if value < 0 else ""
    return sign + "".join(reversed(digits))


def atoi(text) -> int:
    """Parse a leading decimal integer, skipping leading white space."""
    match = _ATOI_PATTERN.match(text)
    sign, digits = match.groups()
    value = int(digits) if digits else 0
    return -value if sign == "-" else value


def memcmp(a, b, n) -> int:
    """Compare the first ``n`` bytes; the difference is a signed byte."""
    if n < 0 or n > len(a) or n > len(b):
        raise ValueError("comparison length exceeds the buffers")
    for x, y in zip(a[:n], b[:n]):
        diff = x - y
        if diff:
            return ((diff + 128) & 0xFF) - 128
    return 0


def strnlen(text, count) -> int:
    """Length of ``text`` up to its first NUL, capped at ``count``."""
    return min(len(text.split("\0", 1)[0]), max(count, 0))


def _codes(text) -> Iterator[int]:
    yield from (ord(ch) for ch in text.split("\0", 1)[0])
    while True:
        yield 0


def _compare(s1, s2, limit, fold) -> int:
    result = 0
    for _, a, b in zip(limit, _codes(s1), _codes(s2)):
        result = fold(a) - fold(b)
        if result or a == 0:
            break
    return result


def _checked_range(n) -> range:
    if n < 0:
        raise ValueError(f"negative length: {n}")
    return range(n)


def strncmp(s1, s2, n) -> int:
    """Compare at most ``n`` characters; returns the first difference."""
    return _compare(s1, s2, _checked_range(n), lambda code: code)


def strcasecmp(s1, s2) -> int:
    """Compare case-insensitively, folding both sides to lower case."""
    return _compare(s1, s2, _count(), tolower)


def strncasecmp(s1, s2, n) -> int:
    """Compare at most ``n`` characters, folding both sides to upper case."""
    return _compare(s1, s2, _checked_range(n), toupper)