"""Packing string vectors into a single NUL-separated argument buffer.

Each string is encoded as UTF-8 and followed by a zero byte, so a buffer of
``n`` strings holds exactly ``n`` zero bytes.
"""

from __future__ import annotations

from collections.abc import Sequence

_ENCODING = "utf-8"


def _encoded(argv: Sequence[str]) -> list[bytes]:
    return [s.encode(_ENCODING) for s in argv]


def argvlen(argv: Sequence[str]) -> int:
    """Total size in bytes of the packed strings, terminators included."""
    return sum(len(s) + 1 for s in _encoded(argv))


def argvpack(argv: Sequence[str]) -> bytes:
    """Pack strings into one buffer, each followed by a zero byte."""
    return b"".join(s + b"\0" for s in _encoded(argv))


def argscount(args: bytes | bytearray | memoryview) -> int:
    """Number of strings packed in ``args``: the count of its zero bytes."""
    return bytes(args).count(b"\0")


def argvunpack(argc: int, args: bytes | bytearray | memoryview) -> list[str]:
    """Unpack the first ``argc`` strings from a packed buffer.

    Raises ``ValueError`` if ``argc`` is negative or the buffer holds fewer
    than ``argc`` strings.
    """
    if argc < 0:
        raise ValueError("argc cannot be negative")
    data = bytes(args)
    available = data.count(b"\0")
    if argc > available:
        raise ValueError(
            f"buffer holds {available} strings, cannot unpack {argc}"
        )
    if argc == 0:
        return []
    pieces = data.split(b"\0", argc)
    return [piece.decode(_ENCODING) for piece in pieces[:argc]]