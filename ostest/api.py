"""Types and constants of the kernel's public system-call interface."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import IntFlag
from typing import Any, Optional

Pid = int
Fid = int
Tid = int
Port = int
Timeout = int

Task = Callable[[int, Any], int]
"""Signature of a process or thread main function: ``task(argl, args)``."""

NOPROC: Pid = -1
MAX_PROC = 65536

MAX_FILEID = 16
NOFILE: Fid = -1

NOTHREAD: Tid = 0

MAX_PORT = 1023
NOPORT: Port = 0

PROCINFO_MAX_ARGS_SIZE = 128


class ShutdownMode(IntFlag):
    """Directions of socket communication that can be shut down."""

    READ = 1
    WRITE = 2
    BOTH = 3


@dataclass(frozen=True)
class Pipe:
    """The read and write file ids of a pipe."""

    read: Fid
    write: Fid


@dataclass
class ProcInfo:
    """Information about a used process slot, as returned by info streams.

    ``argl`` is the real argument length; ``args`` keeps only the first
    ``PROCINFO_MAX_ARGS_SIZE`` bytes of the argument.
    """

    pid: Pid
    ppid: Pid = NOPROC
    alive: bool = True
    thread_count: int = 0
    main_task: Optional[Task] = None
    argl: Optional[int] = None
    args: bytes = b""

    def __post_init__(self) -> None:
        self.args = bytes(self.args)
        if self.argl is None:
            self.argl = len(self.args)
        if self.argl < 0:
            raise ValueError("argument length cannot be negative")
        self.args = self.args[:PROCINFO_MAX_ARGS_SIZE]