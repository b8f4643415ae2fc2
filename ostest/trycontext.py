"""An exception stack with per-block error handlers and finalizers.

A ``try_()`` block pushes a frame on its context. Inside the block, handlers
are registered with ``Frame.on_error`` (run only when the block raises) and
``Frame.finally_`` (always run, receiving 1 on error and 0 otherwise). Both
kinds run last-registered first.

``raise_exception()`` aborts the innermost block: its error handlers run,
then its finalizers, then the frame is popped. If no error handler ran, the
error propagates to the enclosing block; past the outermost block it is
dropped. Raising from within a handler abandons that handler and resumes
unwinding with the remaining ones; an error that escapes is then not
considered handled.
"""

from __future__ import annotations

from collections.abc import Callable
from types import TracebackType
from typing import Optional

Handler = Callable[[int], object]


class ExceptionRaised(Exception):
    """Carries a raised error up to the innermost block of its context."""

    def __init__(self, context: ExceptionContext) -> None:
        super().__init__("exception raised")
        self.context = context


class Frame:
    """One active block on an exception stack."""

    def __init__(self) -> None:
        self.catchers: list[Handler] = []
        self.finalizers: list[Handler] = []

    def on_error(self, handler: Handler) -> Handler:
        """Register a handler to run only if the block raises."""
        self.catchers.append(handler)
        return handler

    def finally_(self, handler: Handler) -> Handler:
        """Register a handler to run when the block is left, either way."""
        self.finalizers.append(handler)
        return handler


class _TryBlock:
    def __init__(self, context: ExceptionContext) -> None:
        self._context = context
        self._frame = Frame()

    def __enter__(self) -> Frame:
        self._context._frames.append(self._frame)
        return self._frame

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> bool:
        context = self._context
        if exc is None:
            self._frame.catchers.clear()
            propagate = context._unwind(self._frame, 0)
        elif isinstance(exc, ExceptionRaised) and exc.context is context:
            propagate = context._unwind(self._frame, 1)
        else:
            # Foreign exceptions run the finalizers and keep propagating.
            self._frame.catchers.clear()
            context._unwind(self._frame, 1)
            return False
        if propagate and context._frames:
            raise ExceptionRaised(context)
        return True


class ExceptionContext:
    """An exception stack; use one per thread."""

    def __init__(self) -> None:
        self._frames: list[Frame] = []

    @property
    def depth(self) -> int:
        """Number of blocks currently active."""
        return len(self._frames)

    def try_(self) -> _TryBlock:
        """Return a context manager that opens a new block on this stack."""
        return _TryBlock(self)

    def raise_exception(self) -> None:
        """Abort the innermost block; does nothing when no block is active."""
        if self._frames:
            raise ExceptionRaised(self)

    def _unwind(self, frame: Frame, errcode: int) -> bool:
        """Run the frame's handlers, pop it, and tell whether to propagate."""
        captured = False
        while True:
            try:
                while frame.catchers:
                    captured = True
                    frame.catchers.pop()(errcode)
                while frame.finalizers:
                    frame.finalizers.pop()(errcode)
                break
            except ExceptionRaised as raised:
                if raised.context is not self:
                    raise
                errcode = 1
                captured = False
        if self._frames and self._frames[-1] is frame:
            self._frames.pop()
        else:
            self._frames.remove(frame)
        return bool(errcode) and not captured