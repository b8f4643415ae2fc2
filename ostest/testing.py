"""Declaring, organising and running unit tests.

Tests come in three kinds. A *bare* test is a plain function. A *boot* test
is a function run once for every combination of core and terminal counts
requested on the command line, receiving ``(ncores, nterminals)``. A *suite*
is a named sequence of other tests.

Inside a test, ``check`` records a failure without stopping the test. Each
test runs in its own worker thread and is abandoned, and counted as failed,
once its timeout expires. With forking disabled, tests run in the calling
thread with no timeout, and a failure raises ``AssertionError``.
"""

from __future__ import annotations

import argparse
import inspect
import re
import sys
import threading
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

from ostest.reporting import Color, Reporter

MAX_TESTS = 1024
"""The largest number of tests that can be named on the command line."""

MAX_TESTS_AVAILABLE = 64
"""The largest number of tests that can be registered with a runner."""

DEFAULT_TIMEOUT = 10
"""Seconds a test may run before it is abandoned."""

MAX_CORES = 32
"""The largest core count accepted on the command line."""

MAX_TERMINALS = 4
"""The largest terminal count accepted on the command line."""

EX_USAGE = 64
"""Exit status for command-line usage errors."""

VERSION = "2.1"

_DOC = "A testing and validation program."
_EPILOG = (
    "Use this program by providing a list of cores, a list of terminals and "
    "a list of tests. All arguments are optional. For example, "
    "'ostest -c 1,2,4 --term=0,2 basic_tests' executes each boot test in the "
    "'basic_tests' suite on 6 machine configurations, one for each "
    "combination of the number of cores and number of terminals."
)


class Kind(Enum):
    """The kind of a test."""

    NONE = 0
    BARE = 1
    BOOT = 2
    SUITE = 3


@dataclass(eq=False)
class UnitTest:
    """Describes one test or suite of tests."""

    kind: Kind
    name: str
    description: str = ""
    func: Optional[Callable[..., Any]] = None
    suite: list[UnitTest] = field(default_factory=list)
    timeout: int = DEFAULT_TIMEOUT
    minimum_terminals: int = 0
    minimum_cores: int = 1


@dataclass
class ProgramArguments:
    """Settings for running tests, usually taken from the command line."""

    show_tests: bool = False
    verbose: int = 0
    use_color: bool = True
    fork: bool = True
    core_list: list[int] = field(default_factory=lambda: [1])
    term_list: list[int] = field(default_factory=lambda: [0])
    tests: list[UnitTest] = field(default_factory=list)


class UsageError(Exception):
    """The command line could not be understood."""


class _RunState:
    """Failure flag and message sink of one test execution."""

    def __init__(self, reporter: Reporter) -> None:
        self.reporter = reporter
        self.failed = False


_local = threading.local()
_active: Optional[_RunState] = None
_fallback: Optional[_RunState] = None


def _activate(state: _RunState) -> None:
    global _active
    _active = state


def _current_state() -> _RunState:
    global _fallback
    state = getattr(_local, "state", None) or _active
    if state is None:
        if _fallback is None:
            _fallback = _RunState(Reporter())
        state = _fallback
    return state


def bare_test(
    description: str,
    timeout: int = DEFAULT_TIMEOUT,
    minimum_terminals: int = 0,
    minimum_cores: int = 1,
) -> Callable[[Callable[[], Any]], UnitTest]:
    """Decorate a function taking no arguments to make it a bare test."""

    def decorate(func: Callable[[], Any]) -> UnitTest:
        return UnitTest(
            kind=Kind.BARE,
            name=func.__name__,
            description=description,
            func=func,
            timeout=timeout,
            minimum_terminals=minimum_terminals,
            minimum_cores=minimum_cores,
        )

    return decorate


def test_suite(name: str, description: str, tests: Iterable[UnitTest]) -> UnitTest:
    """Group tests into a named suite."""
    return UnitTest(
        kind=Kind.SUITE, name=name, description=description, suite=list(tests)
    )


def check(expr: Any, message: Optional[str] = None) -> bool:
    """Record a test failure if ``expr`` is false; the test keeps running.

    Without a ``message``, the caller's file, line and source text are
    reported. Returns the truth value of ``expr``.
    """
    if expr:
        return True
    if message is None:
        frame = inspect.currentframe()
        caller = frame.f_back if frame is not None else None
        try:
            if caller is None:
                message = "ASSERT failed\n"
            else:
                info = inspect.getframeinfo(caller, context=1)
                text = info.code_context[0].strip() if info.code_context else ""
                message = f"{info.filename}({info.lineno}): ASSERT failed: {text} \n"
        finally:
            del frame, caller
    state = _current_state()
    state.failed = True
    state.reporter.msg(message)
    return False


_INTEGER = re.compile(r"\s*[+-]?\d+")


def parse_int_list(arg: str, low: int, high: int) -> list[int]:
    """Parse a comma-separated list of integers in ``[low, high]``.

    Returns the distinct values in ascending order. Raises ``ValueError`` on
    malformed or out-of-range input, or when the list is empty.
    """
    values: set[int] = set()
    for token in arg.split(","):
        if not token:
            continue
        if not _INTEGER.fullmatch(token):
            raise ValueError(f"malformed integer: {token!r}")
        number = int(token)
        if not low <= number <= high:
            raise ValueError(f"{number} is not between {low} and {high}")
        values.add(number)
    if not values:
        raise ValueError("empty list")
    return sorted(values)


def find_test(name: str, test: UnitTest) -> Optional[UnitTest]:
    """Search ``test`` and, depth first, its suite members for ``name``."""
    if test.name == name:
        return test
    if test.kind is Kind.SUITE:
        for member in test.suite:
            found = find_test(name, member)
            if found is not None:
                return found
    return None


def is_debugger_attached(
    status_path: Union[str, Path] = "/proc/self/status",
) -> bool:
    """Whether the process status file names a tracing process."""
    try:
        text = Path(status_path).read_text(errors="replace")
    except OSError:
        return False
    marker = "TracerPid:"
    position = text.find(marker)
    if position < 0:
        return False
    rest = text[position + len(marker):].lstrip()
    return bool(rest) and rest[0].isdigit() and rest[0] != "0"


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        raise UsageError(message)


def _build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(prog="ostest", description=_DOC, epilog=_EPILOG)
    parser.add_argument("-c", "--cores", metavar="<cores>",
                        help="List of number of cores")
    parser.add_argument("-f", "--nofork", dest="fork", action="store_const",
                        const=False, default=None,
                        help="Don't run tests in a separate worker")
    parser.add_argument("-F", "--fork", dest="fork", action="store_const",
                        const=True, default=None,
                        help="Force running tests in a separate worker")
    parser.add_argument("-t", "--term", metavar="<terminals>",
                        help="List of number of terminals")
    parser.add_argument("-l", "--list", action="store_true",
                        help="Show a list of available tests")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Be verbose: show test descriptions")
    parser.add_argument("-n", "--nocolor", action="store_true",
                        help="Do not color the output")
    parser.add_argument("--version", action="version",
                        version=f"%(prog)s {VERSION}")
    parser.add_argument("tests", nargs="*", metavar="TEST")
    return parser


class Runner:
    """Holds registered tests and runs them, reporting as it goes."""

    def __init__(
        self,
        args: Optional[ProgramArguments] = None,
        reporter: Optional[Reporter] = None,
    ) -> None:
        self.args = args if args is not None else ProgramArguments()
        self.reporter = (
            reporter if reporter is not None
            else Reporter(use_color=self.args.use_color)
        )
        self.available = UnitTest(
            kind=Kind.SUITE,
            name="all_tests_available",
            description="Used by find_test()",
        )

    def register_test(self, test: UnitTest) -> None:
        """Make ``test`` available by name; raises ``RuntimeError`` when full."""
        if len(self.available.suite) >= MAX_TESTS_AVAILABLE:
            raise RuntimeError(
                f"at most {MAX_TESTS_AVAILABLE} tests can be registered"
            )
        self.available.suite.append(test)

    def _verdict(self, result: bool) -> str:
        if result:
            return self.reporter.color("ok", Color.GREEN)
        return self.reporter.color("*** FAILED ***", Color.RED)

    def _execute(self, func: Callable[[], Any], timeout: int, name: str) -> bool:
        state = _RunState(self.reporter)
        _activate(state)
        if not self.args.fork:
            _local.state = state
            try:
                func()
            finally:
                _local.state = None
            if state.failed:
                raise AssertionError(f"test {name} failed")
            return True

        errors: list[BaseException] = []

        def body() -> None:
            _local.state = state
            try:
                func()
            except BaseException as exc:  # noqa: BLE001 - reported as a crash
                errors.append(exc)

        worker = threading.Thread(target=body, name=f"test-{name}", daemon=True)
        worker.start()
        worker.join(timeout if timeout > 0 else None)
        if worker.is_alive():
            state.failed = True
            self.reporter.msg("Test timed out\n")
            return False
        if errors:
            exc = errors[0]
            self.reporter.msg(
                f"Test crashed, exception={type(exc).__name__} ({exc})\n"
            )
            return False
        return not state.failed

    def _run_boot_test(self, test: UnitTest, ncores: int, nterm: int) -> bool:
        skipped = ncores < test.minimum_cores or nterm < test.minimum_terminals
        result = True
        if not skipped:
            func = test.func
            result = self._execute(lambda: func(ncores, nterm), test.timeout,
                                   test.name)
        r = self.reporter
        r.msg(f"{r.color(test.name, Color.WHITE):<52} "
              f"[cores={ncores:2d},term={nterm:1d}]:")
        status = r.color("skipped", Color.CYAN) if skipped else self._verdict(result)
        r.msg(f" {status}\n")
        return result

    def run_test(self, test: UnitTest) -> bool:
        """Run a test of any kind and report whether it succeeded."""
        r = self.reporter
        if test.kind is Kind.BOOT:
            result = True
            for ncores in self.args.core_list:
                for nterm in self.args.term_list:
                    result = self._run_boot_test(test, ncores, nterm) and result
        elif test.kind is Kind.BARE:
            result = self._execute(test.func, test.timeout, test.name)
            r.msg(f"{r.color(test.name, Color.WHITE):<70}:")
            r.msg(f" {self._verdict(result)}\n")
        elif test.kind is Kind.SUITE:
            result = self.run_suite(test.name, test.suite)
            r.msg(f"{r.color(test.name, Color.WHITE):<70}:")
            r.msg(f" {self._verdict(result)}\n")
        else:
            return True

        if not result and self.args.verbose > 0:
            r.indent()
            r.msg("description: ")
            r.tab()
            r.msg(f"{test.description}\n")
            r.unindent()
            r.unindent()
        return result

    def run_suite(self, name: str, tests: Sequence[UnitTest]) -> bool:
        """Run every test in ``tests``; True if all of them succeeded."""
        r = self.reporter
        r.msg(f"running suite: {r.color(name, Color.YELLOW)}\n")
        with r.indented():
            total = successful = 0
            for test in tests:
                total += 1
                if self.run_test(test):
                    successful += 1
            r.msg(f"suite {r.color(name, Color.YELLOW)} completed "
                  f"[tests={total}, failed={total - successful}]\n")
        return total == successful

    def show_test(self, test: UnitTest) -> None:
        """Print the name, and when verbose the details, of a test."""
        if test.kind is Kind.SUITE:
            self.show_suite(test)
            return
        r = self.reporter
        r.msg(f"{r.color(test.name, Color.WHITE):<40}\n")
        if self.args.verbose > 0:
            with r.indented():
                r.msg(f"{test.description}\n")
                if self.args.verbose > 1:
                    r.msg(f".timeout = {test.timeout} sec\n")
                    r.msg(f".minimum cores = {test.minimum_cores}\n"
                          f".minimum terminals = {test.minimum_terminals}\n")

    def show_suite(self, suite: UnitTest) -> None:
        """Print a suite and, indented, everything it contains."""
        r = self.reporter
        r.msg(f"{r.color(suite.name, Color.YELLOW):<40}\n")
        with r.indented():
            if self.args.verbose:
                r.msg(f"{suite.description}\n")
            for test in suite.suite:
                self.show_test(test)

    def run_program(
        self,
        argv: Optional[Sequence[str]] = None,
        default_test: Optional[UnitTest] = None,
    ) -> int:
        """Parse command-line arguments, then list or run the tests.

        Raises ``UsageError`` on a malformed command line.
        """
        args = self.args
        args.fork = not is_debugger_attached()
        ns = _build_parser().parse_args(None if argv is None else list(argv))

        if ns.list:
            args.show_tests = True
        args.verbose += ns.verbose
        if ns.nocolor:
            args.use_color = False
            self.reporter.use_color = False
        if ns.fork is not None:
            args.fork = ns.fork
        if ns.cores is not None:
            try:
                args.core_list = parse_int_list(ns.cores, 1, MAX_CORES)
            except ValueError:
                raise UsageError(
                    f"Error in parsing list of cores: {ns.cores}"
                ) from None
        if ns.term is not None:
            try:
                args.term_list = parse_int_list(ns.term, 0, MAX_TERMINALS)
            except ValueError:
                raise UsageError(
                    f"Error in parsing list of terminals: {ns.term}"
                ) from None

        if ns.tests:
            for name in ns.tests:
                if len(args.tests) >= MAX_TESTS:
                    raise UsageError(
                        f"Number of tests too large (maximum={MAX_TESTS})"
                    )
                test = find_test(name, self.available)
                if test is None:
                    raise UsageError(f"Unknown test: {name}")
                args.tests.append(test)
        else:
            args.tests.append(
                default_test if default_test is not None else self.available
            )

        if args.show_tests:
            self.show_suite(self.available)
        else:
            for test in args.tests:
                self.run_test(test)
        return 0


@bare_test("A test that succeeds.")
def internal_success() -> None:
    check(True)


@bare_test("A test that fails by assertion.")
def internal_failure() -> None:
    check(False)


@bare_test("A test that fails by timeout.", timeout=1)
def internal_timeout() -> None:
    threading.Event().wait(5)


@bare_test("A test that is skipped", minimum_terminals=2**32 - 1)
def internal_skip() -> None:
    pass


INTERNAL = test_suite(
    "internal",
    "A suite of internal tests, testing the test framework itself.",
    [internal_success, internal_failure, internal_timeout, internal_skip],
)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the framework's own tests from the command line."""
    runner = Runner()
    runner.register_test(INTERNAL)
    try:
        return runner.run_program(argv, INTERNAL)
    except UsageError as exc:
        print(f"ostest: {exc}", file=sys.stderr)
        return EX_USAGE