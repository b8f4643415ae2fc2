# ostest

`ostest` is a compact unit-testing harness. It comes with a few building
blocks:

- `ostest.testing`: declare tests and test suites. Run them from code or
  from the command line, with coloured, indented reports.
- `ostest.reporting`: `Reporter`, the indenting, optionally coloured
  message writer that the runner uses, and the `Color` escape codes.
- `ostest.rlist`: `RLNode`, a circular, doubly linked list built on a
  single splice operation.
- `ostest.argpack`: pack a list of strings into one NUL-separated byte
  buffer, and unpack it again.
- `ostest.trycontext`: `ExceptionContext`, a stack of try frames with
  error handlers and finalisers.
- `ostest.sync`: `Mutex` and `CondVar`, including timed waits.
- `ostest.api`: shared constants (`NOPROC`, `MAX_FILEID`, `NOFILE`,
  `MAX_PORT`, `NOPORT`, ...) and small records (`ShutdownMode`, `Pipe`,
  `ProcInfo`).

It uses only the standard library and needs Python 3.10 or later.

## Installing

```
pip install .
```

To run the package's own tests:

```
pip install .[test]
pytest
```

## Writing tests

A bare test is a function that takes no arguments. Inside it, `check`
records a failure and lets the test continue. The test is still counted
as failed when it ends. If you leave out the message, `check` reports the
caller's file, line and source text.

```python
from ostest.testing import bare_test, check, test_suite

@bare_test("This is a silly test")
def my_test():
    check(1 + 1 == 2)
    check(2 * 2 * 2 < 10, "powers are broken\n")

all_my_tests = test_suite("all_my_tests", "These are mine", [my_test])
```

Suites can contain other suites. `bare_test` takes `timeout` in seconds
(default 10), `minimum_terminals` and `minimum_cores`.

A boot test is a `UnitTest` with `kind=Kind.BOOT`. Its function is called
as `func(ncores, nterminals)` once for every combination of the
requested core and terminal counts. A combination below the test's
`minimum_cores` or `minimum_terminals` is reported as skipped. Bare tests
do not check their minimums.

```python
from ostest.testing import Kind, UnitTest, check

def needs_a_terminal(ncores, nterm):
    check(nterm >= 1)

boot = UnitTest(Kind.BOOT, "needs_a_terminal", "Runs with one terminal or more",
                func=needs_a_terminal, minimum_terminals=1)
```

## Running tests

`Runner` holds the registry of available tests. It can hold at most 64
registered tests. It runs them and prints a report to standard error:

```python
from ostest.testing import Runner

runner = Runner()
runner.register_test(all_my_tests)
runner.run_program(["-v"], all_my_tests)
```

You can also call `run_test`, `run_suite`, `show_test` and `show_suite`
directly. `find_test` searches a suite tree by name.

By default each test runs in its own worker thread. A test that is still
running when its timeout expires is reported as failed and left running
in the background. With `--nofork`, tests run in the calling thread with
no timeout, and a failed test raises `AssertionError`. If
`/proc/self/status` shows that a tracer is attached, the runner defaults
to no-fork (`is_debugger_attached`).

The `ostest` command runs the harness's own built-in `internal` suite:

```
ostest --list
ostest -v
ostest --nocolor --nofork internal_success
ostest -c 1,2,4 --term=0,2
```

Options:

| option | meaning |
| --- | --- |
| `-l`, `--list` | show the tree of available tests |
| `-v`, `--verbose` | show descriptions of failed tests; repeat it to see timeouts and minimums in the list |
| `-n`, `--nocolor` | do not colour the output |
| `-f`, `--nofork` | run tests in the calling thread, without a timeout |
| `-F`, `--fork` | run each test in its own worker thread |
| `-c`, `--cores` | comma-separated list of core counts, each 1 to 32 |
| `-t`, `--term` | comma-separated list of terminal counts, each 0 to 4 |
| `--version` | print the version |

Any other arguments name the tests or suites to run. If none are given,
the default test runs. Number lists are checked against their range,
duplicates are dropped, and the values are sorted (`parse_int_list`). A
bad command line raises `UsageError` from `run_program`. The `ostest`
command turns it into a message and exit status 64.

## What it does not do

The package has no simulated machine. It has no processes, terminals,
pipes or sockets. Core and terminal counts are only passed to boot tests
as numbers. No helper feeds input to a terminal or checks a terminal's
output. `ostest.api` defines only constants and records, not the calls
that would use them. Tests run in threads, not in separate processes, so
a crashing test is isolated only as far as a Python exception is.

## Resource lists

```python
from ostest.rlist import RLNode

lst = RLNode(None)
for ch in "Hello":
    lst.push_back(RLNode(ch))

assert len(lst) == 5
assert [n.key for n in lst] == list("Hello")
assert lst.pop_front().key == "H"
```

`append` and `prepend` move every node of another list into this one and
leave the other list empty. `select` moves the nodes that match a
predicate to the end of another list. `find` returns the first node with
a given key, or a fallback. `equal` compares keys in order, and `reverse`
turns the ring around. Calling `pop_front` or `pop_back` on an empty list
returns the list node itself.

## Argument buffers

```python
from ostest.argpack import argvlen, argvpack, argscount, argvunpack

args = argvpack(["Hello", "Goodbye"])
assert argvlen(["Hello", "Goodbye"]) == 14 == len(args)
assert argscount(args) == 2
assert argvunpack(2, args) == ["Hello", "Goodbye"]
```

Strings are encoded as UTF-8. `argvunpack` raises `ValueError` if the
buffer holds fewer strings than requested.

## Try frames

```python
from ostest.trycontext import ExceptionContext

ctx = ExceptionContext()
with ctx.try_() as frame:
    frame.on_error(lambda err: print("rolling back"))
    frame.finally_(lambda err: print("cleaning up"))
    ctx.raise_exception()
```

When an error is raised, the frame's error handlers run first and then
its finalisers, both in last-in, first-out order. Finalisers receive 1
after an error and 0 otherwise. If no error handler ran, the error goes
on to the enclosing frame. Past the outermost frame it is dropped.
Calling `raise_exception` with no frame open does nothing.

## Synchronisation

```python
from ostest.sync import Mutex, CondVar

mx = Mutex()
cv = CondVar()
with mx:
    woken = cv.timed_wait(mx, 500)   # milliseconds
```

`wait` and `timed_wait` return True when the caller was woken by `signal`
or `broadcast`. `signal` wakes the oldest waiter. A negative timeout
raises `ValueError`.