import pytest

from ostest.trycontext import ExceptionContext, ExceptionRaised, Frame


@pytest.fixture
def ctx():
    return ExceptionContext()


def test_exc_empty_body(ctx):
    state = {"count": 0, "errors": []}

    with ctx.try_():
        pass
    assert ctx.depth == 0

    with ctx.try_() as f:
        @f.finally_
        def _fin(e):
            state["errors"].append(e)
            assert state["count"] == 0
            state["count"] += 1

        @f.on_error
        def _err(e):
            state["count"] += 100

    assert state["count"] == 1
    assert state["errors"] == [0]

    order = []
    with ctx.try_() as f:
        f.finally_(lambda e: order.append("first"))
        f.finally_(lambda e: order.append("second"))
    assert order == ["second", "first"]

    state["count"] = 10

    with ctx.try_() as f:
        def outer(e):
            with ctx.try_() as g:
                @g.finally_
                def inner(e2):
                    state["count"] += 1
            state["count"] += 1

        f.finally_(outer)
        assert state["count"] == 10
    assert state["count"] == 12
    assert ctx.depth == 0


def test_exc_catcher_match(ctx):
    count = [0]
    with ctx.try_() as f:
        f.on_error(lambda e: count.__setitem__(0, count[0] + 1))
        f.on_error(lambda e: count.__setitem__(0, count[0] + 1))
        ctx.raise_exception()
    assert count[0] == 2

    count[0] = 0
    with ctx.try_() as f:
        ctx.raise_exception()
        f.on_error(lambda e: count.__setitem__(0, 99))
    assert count[0] == 0

    count[0] = 0
    with ctx.try_() as f:
        f.on_error(lambda e: count.__setitem__(0, count[0] + 1))
        ctx.raise_exception()
        f.on_error(lambda e: count.__setitem__(0, 99))
    assert count[0] == 1


def test_exc_unwind(ctx):
    count = [0]

    def foo2():
        ctx.raise_exception()

    def foo():
        with ctx.try_() as f:
            f.finally_(lambda e: count.__setitem__(0, count[0] + 1))
            foo2()
            count[0] = 1000

    def bar():
        assert ctx.depth == 1
        with ctx.try_() as f:
            @f.on_error
            def _err(e):
                assert count[0] == 1
                count[0] += 1

            foo()
        return count[0]

    outer_errors = []
    with ctx.try_() as f:
        f.on_error(lambda e: outer_errors.append(e))
        assert bar() == 2
    assert outer_errors == []
    assert ctx.depth == 0


def test_exc_inloop(ctx):
    n = 10000
    total, total2 = 0, 0
    for i in range(1, n + 1):
        with ctx.try_() as f:
            def fin(e, i=i):
                nonlocal total
                total += i

            f.finally_(fin)
            total2 += i
            ctx.raise_exception()
    assert total2 == n * (n + 1) // 2
    assert total == n * (n + 1) // 2
    assert ctx.depth == 0


def test_exc_inloop2(ctx):
    n = 10000
    total, total2 = 0, 0
    depths = set()
    for i in range(1, n + 1):
        with ctx.try_() as f:
            depths.add(ctx.depth)
            total2 += 3 * i
            total += i * 3
            assert f.catchers == []
    assert total == total2
    assert total == 3 * n * (n + 1) // 2
    assert depths == {1}
    assert ctx.depth == 0


def test_finalizer_receives_error_code(ctx):
    codes = []
    with ctx.try_() as f:
        f.finally_(codes.append)
        ctx.raise_exception()
    assert codes == [1]


def test_uncaught_propagates_to_outer_block(ctx):
    events = []
    with ctx.try_() as outer:
        outer.on_error(lambda e: events.append("outer"))
        with ctx.try_() as inner:
            inner.finally_(lambda e: events.append("inner-finally"))
            ctx.raise_exception()
        events.append("unreachable")
    assert events == ["inner-finally", "outer"]


def test_catcher_raising_continues_with_next(ctx):
    events = []
    with ctx.try_() as outer:
        outer.on_error(lambda e: events.append("outer"))
        with ctx.try_() as inner:
            inner.on_error(lambda e: events.append("first"))

            @inner.on_error
            def _raising(e):
                events.append("second")
                ctx.raise_exception()

            ctx.raise_exception()
    assert events == ["second", "first"]


def test_last_catcher_raising_propagates(ctx):
    events = []
    with ctx.try_() as outer:
        outer.on_error(lambda e: events.append("outer"))
        with ctx.try_() as inner:
            @inner.on_error
            def _raising(e):
                events.append("inner")
                ctx.raise_exception()

            ctx.raise_exception()
    assert events == ["inner", "outer"]


def test_finalizer_raising_on_normal_exit_propagates(ctx):
    events = []
    with ctx.try_() as outer:
        outer.on_error(lambda e: events.append("outer"))
        with ctx.try_() as inner:
            inner.finally_(lambda e: events.append(("first", e)))

            @inner.finally_
            def _raising(e):
                events.append(("second", e))
                ctx.raise_exception()

    assert events == [("second", 0), ("first", 1), "outer"]


def test_raise_without_block_is_noop(ctx):
    steps = []
    assert ctx.raise_exception() is None
    steps.append("after")
    assert steps == ["after"]


def test_foreign_exception_runs_finalizers_and_propagates(ctx):
    codes = []
    with pytest.raises(KeyError):
        with ctx.try_() as f:
            f.on_error(lambda e: codes.append("catcher"))
            f.finally_(codes.append)
            raise KeyError("x")
    assert codes == [1]
    assert ctx.depth == 0


def test_foreign_context_error_passes_through(ctx):
    other = ExceptionContext()
    with other.try_():
        with pytest.raises(ExceptionRaised) as info:
            with ctx.try_():
                other.raise_exception()
        assert info.value.context is other
    assert ctx.depth == 0


def test_frame_registration_returns_handler():
    frame = Frame()

    def handler(e):
        return e

    assert frame.on_error(handler) is handler
    assert frame.finally_(handler) is handler
    assert frame.catchers == [handler]
    assert frame.finalizers == [handler]