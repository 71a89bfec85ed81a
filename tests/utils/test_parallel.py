import logging
import time
from concurrent.futures import TimeoutError as FuturesTimeoutError

import pytest
from evoport.utils.parallel import collect_exceptions, parallel_map


def _square(x):
    return x * x


def _fail_on_three(x):
    if x == 3:
        raise RuntimeError("boom")
    return x


@pytest.mark.parametrize("backend", ["sequential", "thread", "joblib"])
def test_parallel_map_preserves_order(backend):
    assert parallel_map(_square, range(8), backend=backend, max_workers=2) == [
        x * x for x in range(8)
    ]


def test_parallel_map_rejects_unknown_backend():
    with pytest.raises(ValueError, match="não reconhecido"):
        parallel_map(_square, [1, 2], backend="gpu")


def test_thread_backend_returns_exceptions_in_place():
    results = parallel_map(_fail_on_three, range(5), backend="thread", max_workers=2)
    assert isinstance(results[3], RuntimeError)
    valid, errors = collect_exceptions(results, re_raise=False)
    assert valid == [0, 1, 2, 4]
    assert len(errors) == 1


def test_collect_exceptions_re_raises():
    with pytest.raises(ValueError):
        collect_exceptions([1, ValueError("bad")])
    with pytest.raises(RuntimeError, match="2 worker"):
        collect_exceptions([KeyError("a"), ValueError("b")])


def _slow(x):
    time.sleep(0.5)
    return x


def test_thread_backend_logs_global_timeout(caplog):
    with caplog.at_level(logging.ERROR, logger="evoport.utils.parallel"):
        with pytest.raises(FuturesTimeoutError):
            parallel_map(_slow, range(2), backend="thread", max_workers=2, timeout=0.05)
    assert any("excedeu o timeout" in record.getMessage() for record in caplog.records)
