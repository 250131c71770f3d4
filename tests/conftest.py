import threading

import pytest

from app.config import Config
from app.main import build_server
from app.stats import ProcessStats


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, start=1_700_000_000_000):
        self.t = start

    def __call__(self):
        return self.t

    def advance(self, ms):
        self.t += ms


class FakeStats(ProcessStats):
    def __init__(self, up=100.0):
        self.up = up

    def uptime(self):
        return self.up

    def memory_usage(self):
        return {"rss": 50 * 1024 * 1024, "vms": 200 * 1024 * 1024, "heap": 30 * 1024 * 1024}

    def load_average(self):
        return (0.5, 0.25, 0.125)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def stats():
    return FakeStats()


@pytest.fixture
def run_server(stats):
    """Start a server on an ephemeral port; yields a factory taking Config kwargs."""
    started = []

    def _run(**kw):
        kw.setdefault("host", "127.0.0.1")
        kw.setdefault("port", 0)
        srv = build_server(Config(**kw), stats=stats, hostname="test-host")
        t = threading.Thread(target=srv.serve_forever, daemon=True)
        t.start()
        started.append((srv, t))
        srv.base = f"http://127.0.0.1:{srv.server_address[1]}"
        return srv

    yield _run
    for srv, t in started:
        srv.shutdown()
        srv.server_close()
        t.join(timeout=5)


@pytest.fixture
def request_count():
    """Current http_requests_total value for one label-tuple, 0 if never seen."""
    def _count(reg, method, route, status_code):
        v = reg.registry.get_sample_value(
            "http_requests_total",
            {"method": method, "route": route, "status_code": str(status_code)},
        )
        return v or 0.0
    return _count
