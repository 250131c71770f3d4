"""
Tests for the route handlers, called directly without a socket.
"""
import json
from datetime import datetime

from app.config import Config
from app.counter import RequestCounter
from app.handlers import health, metrics, not_found, resolve, root
from app.metrics import MetricsRegistry


class Srv:
    def __init__(self, clock, stats, **cfg):
        self.config = Config(**cfg)
        self.clock = clock
        self.stats = stats
        self.hostname = "box-1"
        self.counter = RequestCounter(clock=clock)
        self.registry = MetricsRegistry(stats, self.counter)


def test_resolve():
    assert resolve("GET", "/") == ("/", root)
    assert resolve("GET", "/health") == ("/health", health)
    assert resolve("HEAD", "/metrics") == ("/metrics", metrics)
    assert resolve("POST", "/health") == (None, not_found)
    assert resolve("GET", "/missing") == (None, not_found)


def test_health(clock, stats):
    c, b, ct = health(Srv(clock, stats))
    assert c == 200
    assert ct == "application/json"
    d = json.loads(b)
    assert d["status"] == "healthy"
    ts = datetime.fromisoformat(d["timestamp"].replace("Z", "+00:00"))
    assert int(ts.timestamp() * 1000) == clock()


def test_root_json(clock, stats):
    c, b, ct = root(Srv(clock, stats, version="2.3.1", env_name="production"))
    d = json.loads(b)
    assert c == 200
    assert d["message"] == "Hello from DevOps Test App!"
    assert d["hostname"] == "box-1"
    assert d["version"] == "2.3.1"
    assert d["env"] == "production"
    assert "timestamp" in d


def test_root_html_escapes_fields(clock, stats):
    srv = Srv(clock, stats, html=True, version="<b>1</b>")
    c, b, ct = root(srv)
    page = b.decode()
    assert ct.startswith("text/html")
    assert "box-1" in page
    assert "&lt;b&gt;1&lt;/b&gt;" in page
    assert "<b>1</b>" not in page


def test_metrics_json(clock, stats):
    srv = Srv(clock, stats)
    for _ in range(5):
        srv.counter.record_request()
    c, b, ct = metrics(srv)
    d = json.loads(b)
    assert c == 200
    assert d["uptime"] == 100.0
    assert d["memory"] == stats.memory_usage()
    assert d["cpu"] == [0.5, 0.25, 0.125]
    assert d["requests"]["total"] == 5
    assert d["requests"]["qpsAverage"] == 0.05
    assert d["requests"]["qpsLastMinute"] == round(5 / 60, 4)


def test_metrics_json_is_idempotent(clock, stats):
    srv = Srv(clock, stats)
    srv.counter.record_request()
    assert metrics(srv) == metrics(srv)


def test_metrics_prometheus(clock, stats):
    srv = Srv(clock, stats, metrics_format="prometheus")
    srv.registry.increment("GET", "/", 200)
    c, b, ct = metrics(srv)
    assert c == 200
    assert ct == srv.registry.content_type
    assert 'http_requests_total{method="GET",route="/",status_code="200"} 1.0' in b.decode()


def test_not_found(clock, stats):
    assert not_found(Srv(clock, stats))[0] == 404
