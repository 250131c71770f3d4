"""
Prometheus exposition for the service.

Each MetricsRegistry owns its own CollectorRegistry, so two servers in one
process (tests) never see each other's series.
"""

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, generate_latest
from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily

LOAD_WINDOWS = ("1m", "5m", "15m")


def route_label(pattern, path):
    """Prefer the matched route pattern, fall back to the raw path."""
    if pattern:
        return pattern
    return (path or "/").split("?", 1)[0]


class ProcessCollector:
    """Pulls runtime gauges from a ProcessStats (and optionally a RequestCounter) at scrape time."""

    def __init__(self, stats, counter=None):
        self.stats = stats
        self.counter = counter

    def collect(self):
        up = GaugeMetricFamily("app_process_uptime_seconds", "Seconds since the process started")
        up.add_metric([], self.stats.uptime())
        yield up

        mem = self.stats.memory_usage()
        rss = GaugeMetricFamily("app_process_resident_memory_bytes", "Resident memory size in bytes")
        rss.add_metric([], mem.get("rss", 0))
        yield rss
        vms = GaugeMetricFamily("app_process_virtual_memory_bytes", "Virtual memory size in bytes")
        vms.add_metric([], mem.get("vms", 0))
        yield vms
        heap = GaugeMetricFamily("app_process_heap_bytes", "Process heap (data segment) size in bytes")
        heap.add_metric([], mem.get("heap", 0))
        yield heap

        load = GaugeMetricFamily("app_load_average", "System load average", labels=["window"])
        for w, v in zip(LOAD_WINDOWS, self.stats.load_average()):
            load.add_metric([w], v)
        yield load

        if self.counter is not None:
            last = GaugeMetricFamily("app_requests_last_minute", "Requests seen in the last 60 seconds")
            last.add_metric([], self.counter.window_size)
            yield last
            seen = CounterMetricFamily("app_requests_seen", "Requests seen by the accounting middleware")
            seen.add_metric([], self.counter.total)
            yield seen


class MetricsRegistry:
    content_type = CONTENT_TYPE_LATEST

    def __init__(self, stats, counter=None):
        self.registry = CollectorRegistry()
        self.requests = Counter(
            "http_requests_total", "Total HTTP requests",
            ["method", "route", "status_code"],
            registry=self.registry,
        )
        self.registry.register(ProcessCollector(stats, counter))

    def increment(self, method, route, status_code):
        self.requests.labels(method=method, route=route, status_code=str(status_code)).inc()

    def render(self):
        return generate_latest(self.registry).decode("utf-8")
