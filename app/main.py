#!/usr/bin/env python3
"""
Demo service used to check deployment pipelines end to end:
- GET /health   liveness probe
- GET /         landing info (hostname, version, env), JSON or HTML
- GET /metrics  JSON snapshot or Prometheus text, per METRICS_FORMAT
- Small CLI helpers to smoke-check or load a running deployment

The server is a plain single-threaded http.server, so the request counter and
the metrics registry are only ever touched by one request at a time.
"""

import argparse
import json
import signal
import socket
import sys
import threading
import time
from http.server import BaseHTTPRequestHandler, HTTPServer
from urllib.parse import urlparse

from .config import ConfigError, load_config
from .counter import RequestCounter, now_ms
from .handlers import resolve
from .metrics import MetricsRegistry, route_label
from .stats import HostStats

# ---------- tiny log ----------

def log_line(d, path=""):
    """Write a single JSON line to stdout (and optional file)."""
    d["ts"] = d.get("ts") or int(time.time())
    s = json.dumps(d, separators=(",", ":"))
    try:
        sys.stdout.write(s + "\n")
        sys.stdout.flush()
    except (OSError, ValueError):
        pass
    if path:
        try:
            with open(path, "a") as f:
                f.write(s + "\n")
        except OSError as e:
            sys.stderr.write(f"log file {path}: {e}\n")

# ---------- http ----------

class Handler(BaseHTTPRequestHandler):
    """Routes to the handlers in app.handlers and does the request accounting."""

    def log_message(self, f, *a):  # silence default http.server logging
        pass

    def do_GET(self):    self._d("GET")
    def do_HEAD(self):   self._d("HEAD")
    def do_POST(self):   self._d("POST")
    def do_PUT(self):    self._d("PUT")
    def do_DELETE(self): self._d("DELETE")
    def do_PATCH(self):  self._d("PATCH")

    def _send(self, c, b, ct, m):
        self.send_response(c)
        self.send_header("Content-Type", ct)
        self.send_header("Content-Length", str(len(b)))
        self.end_headers()
        if m != "HEAD":
            self.wfile.write(b)
        self._resp_code = c

    def _d(self, m):
        """Main dispatcher: count, run the handler, then label the result."""
        srv = self.server
        t0 = time.perf_counter()
        p = urlparse(self.path).path
        srv.counter.record_request()
        pattern, fn = resolve(m, p)
        c = 500
        try:
            c, b, ct = fn(srv)
            self._send(c, b, ct, m)
        finally:
            dt = max(0.0, time.perf_counter() - t0)
            rc = getattr(self, "_resp_code", c)
            srv.registry.increment(m, route_label(pattern, p), rc)
            log_line({"m": m, "p": p, "c": rc, "ms": int(dt * 1000)}, srv.config.log_path)

# ---------- serve ----------

class AppServer(HTTPServer):
    """HTTPServer carrying the per-process state the handlers read from."""

    def __init__(self, config, counter, registry, stats, clock=now_ms, hostname=None):
        self.config = config
        self.counter = counter
        self.registry = registry
        self.stats = stats
        self.clock = clock
        self.hostname = hostname
        super().__init__((config.host, config.port), Handler)


def build_server(config, stats=None, clock=now_ms, hostname=None):
    """Wire counter + registry + stats into a bound (not yet serving) server."""
    stats = stats or HostStats()
    counter = RequestCounter(clock=clock)
    registry = MetricsRegistry(stats, counter)
    return AppServer(config, counter, registry, stats, clock=clock,
                     hostname=hostname or socket.gethostname())


def serve(config):
    """Bind, announce the port, handle shutdown cleanly."""
    srv = build_server(config)

    def stop(sig, frm):
        # shutdown() waits for serve_forever, which runs on this thread
        threading.Thread(target=srv.shutdown, daemon=True).start()

    signal.signal(signal.SIGINT,  stop)
    signal.signal(signal.SIGTERM, stop)
    print(f"Server running on port {srv.server_address[1]}", flush=True)
    try:
        srv.serve_forever()
    finally:
        srv.server_close()

# ---------- CLI helpers ----------

CHECK_PATHS = ("/health", "/", "/metrics")


def cli_check(base):
    """GET every endpoint once, return True when all answered 200."""
    import requests
    res = {}
    for p in CHECK_PATHS:
        try:
            res[p] = requests.get(base + p, timeout=3).status_code
        except requests.RequestException as e:
            res[p] = str(e)
    ok = all(v == 200 for v in res.values())
    print(json.dumps({"ok": ok, "base": base, "results": res}))
    return ok


def cli_load(base, secs):
    import requests
    t0 = time.time(); i = 0; errors = 0
    while time.time() - t0 < secs:
        try:
            requests.get(base + "/", timeout=2)
            if i % 3 == 0: requests.get(base + "/health",  timeout=2)
            if i % 5 == 0: requests.get(base + "/metrics", timeout=2)
        except requests.RequestException:
            errors += 1
        i += 1; time.sleep(0.1)
    print(json.dumps({"hits": i, "errors": errors}))
    return i

# ---------- main ----------

def main(argv=None):
    ap = argparse.ArgumentParser(description="Deployment pipeline demo service")
    ap.add_argument("--serve", action="store_true", help="Run the web server (default)")
    ap.add_argument("--check", action="store_true", help="Smoke-check a running deployment")
    ap.add_argument("--load",  type=int, default=0, help="Generate load for N seconds")
    ap.add_argument("--base",  default=None, help="Base URL for --check/--load")
    args = ap.parse_args(argv)

    try:
        cfg = load_config()
    except ConfigError as e:
        sys.stderr.write(f"invalid configuration: {e}\n")
        return 2

    base = args.base or f"http://localhost:{cfg.port}"
    if args.serve or (not args.check and args.load == 0):
        serve(cfg)
        return 0
    ok = True
    if args.check:    ok = cli_check(base)
    if args.load > 0: cli_load(base, args.load)
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
