"""
Route handlers. Each takes the running server (for config, counter, registry
and stats) and returns (status, body, content_type).
"""

import html
import json
import socket

from .counter import iso_ms

MESSAGE = "Hello from DevOps Test App!"


def jb(o): return json.dumps(o, separators=(",", ":")).encode()


def timestamp(srv):
    return iso_ms(srv.clock())


def html_page(title, body):
    return f"""<!doctype html>
<html><head><meta charset="utf-8"><title>{title}</title>
<style>body{{font-family:sans-serif;padding:20px}}.box{{padding:12px;border:1px solid #ddd;border-radius:8px}}table{{border-collapse:collapse}}td,th{{border:1px solid #ddd;padding:6px}}</style>
</head><body><h2>{title}</h2><div class="box">{body}</div></body></html>"""


def health(srv):
    return 200, jb({"status": "healthy", "timestamp": timestamp(srv)}), "application/json"


def root_info(srv):
    cfg = srv.config
    return {
        "message": MESSAGE,
        "hostname": srv.hostname or socket.gethostname(),
        "version": cfg.version,
        "env": cfg.env,
        "timestamp": timestamp(srv),
    }


def root(srv):
    info = root_info(srv)
    if not srv.config.html:
        return 200, jb(info), "application/json"
    rows = "".join(
        f"<tr><th>{html.escape(k)}</th><td>{html.escape(str(info[k]))}</td></tr>"
        for k in ("hostname", "version", "env", "timestamp")
    )
    body = f"<p>{html.escape(info['message'])}</p><table>{rows}</table>"
    return 200, html_page("DevOps Test App", body).encode(), "text/html; charset=utf-8"


def metrics_json(srv):
    st = srv.stats
    up = st.uptime()
    return {
        "uptime": up,
        "memory": st.memory_usage(),
        "cpu": list(st.load_average()),
        "requests": srv.counter.snapshot(up),
    }


def metrics(srv):
    if srv.config.metrics_format == "prometheus":
        return 200, srv.registry.render().encode("utf-8"), srv.registry.content_type
    return 200, jb(metrics_json(srv)), "application/json"


def not_found(srv):
    return 404, b"not found\n", "text/plain"


ROUTES = {
    ("GET", "/health"): health,
    ("GET", "/"): root,
    ("GET", "/metrics"): metrics,
}


def resolve(method, path):
    """(method, path) -> (route pattern or None, handler)."""
    if method == "HEAD":
        method = "GET"
    key = (method, path)
    if key in ROUTES:
        return path, ROUTES[key]
    return None, not_found
