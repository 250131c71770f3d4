"""
Environment configuration.

Everything is read once at startup into a Config object which the server
keeps a reference to. Bad values fail here, before anything binds a port.
"""

import os

METRICS_FORMATS = ("json", "prometheus")


class ConfigError(ValueError):
    """Raised when an environment value cannot be used."""


def env(k, d=None, environ=None):
    """Fetch an env var with a default, treat empty as missing."""
    e = os.environ if environ is None else environ
    v = e.get(k)
    if v is None or v == "":
        return d
    return v


def parse_port(raw):
    try:
        port = int(str(raw).strip())
    except ValueError:
        raise ConfigError(f"PORT must be an integer, got {raw!r}") from None
    if not 1 <= port <= 65535:
        raise ConfigError(f"PORT must be between 1 and 65535, got {port}")
    return port


class Config:
    def __init__(self, port=3000, host="0.0.0.0", version="1.0.0", env_name="development",
                 metrics_format="json", html=False, log_path=""):
        self.port = port
        self.host = host
        self.version = version
        self.env = env_name
        self.metrics_format = metrics_format
        self.html = html
        self.log_path = log_path


def load_config(environ=None):
    """Build a Config from the environment (os.environ unless given)."""
    fmt = env("METRICS_FORMAT", "json", environ).strip().lower()
    if fmt not in METRICS_FORMATS:
        raise ConfigError(f"METRICS_FORMAT must be one of {', '.join(METRICS_FORMATS)}, got {fmt!r}")
    return Config(
        port=parse_port(env("PORT", "3000", environ)),
        host=env("HOST", "0.0.0.0", environ),
        version=env("APP_VERSION", "1.0.0", environ),
        env_name=env("APP_ENV", env("NODE_ENV", "development", environ), environ),
        metrics_format=fmt,
        html=env("HTML_ENABLE", "0", environ) == "1",
        log_path=env("LOG_PATH", "", environ),
    )
