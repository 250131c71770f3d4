"""Demo service used to validate deployment pipelines."""

__version__ = "1.0.0"
