"""
Process introspection behind a small interface so the metrics code does not
care where the numbers come from.
"""

import time

import psutil


class ProcessStats:
    """uptime() in seconds, memory_usage() as a dict of bytes (rss, vms, heap), load_average() as a 3-tuple."""

    def uptime(self):
        raise NotImplementedError

    def memory_usage(self):
        raise NotImplementedError

    def load_average(self):
        raise NotImplementedError


class HostStats(ProcessStats):
    """ProcessStats for the current process, via psutil."""

    def __init__(self, proc=None):
        self.proc = proc or psutil.Process()
        self.created = self.proc.create_time()

    def uptime(self):
        return max(0.0, time.time() - self.created)

    def memory_usage(self):
        m = self.proc.memory_info()
        # data segment (heap + stack) where the platform reports it, else unique set size
        heap = getattr(m, "data", None)
        if heap is None:
            heap = self.proc.memory_full_info().uss
        return {"rss": m.rss, "vms": m.vms, "heap": heap}

    def load_average(self):
        return tuple(psutil.getloadavg())
