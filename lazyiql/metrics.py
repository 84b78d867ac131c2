from __future__ import annotations
import time
import threading
from collections import defaultdict
from contextlib import contextmanager
from typing import Dict, Iterator, List

class _Latency:
    # rolling window of recent samples, enough for a p95 over Insight calls
    WINDOW = 200
    def __init__(self):
        self.lock = threading.Lock()
        self.count = 0
        self._samples: List[float] = []
    def observe_ms(self, ms: float):
        with self.lock:
            self.count += 1
            self._samples.append(ms)
            if len(self._samples) > self.WINDOW:
                self._samples = self._samples[-self.WINDOW:]
    def p95_ms(self) -> float:
        with self.lock:
            if not self._samples:
                return 0.0
            arr = sorted(self._samples)
            return arr[int(0.95 * (len(arr) - 1))]

class Metrics:
    """Process-local counters and latency windows, exposed at /_metrics."""
    def __init__(self):
        self.counters: Dict[str, int] = defaultdict(int)
        self.latencies: Dict[str, _Latency] = defaultdict(_Latency)
        self.lock = threading.Lock()
        self.process_start_ns = time.time_ns()
    def inc(self, key: str, n: int = 1):
        with self.lock:
            self.counters[key] += n
    def observe_ms(self, key: str, ms: float):
        with self.lock:
            lat = self.latencies[key]
        lat.observe_ms(ms)
    @contextmanager
    def timed(self, key: str) -> Iterator[None]:
        t0 = time.perf_counter()
        try:
            yield
        finally:
            self.observe_ms(key, (time.perf_counter() - t0) * 1000)
    def reset(self):
        with self.lock:
            self.counters.clear()
            self.latencies.clear()
    def snapshot(self) -> Dict:
        up_ms = (time.time_ns() - self.process_start_ns) / 1e6
        with self.lock:
            counters = dict(self.counters)
            latencies = dict(self.latencies)
        return {
            "uptime_ms": up_ms,
            "counters": counters,
            "latency_p95_ms": {k: v.p95_ms() for k, v in latencies.items()},
        }

metrics = Metrics()
