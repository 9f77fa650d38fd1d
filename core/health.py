"""Component health checks for the running simulator."""

import asyncio
import time
from enum import Enum
from core.errors import HealthCheckError
from utils.timestamp import format_timestamp

class Status(Enum):
    OK = "healthy"
    DEGRADED = "degraded"
    FAIL = "unhealthy"

class CheckResult:
    __slots__ = ("name", "status", "msg")

    def __init__(self, name, status, msg=""):
        self.name = name
        self.status = status
        self.msg = msg

    def to_dict(self):
        return {"name": self.name, "status": self.status.value, "msg": self.msg}

class HealthReport:
    __slots__ = ("status", "checks", "uptime", "timestamp")

    def __init__(self, status, checks, uptime=0):
        self.status = status
        self.checks = checks
        self.uptime = uptime
        self.timestamp = format_timestamp()

    def to_dict(self):
        return {"status": self.status.value,
                "timestamp": self.timestamp,
                "uptime": round(self.uptime, 1),
                "checks": [check.to_dict() for check in self.checks]}


def aggregate(results):
    """Worst status wins; a failing non-critical check only degrades."""
    status = Status.OK
    for result, is_critical in results:
        if result.status == Status.FAIL and is_critical:
            return Status.FAIL
        if result.status != Status.OK:
            status = Status.DEGRADED
    return status


_checker = None

class HealthChecker:
    def __init__(self, ttl=1.0, timeout=5.0):
        self._checks = {}
        self._cache = None
        self._cache_time = 0
        self._ttl = ttl
        self._timeout = timeout
        self._start_time = time.time()

    def register(self, name, check_fn, critical=True):
        if not callable(check_fn):
            raise HealthCheckError(f"check {name} is not callable", component=name)
        self._checks[name] = (check_fn, critical)

    async def _run_one(self, name, check_fn):
        try:
            return await asyncio.wait_for(check_fn(), timeout=self._timeout)
        except asyncio.TimeoutError:
            return CheckResult(name, Status.FAIL, "timeout")
        except Exception as exc:
            return CheckResult(name, Status.FAIL, str(exc))

    async def check(self):
        now = time.time()
        if self._cache and now - self._cache_time < self._ttl:
            return self._cache

        results = [(await self._run_one(name, check_fn), critical)
                   for name, (check_fn, critical) in self._checks.items()]
        self._cache = HealthReport(aggregate(results), [result for result, _ in results],
                                   now - self._start_time)
        self._cache_time = now
        return self._cache

def get_health_checker():
    global _checker
    if not _checker:
        _checker = HealthChecker()
    return _checker

# Checks
async def check_event_loop():
    await asyncio.sleep(0)
    return CheckResult("loop", Status.OK)

def create_bus_check(bus, max_drop_ratio=0.1):
    async def check():
        stats = bus.get_stats()
        if stats["total_published"] and stats["total_dropped"] / stats["total_published"] > max_drop_ratio:
            return CheckResult("bus", Status.DEGRADED, "drops")
        return CheckResult("bus", Status.OK, f"{stats['subscriber_count']}sub")
    return check

def create_engine_check(engine, threshold=5.0):
    """Fails when the tick counter is frozen while running; degrades when ticks overrun the frame budget."""
    last_seen = {"tick": None, "at": time.time()}

    async def check():
        frame = await engine.get_snapshot()
        now = time.time()

        if engine.state == "stopped":
            return CheckResult("engine", Status.DEGRADED, "stopped")

        if engine.state == "paused":
            last_seen.update(tick=frame.tick, at=now)
            return CheckResult("engine", Status.OK, f"paused@{frame.tick}")

        if frame.tick == last_seen["tick"] and now - last_seen["at"] > threshold:
            return CheckResult("engine", Status.FAIL, f"stuck@{frame.tick}")

        if frame.tick != last_seen["tick"]:
            last_seen.update(tick=frame.tick, at=now)
        budget_ms = engine.config.tick_interval * 1000
        if frame.compute_ms > budget_ms:
            return CheckResult("engine", Status.DEGRADED, f"slow {frame.compute_ms:.0f}ms@{frame.tick}")
        return CheckResult("engine", Status.OK, f"t{frame.tick}")
    return check

def create_bounds_check(engine):
    async def check():
        outside = await engine.count_outside()
        if outside:
            return CheckResult("bounds", Status.FAIL, f"{outside} outside")
        return CheckResult("bounds", Status.OK, f"{len(engine.world.particles)}p")
    return check

def create_logger_check(logger):
    async def check():
        queue_size, max_size = logger.queue.qsize(), logger.queue.maxsize
        if queue_size / max_size > 0.9:
            return CheckResult("log", Status.DEGRADED, f"{queue_size}/{max_size}")
        return CheckResult("log", Status.OK, f"{logger.written}w")
    return check
