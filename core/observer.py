"""Structured JSON logging to stderr and an async JSON-lines frame log."""

import asyncio
import json
import os
import sys
import threading
from enum import IntEnum
from utils.timestamp import format_timestamp


class LogLevel(IntEnum):
    DEBUG = 10
    INFO = 20
    WARN = 30
    ERROR = 40

    @classmethod
    def parse(cls, name):
        """Level from a config string; unknown names fall back to INFO."""
        name = str(name).upper()
        return cls.__members__.get("WARN" if name == "WARNING" else name, cls.INFO)


_logger = None
_logger_lock = threading.Lock()


class StructuredLogger:
    """One JSON object per line. Keyword arguments become record fields."""

    def __init__(self, level=LogLevel.INFO, stream=None, fields=None):
        self.level = level
        self.stream = stream
        self.fields = fields or {}

    def bind(self, **fields):
        """Child logger that adds fields to every record."""
        return StructuredLogger(self.level, self.stream, {**self.fields, **fields})

    def _emit(self, level, message, error=None, **kwargs):
        if level < self.level:
            return
        record = {"timestamp": format_timestamp(), "level": level.name, "msg": message,
                  **self.fields, **kwargs}
        if error is not None:
            record["err"] = str(error)
        try:
            print(json.dumps(record, default=str), file=self.stream or sys.stderr, flush=True)
        except (OSError, ValueError):
            # closed stream during interpreter shutdown
            pass

    def debug(self, message, **kwargs):
        self._emit(LogLevel.DEBUG, message, **kwargs)

    def info(self, message, **kwargs):
        self._emit(LogLevel.INFO, message, **kwargs)

    def warn(self, message, error=None, **kwargs):
        self._emit(LogLevel.WARN, message, error, **kwargs)

    def error(self, message, error=None, **kwargs):
        self._emit(LogLevel.ERROR, message, error, **kwargs)

    @classmethod
    def configure(cls, min_level=LogLevel.INFO, stream=None):
        global _logger
        with _logger_lock:
            _logger = cls(min_level, stream)
        return _logger


def get_logger(**fields):
    global _logger
    if _logger is None:
        with _logger_lock:
            if _logger is None:
                _logger = StructuredLogger()
    return _logger.bind(**fields) if fields else _logger


class AsyncFileLogger:
    """Writes frame summaries and bus events to a JSON-lines file from a background task.

    `sample_every` keeps one frame record in N; events are always kept.
    """

    def __init__(self, file_path, queue_size=1000, sample_every=1):
        self.path = file_path
        self.queue = asyncio.Queue(maxsize=queue_size)
        self.sample_every = max(1, sample_every)
        self._task = None
        self._stop = asyncio.Event()
        self._frames_seen = 0
        self.written = 0
        self.dropped = 0
        self.skipped = 0

    def try_log(self, kind, data):
        if kind == "frame":
            self._frames_seen += 1
            if (self._frames_seen - 1) % self.sample_every:
                self.skipped += 1
                return False
        try:
            self.queue.put_nowait({"timestamp": format_timestamp(), "kind": kind, "data": data})
        except asyncio.QueueFull:
            self.dropped += 1
            return False
        return True

    async def start(self):
        if self._task:
            return
        log_dir = os.path.dirname(self.path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        self._stop.clear()
        self._task = asyncio.create_task(self._run())

    async def stop(self):
        self._stop.set()
        if self._task:
            await self._task
            self._task = None

    def get_stats(self):
        return {"queued": self.queue.qsize(), "written": self.written,
                "dropped": self.dropped, "skipped": self.skipped}

    def _write(self, file, record):
        file.write(json.dumps(record, default=str) + "\n")
        self.written += 1

    async def _next_record(self):
        try:
            return await asyncio.wait_for(self.queue.get(), timeout=0.5)
        except asyncio.TimeoutError:
            return None

    async def _run(self):
        warned_missing = False
        with open(self.path, "a") as file:
            while not self._stop.is_set():
                record = await self._next_record()
                if record is None:
                    continue
                if not os.path.exists(self.path):
                    # Rotated or deleted underneath us; keep draining so the queue stays bounded
                    if not warned_missing:
                        get_logger().warn("frame log deleted, logging disabled", path=self.path)
                        warned_missing = True
                    self.dropped += 1
                    continue
                try:
                    self._write(file, record)
                    file.flush()
                except OSError as exc:
                    self.dropped += 1
                    get_logger().warn("frame log write failed", error=exc, path=self.path)
            while not self.queue.empty():
                self._write(file, self.queue.get_nowait())
