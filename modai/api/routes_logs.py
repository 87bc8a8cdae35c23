import logging
import threading
from collections import deque
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, HTTPException

router = APIRouter(prefix="/api/logs", tags=["logs"])


class BufferedLogHandler(logging.Handler):
    """Keeps the most recent log records in memory for the diagnostics panel."""

    def __init__(self, maxlen: int = 500):
        super().__init__()
        self._buffer: deque[dict] = deque(maxlen=maxlen)
        self._lock = threading.Lock()

    def emit(self, record: logging.LogRecord):
        entry = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "levelno": record.levelno,
            "name": record.name,
            "message": self.format(record),
        }
        with self._lock:
            self._buffer.append(entry)

    def get_buffer(self, min_level: int = logging.NOTSET) -> list[dict]:
        with self._lock:
            return [e for e in self._buffer if e["levelno"] >= min_level]

    def clear(self):
        with self._lock:
            self._buffer.clear()


log_handler = BufferedLogHandler()
log_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))


@router.get("")
async def get_logs(level: Optional[str] = None, limit: int = 200):
    min_level = logging.NOTSET
    if level:
        min_level = logging.getLevelName(level.upper())
        if not isinstance(min_level, int):
            raise HTTPException(status_code=400, detail=f"Unknown log level '{level}'")
    entries = log_handler.get_buffer(min_level)
    return {"logs": entries[-limit:] if limit > 0 else []}


@router.delete("")
async def clear_logs():
    log_handler.clear()
    return {"status": "ok"}
