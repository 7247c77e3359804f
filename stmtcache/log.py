"""
日志模块 - stmtcache 的彩色输出、结构化日志和语句耗时统计

Levels:
- DEBUG:    dim      - cache hits / misses, placeholder transitions
- INFO:     white    - lifecycle events (cache created, settings loaded)
- SUCCESS:  green
- PERF:     magenta  - statement execution timings
- WARNING:  orange   - best-effort cleanup failures
- ERROR:    red      - failures surfaced to the caller
- CRITICAL: bold red

Environment:
- STMTCACHE_LOG_LEVEL=debug|info|...  (default: info)
- STMTCACHE_LOG_FORMAT=json           JSON lines instead of text
- STMTCACHE_LOG_FILE=path             also append plain text lines to a file
"""

import inspect
import json
import os
import sys
import threading
import time
from contextlib import contextmanager
from datetime import datetime
from functools import wraps
from typing import Any, Callable, Dict, Optional


class Colors:
    """ANSI 颜色代码"""
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"
    RED = "\033[31m"
    YELLOW = "\033[33m"
    WHITE = "\033[37m"
    BRIGHT_RED = "\033[91m"
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_MAGENTA = "\033[95m"


def _supports_color() -> bool:
    if os.getenv("NO_COLOR"):
        return False
    if os.getenv("FORCE_COLOR"):
        return True
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


_color_enabled = _supports_color()

LOG_LEVELS = {
    "debug": 0,
    "info": 1,
    "success": 1,
    "perf": 2,
    "warning": 3,
    "error": 4,
    "critical": 5,
}

LOG_STYLES = {
    "debug":    (Colors.DIM + Colors.WHITE, "DEBUG"),
    "info":     (Colors.WHITE, "INFO"),
    "success":  (Colors.BRIGHT_GREEN, "SUCCESS"),
    "perf":     (Colors.BRIGHT_MAGENTA, "PERF"),
    "warning":  (Colors.YELLOW + Colors.BOLD, "WARNING"),
    "error":    (Colors.RED, "ERROR"),
    "critical": (Colors.BRIGHT_RED + Colors.BOLD, "CRITICAL"),
}

_file_lock = threading.Lock()
_file_writing_disabled = False

# 语句耗时统计
_perf_metrics: Dict[str, list] = {}
_perf_lock = threading.Lock()

# Keep at most this many samples per operation
_MAX_SAMPLES = 1000


def _get_current_log_level() -> int:
    level = os.getenv("STMTCACHE_LOG_LEVEL", "info").lower()
    return LOG_LEVELS.get(level, LOG_LEVELS["info"])


def _structured_enabled() -> bool:
    return os.getenv("STMTCACHE_LOG_FORMAT", "text").lower() == "json"


def _get_log_file_path() -> Optional[str]:
    return os.getenv("STMTCACHE_LOG_FILE") or None


def _write_to_file(message: str):
    global _file_writing_disabled
    log_file = _get_log_file_path()
    if _file_writing_disabled or not log_file:
        return
    try:
        with _file_lock:
            with open(log_file, "a", encoding="utf-8") as f:
                f.write(message + "\n")
    except OSError as e:
        _file_writing_disabled = True
        print(f"Warning: Disabling log file writing: {e}", file=sys.stderr)


def _colorize(text: str, color: str) -> str:
    if not _color_enabled:
        return text
    return f"{color}{text}{Colors.RESET}"


def _log(level: str, message: str, tag: Optional[str] = None, **extra):
    """
    核心日志函数

    Args:
        level: 日志级别
        message: 日志消息
        tag: 可选标签 (e.g. "LOCAL_CACHE", "TX_CACHE")
        **extra: structured fields (statement_id, duration_ms, ...)
    """
    level = level.lower()
    if level not in LOG_LEVELS:
        print(f"Warning: Unknown log level '{level}'", file=sys.stderr)
        return

    if LOG_LEVELS[level] < _get_current_log_level():
        return

    color, label = LOG_STYLES[level]
    now = datetime.now()
    timestamp = now.strftime("%H:%M:%S")

    if tag:
        plain_entry = f"[{timestamp}] [{label}] [{tag}] {message}"
        colored_entry = (
            f"{Colors.DIM}[{timestamp}]{Colors.RESET} "
            f"{_colorize(f'[{label}]', color)} "
            f"{_colorize(f'[{tag}]', Colors.BRIGHT_MAGENTA)} "
            f"{message}"
        )
    else:
        plain_entry = f"[{timestamp}] [{label}] {message}"
        colored_entry = (
            f"{Colors.DIM}[{timestamp}]{Colors.RESET} "
            f"{_colorize(f'[{label}]', color)} "
            f"{message}"
        )

    if extra:
        extra_str = " ".join(f"{k}={v}" for k, v in extra.items())
        plain_entry += f" | {extra_str}"
        colored_entry += f" {Colors.DIM}| {extra_str}{Colors.RESET}"

    stream = sys.stderr if level in ("error", "critical") else sys.stdout
    if _structured_enabled():
        log_entry = {
            "timestamp": now.isoformat(),
            "level": label,
            "message": message,
        }
        if tag:
            log_entry["tag"] = tag
        log_entry.update(extra)
        print(json.dumps(log_entry, ensure_ascii=False, default=str), file=stream)
    else:
        print(colored_entry if _color_enabled else plain_entry, file=stream)

    _write_to_file(plain_entry)


class Logger:
    """支持多种调用方式的日志器，包含语句耗时统计"""

    def __call__(self, level: str, message: str, tag: Optional[str] = None, **extra):
        _log(level, message, tag, **extra)

    def debug(self, message: str, tag: Optional[str] = None, **extra):
        _log("debug", message, tag, **extra)

    def info(self, message: str, tag: Optional[str] = None, **extra):
        _log("info", message, tag, **extra)

    def success(self, message: str, tag: Optional[str] = None, **extra):
        _log("success", message, tag, **extra)

    def perf(self, message: str, tag: Optional[str] = None, **extra):
        _log("perf", message, tag, **extra)

    def warning(self, message: str, tag: Optional[str] = None, **extra):
        _log("warning", message, tag, **extra)

    def error(self, message: str, tag: Optional[str] = None, **extra):
        _log("error", message, tag, **extra)

    def critical(self, message: str, tag: Optional[str] = None, **extra):
        _log("critical", message, tag, **extra)

    def is_enabled_for(self, level: str) -> bool:
        """Cheap check used before building expensive debug messages"""
        return LOG_LEVELS.get(level.lower(), 0) >= _get_current_log_level()

    def set_color_enabled(self, enabled: bool):
        global _color_enabled
        _color_enabled = enabled

    # ==================== 性能监控方法 ====================

    @contextmanager
    def timer(self, operation: str, tag: Optional[str] = None, **extra):
        """
        计时器上下文管理器

        Usage:
            with log.timer("user.findById", tag="SIMPLE_EXECUTOR"):
                cursor.execute(sql, params)
        """
        start_time = time.perf_counter()
        try:
            yield
        finally:
            duration_ms = (time.perf_counter() - start_time) * 1000
            self.perf(
                f"{operation} completed in {duration_ms:.2f}ms",
                tag=tag,
                duration_ms=round(duration_ms, 2),
                **extra
            )
            self._record_metric(operation, duration_ms)

    def timed(self, operation: Optional[str] = None, tag: Optional[str] = None):
        """
        计时器装饰器

        Usage:
            @log.timed("warm_up")
            def warm_up(...):
                ...
        """
        def decorator(func: Callable) -> Callable:
            op_name = operation or func.__name__

            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                with self.timer(op_name, tag=tag):
                    return await func(*args, **kwargs)

            @wraps(func)
            def sync_wrapper(*args, **kwargs):
                with self.timer(op_name, tag=tag):
                    return func(*args, **kwargs)

            if inspect.iscoroutinefunction(func):
                return async_wrapper
            return sync_wrapper

        return decorator

    def _record_metric(self, operation: str, duration_ms: float):
        with _perf_lock:
            samples = _perf_metrics.setdefault(operation, [])
            samples.append(duration_ms)
            if len(samples) > _MAX_SAMPLES:
                del samples[:-_MAX_SAMPLES]

    def get_metrics(self, operation: Optional[str] = None) -> Dict[str, Any]:
        """
        获取耗时统计

        Args:
            operation: 可选，指定操作名称。不指定时返回所有操作的统计

        Returns:
            Dict with count / min / max / avg / p50 per operation
        """
        with _perf_lock:
            if operation:
                return self._calculate_stats(operation, list(_perf_metrics.get(operation, [])))
            return {
                op: self._calculate_stats(op, list(durations))
                for op, durations in _perf_metrics.items()
            }

    @staticmethod
    def _calculate_stats(operation: str, durations: list) -> Dict[str, Any]:
        if not durations:
            return {"operation": operation, "count": 0}

        ordered = sorted(durations)
        count = len(ordered)
        return {
            "operation": operation,
            "count": count,
            "min_ms": round(ordered[0], 2),
            "max_ms": round(ordered[-1], 2),
            "avg_ms": round(sum(ordered) / count, 2),
            "p50_ms": round(ordered[count // 2], 2),
            "p95_ms": round(ordered[int(count * 0.95)], 2) if count >= 20 else None,
        }

    def clear_metrics(self, operation: Optional[str] = None):
        with _perf_lock:
            if operation:
                _perf_metrics.pop(operation, None)
            else:
                _perf_metrics.clear()


log = Logger()

__all__ = [
    "log",
    "Logger",
    "LOG_LEVELS",
    "Colors",
]
