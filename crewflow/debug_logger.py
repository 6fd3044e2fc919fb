#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Structured debug logging for crewflow.

Enabled with ``--debug`` (or ``CREWFLOW_DEBUG=1``). Each run writes one file
under ``.crewflow/logs/`` whose entries carry a JSON payload so a workflow can
be replayed by reading the log: every role invocation, route decision,
recovery and tool call is recorded. When disabled, every call is a no-op.
"""

import json
import logging
from datetime import datetime
from functools import wraps
from pathlib import Path
from typing import Any, Dict, Optional

from crewflow import config

_ROOT_LOGGER = "crewflow"
_PREVIEW_CHARS = 500


def prune_old_logs(log_dir: Path, keep: int) -> None:
    """Remove old log files beyond the configured retention limit."""
    if keep < 1 or not log_dir.exists():
        return

    log_files = sorted(
        [path for path in log_dir.glob("*.log") if path.is_file()],
        key=lambda path: path.stat().st_mtime,
        reverse=True,
    )
    for stale_file in log_files[keep:]:
        try:
            stale_file.unlink()
        except OSError:
            continue


def _preview(value: Any, limit: int = _PREVIEW_CHARS) -> str:
    text = str(value)
    if len(text) <= limit:
        return text
    return text[:limit] + f"... [{len(text) - limit} more chars]"


class DebugLogger:
    """Process-wide debug logger with per-component channels.

    Modules keep the instance returned by :func:`get_logger` at import time,
    so the singleton is never replaced: ``initialize`` enables it in place
    and ``reset`` only disables it again.
    """

    _instance: Optional['DebugLogger'] = None

    def __init__(self, enabled: bool = False, log_dir: Optional[Path] = None):
        self._enabled = False
        self._log_file: Optional[Path] = None
        self._loggers: Dict[str, logging.Logger] = {}

        if enabled:
            self._start(log_dir)

    def _start(self, log_dir: Optional[Path]) -> None:
        log_dir = log_dir or config.LOGS_DIR
        log_dir.mkdir(exist_ok=True, parents=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        self._log_file = log_dir / f"crewflow_debug_{timestamp}.log"
        self._setup_logging()
        self._enabled = True
        prune_old_logs(log_dir, config.LOG_RETENTION_LIMIT)
        self.log("system", "DEBUG_SESSION_START", {
            "timestamp": datetime.now().isoformat(),
            "log_file": str(self._log_file),
            "cwd": str(Path.cwd()),
        })

    @classmethod
    def initialize(cls, enabled: bool = False, log_dir: Optional[Path] = None) -> 'DebugLogger':
        """Initialize the global instance, enabling it if requested."""
        if cls._instance is None:
            cls._instance = cls(enabled, log_dir)
        elif enabled and not cls._instance.enabled:
            cls._instance._start(log_dir)
        return cls._instance

    @classmethod
    def get_instance(cls) -> 'DebugLogger':
        if cls._instance is None:
            cls._instance = cls(enabled=False)
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Close the global instance and return it to the disabled state."""
        if cls._instance is not None:
            cls._instance.close()
            cls._instance._log_file = None

    def _setup_logging(self):
        formatter = logging.Formatter(
            '%(asctime)s | %(name)-26s | %(levelname)-8s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        file_handler = logging.FileHandler(self._log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)

        root_logger = logging.getLogger(_ROOT_LOGGER)
        root_logger.setLevel(logging.DEBUG)
        root_logger.addHandler(file_handler)
        root_logger.propagate = False

    def get_logger(self, component: str) -> logging.Logger:
        """Logger for a component, e.g. 'orchestrator', 'router', 'tools'."""
        if component not in self._loggers:
            self._loggers[component] = logging.getLogger(f'{_ROOT_LOGGER}.{component}')
        return self._loggers[component]

    def log(self, component: str, event: str, data: Optional[Dict[str, Any]] = None, level: str = "INFO"):
        """Log a structured event with an optional JSON payload."""
        if not self._enabled:
            return

        message = f"[{event}]"
        if data:
            message += f" {json.dumps(data, indent=2, default=str)}"
        log_level = getattr(logging, level.upper(), logging.INFO)
        self.get_logger(component).log(log_level, message)

    def log_function_call(self, component: str, function_name: str, args: tuple = (), kwargs: dict = None):
        if not self._enabled:
            return

        data = {
            "function": function_name,
            "args": [_preview(arg, 200) for arg in args],
        }
        if kwargs:
            data["kwargs"] = {k: _preview(v, 200) for k, v in kwargs.items()}
        self.log(component, "FUNCTION_CALL", data, "DEBUG")

    def log_llm_request(self, model: str, prompt: str):
        if not self._enabled:
            return
        self.log("llm", "LLM_REQUEST", {
            "model": model,
            "prompt_chars": len(prompt),
            "prompt_preview": _preview(prompt),
        }, "DEBUG")

    def log_llm_response(self, model: str, text: str, duration: float):
        if not self._enabled:
            return
        self.log("llm", "LLM_RESPONSE", {
            "model": model,
            "duration_seconds": round(duration, 3),
            "response_chars": len(text),
            "response_preview": _preview(text),
        }, "DEBUG")

    def log_tool_execution(self, tool_name: str, arguments: dict, result: Any = None, error: Optional[str] = None):
        if not self._enabled:
            return

        data = {
            "tool": tool_name,
            "arguments": {k: _preview(v, 200) for k, v in arguments.items()},
        }
        if error:
            data["error"] = str(error)
            level = "WARNING"
        else:
            data["result_preview"] = _preview(result) if result is not None else None
            level = "DEBUG"
        self.log("tools", "TOOL_EXECUTION", data, level)

    def log_transition(self, from_role: str, to_role: str, reason: str, kind: str = "route"):
        """Log a role-to-role transition (``kind`` is 'route' or 'recovery')."""
        if not self._enabled:
            return
        self.log("orchestrator", "TRANSITION", {
            "from": from_role,
            "to": to_role,
            "reason": reason,
            "kind": kind,
        }, "INFO")

    def log_error(self, component: str, error: Exception, context: Optional[Dict[str, Any]] = None):
        if not self._enabled:
            return

        data = {
            "error_type": type(error).__name__,
            "error_message": str(error),
        }
        if context:
            data["context"] = context
        self.log(component, "ERROR", data, "ERROR")

    def log_workflow_phase(self, phase: str, details: Optional[Dict[str, Any]] = None):
        """Log a workflow phase (role invocation, completion, failure)."""
        if not self._enabled:
            return

        data = {"phase": phase}
        if details:
            data.update(details)
        self.log("orchestrator", "WORKFLOW_PHASE", data, "INFO")

    def _log_plain(self, level: str, msg: str, *args: Any, **kwargs: Any) -> None:
        """Forward stdlib-style calls into the 'general' channel."""
        if not self._enabled:
            return
        log_level = getattr(logging, level.upper(), logging.INFO)
        self.get_logger("general").log(log_level, msg, *args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log_plain("INFO", msg, *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log_plain("WARNING", msg, *args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log_plain("ERROR", msg, *args, **kwargs)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log_plain("DEBUG", msg, *args, **kwargs)

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def log_file_path(self) -> Optional[Path]:
        return self._log_file

    def close(self):
        """Write the session end marker and release file handles."""
        if not self._enabled:
            return
        self.log("system", "DEBUG_SESSION_END", {"timestamp": datetime.now().isoformat()})
        root_logger = logging.getLogger(_ROOT_LOGGER)
        for handler in root_logger.handlers[:]:
            handler.close()
            root_logger.removeHandler(handler)
        self._enabled = False


def log_function(component: str):
    """Decorator that logs each call of the wrapped function.

    Usage:
        @log_function('tools')
        def read_file(path):
            ...
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            logger = DebugLogger.get_instance()
            if logger.enabled:
                logger.log_function_call(component, func.__name__, args, kwargs)
            return func(*args, **kwargs)
        return wrapper
    return decorator


def get_logger() -> DebugLogger:
    """Get the global debug logger instance."""
    return DebugLogger.get_instance()
