"""Telemetry for the history container, built on telelog.

``configure(...)`` -- adopt a preset, an explicit ``telelog.Config`` or the
``SIMPLE_UNDO_*`` environment
``get_logger(name)`` -- fetch (and cache) a configured logger
``record_event(name, ...)`` -- emit a structured ``event::<name>`` entry
``span(name, ...)`` -- profile a block and report failures escaping it
"""

from __future__ import annotations

import os
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterator, MutableMapping, Optional, cast

import telelog  # type: ignore[import]

tl = cast(Any, telelog)

ENV_PREFIX = "SIMPLE_UNDO_"
DEFAULT_LOGGER_NAME = os.getenv(f"{ENV_PREFIX}LOGGER", "simple_undo")

_LOGGER_CACHE: MutableMapping[str, Any] = {}
_ACTIVE_CONFIG: Optional[Any] = None


def _env(name: str) -> Optional[str]:
    return os.getenv(f"{ENV_PREFIX}{name}")


def _env_flag(name: str, default: bool) -> bool:
    raw = _env(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class LogSettings:
    """Flat description of a telelog configuration."""

    min_level: str = "INFO"
    console: bool = True
    colored: bool = True
    json: bool = False
    log_file: str = ""
    buffered: bool = False
    buffer_size: Optional[int] = None

    @classmethod
    def from_env(cls) -> "LogSettings":
        buffered = _env_flag("LOG_BUFFERED", False)
        return cls(
            min_level=(_env("LOG_LEVEL") or "INFO").upper(),
            console=not _env_flag("DISABLE_CONSOLE", False),
            colored=not _env_flag("NO_COLOR", False),
            json=_env_flag("LOG_JSON", False),
            log_file=_env("LOG_FILE") or "",
            buffered=buffered,
            buffer_size=int(_env("LOG_BUFFER_SIZE") or "2048") if buffered else None,
        )

    def build(self) -> Any:
        config = tl.Config()
        config.with_min_level(self.min_level)
        config.with_console_output(self.console)
        if self.console:
            config.with_colored_output(self.colored)
        if self.json:
            config.with_json_format(True)
        if self.log_file:
            config.with_file_output(self.log_file)
        if self.buffered:
            config.with_buffering(True)
            if self.buffer_size is not None:
                config.with_buffer_size(self.buffer_size)
        # spans rely on logger.profile
        config.with_profiling(True)
        return config


PRESETS: Dict[str, LogSettings] = {
    "development": LogSettings(min_level="DEBUG"),
    "production": LogSettings(
        console=False, buffered=True, log_file="simple_undo.log"
    ),
    "performance": LogSettings(
        min_level="DEBUG",
        console=False,
        json=True,
        buffered=True,
        log_file="simple_undo-performance.log",
    ),
}


def preset_settings(preset: str) -> LogSettings:
    """Return the settings of a named preset; ``SIMPLE_UNDO_LOG_FILE`` wins."""

    try:
        settings = PRESETS[preset.lower()]
    except KeyError:
        raise ValueError(f"Unknown preset '{preset}'.") from None
    log_file = _env("LOG_FILE")
    if settings.log_file and log_file:
        settings = replace(settings, log_file=log_file)
    return settings


def configure(*, config: Optional[Any] = None, preset: Optional[str] = None) -> None:
    """Replace the active telelog configuration and drop cached loggers.

    ``config`` is an explicit ``telelog.Config``; ``preset`` is one of
    ``PRESETS``. They are mutually exclusive. With neither, settings are read
    from the environment.
    """

    global _ACTIVE_CONFIG
    if config is not None and preset:
        raise ValueError("Provide either `config` or `preset`, not both.")

    if preset:
        config = preset_settings(preset).build()
    elif config is None:
        config = LogSettings.from_env().build()
    else:
        config.with_profiling(True)

    _ACTIVE_CONFIG = config
    _LOGGER_CACHE.clear()


def get_logger(name: Optional[str] = None) -> Any:
    """Return a cached ``telelog.Logger``, configuring from the env on first use."""

    global _ACTIVE_CONFIG
    logger_name = name or DEFAULT_LOGGER_NAME
    if logger_name not in _LOGGER_CACHE:
        if _ACTIVE_CONFIG is None:
            _ACTIVE_CONFIG = LogSettings.from_env().build()
        _LOGGER_CACHE[logger_name] = tl.Logger.with_config(logger_name, _ACTIVE_CONFIG)
    return _LOGGER_CACHE[logger_name]


def _stringify(value: Any) -> str:
    return value if isinstance(value, str) else str(value)


def _emit(log: Any, level: str, message: str, payload: Dict[str, Any]) -> None:
    method = getattr(log, f"{level}_with", None)
    if method is None:
        raise ValueError(f"Unsupported log level '{level}'.")
    method(message, [(str(key), _stringify(value)) for key, value in payload.items()])


def record_event(
    name: str,
    *,
    level: str = "info",
    data: Optional[Dict[str, Any]] = None,
    logger_name: Optional[str] = None,
) -> None:
    _emit(
        get_logger(logger_name),
        level.lower(),
        f"event::{name}",
        {"event": name, **(data or {})},
    )


@dataclass
class SpanHandle:
    """Yielded by ``span``; metadata added here is reported on failure."""

    logger: Any
    span_name: str
    component_name: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    def add_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = _stringify(value)

    def fail(self, reason: str) -> None:
        payload: Dict[str, Any] = {"span": self.span_name, **self.metadata}
        if self.component_name:
            payload["component"] = self.component_name
        payload["reason"] = reason
        _emit(self.logger, "error", "span::fail", payload)


@contextmanager
def span(
    name: str,
    *,
    logger_name: Optional[str] = None,
    component: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Iterator[SpanHandle]:
    """Profile a block under ``name``, optionally tracked as ``component``.

    ``metadata`` is attached as logger context for the duration of the block.
    An exception escaping the block is logged as ``span::fail`` and re-raised.
    """

    log = get_logger(logger_name)
    handle = SpanHandle(
        logger=log,
        span_name=name,
        component_name=component,
        metadata={key: _stringify(value) for key, value in (metadata or {}).items()},
    )
    context_keys = list(handle.metadata)
    for key in context_keys:
        log.add_context(key, handle.metadata[key])

    with ExitStack() as stack:
        if component:
            stack.enter_context(log.track_component(component))
        stack.enter_context(log.profile(name))
        try:
            yield handle
        except Exception as exc:
            handle.fail(str(exc))
            raise
        finally:
            for key in context_keys:
                log.remove_context(key)


__all__ = [
    "LogSettings",
    "PRESETS",
    "SpanHandle",
    "configure",
    "get_logger",
    "preset_settings",
    "record_event",
    "span",
]
