"""
Producer configuration.

Loaded from a TOML file (``metaevents.toml``), ``[producer]`` table:

    [producer]
    default_ingestion_mode = "LIVE"
    search_metrics = true
    transport = "jsonl"
    event_log = ".metaevents/events.jsonl"

Relative ``event_log`` paths are resolved against the config file's directory.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .errors import ConfigurationError
from .models import IngestionMode

CONFIG_FILENAME = "metaevents.toml"
DEFAULT_EVENT_LOG = Path(".metaevents") / "events.jsonl"
TRANSPORTS = ("memory", "jsonl")


@dataclass(frozen=True)
class ProducerConfig:
    default_ingestion_mode: IngestionMode | None = None
    search_metrics: bool = True
    transport: str = "memory"
    event_log: Path = DEFAULT_EVENT_LOG


def _coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def parse_config(data: dict[str, Any], base_dir: Path | None = None) -> ProducerConfig:
    """Build a ProducerConfig from an already-parsed TOML document."""
    producer = _coerce_dict(data.get("producer"))

    mode_raw = producer.get("default_ingestion_mode")
    mode: IngestionMode | None = None
    if mode_raw is not None:
        try:
            mode = IngestionMode(str(mode_raw).strip().upper())
        except ValueError:
            raise ConfigurationError(
                f"Unknown default_ingestion_mode: {mode_raw!r} "
                f"(expected one of {', '.join(m.value for m in IngestionMode)})",
                offending="default_ingestion_mode",
            ) from None

    search_metrics = producer.get("search_metrics", True)
    if not isinstance(search_metrics, bool):
        raise ConfigurationError("search_metrics must be true or false", offending="search_metrics")

    transport = str(producer.get("transport", "memory")).strip().lower() or "memory"
    if transport not in TRANSPORTS:
        raise ConfigurationError(
            f"Unknown transport: {transport!r} (expected one of {', '.join(TRANSPORTS)})",
            offending="transport",
        )

    event_log_raw = producer.get("event_log")
    if event_log_raw is not None and not isinstance(event_log_raw, str):
        raise ConfigurationError("event_log must be a path string", offending="event_log")
    event_log = Path(event_log_raw) if event_log_raw else DEFAULT_EVENT_LOG
    if base_dir is not None and not event_log.is_absolute():
        event_log = base_dir / event_log

    return ProducerConfig(
        default_ingestion_mode=mode,
        search_metrics=search_metrics,
        transport=transport,
        event_log=event_log,
    )


def load_config(path: Path) -> ProducerConfig:
    """Load configuration from a TOML file."""
    import tomllib

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid TOML in {path}: {e}") from e
    return parse_config(data, base_dir=path.resolve().parent)


def find_config(start: Path) -> Path | None:
    """Find metaevents.toml by walking up from `start`."""
    cur = start.resolve()
    for p in (cur, *cur.parents):
        candidate = p / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def load_config_or_default(start: Path | None = None) -> ProducerConfig:
    """Load the nearest config file, or defaults when there is none."""
    path = find_config(start or Path.cwd())
    if path is None:
        return ProducerConfig()
    return load_config(path)


def build_transport(config: ProducerConfig):
    """Construct the transport named by the configuration."""
    from .transport import InMemoryTransport, JsonlTransport

    if config.transport == "jsonl":
        return JsonlTransport(config.event_log)
    return InMemoryTransport()
