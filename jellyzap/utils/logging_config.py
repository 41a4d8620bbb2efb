"""loguru setup for the gateway.

Sinks come from LoggingConfig (config file `logging` section or
JELLYZAP_LOGGING__* variables). Records logged while an HTTP request is being
handled carry the request's trace id in extra["trace_id"]; see
trace_context().
"""

import json
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from loguru import logger

from jellyzap.config.schema import LoggingConfig

NO_TRACE = "-"

TEXT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[trace_id]}</cyan> | {name}:{function}:{line} - <level>{message}</level>\n"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[trace_id]} | {name}:{function}:{line} - {message}\n"


@contextmanager
def trace_context(trace_id: str) -> Iterator[None]:
    """Tag every record logged inside the block (and tasks it starts) with trace_id."""
    with logger.contextualize(trace_id=trace_id):
        yield


def record_to_json(record: dict[str, Any]) -> str:
    """One JSON object per record: ts, level, msg, trace_id plus any other extra."""
    payload = {
        "ts": record["time"].strftime("%Y-%m-%dT%H:%M:%S.%f%z"),
        "level": record["level"].name,
        "msg": record["message"],
        "logger": f"{record['name']}:{record['function']}:{record['line']}",
        "trace_id": record["extra"].get("trace_id") or NO_TRACE,
    }
    for k, v in record["extra"].items():
        if k not in payload and v is not None and v != "":
            payload[k] = v
    if record["exception"] is not None:
        payload["exception"] = repr(record["exception"].value)
    return json.dumps(payload, ensure_ascii=False, default=str)


def _sink_json(message) -> None:
    sys.stderr.write(record_to_json(message.record) + "\n")
    sys.stderr.flush()


def _default_trace_id(record: dict) -> bool:
    record["extra"].setdefault("trace_id", NO_TRACE)
    return True


def configure_logging(config: LoggingConfig | None = None, verbose: bool = False) -> list[int]:
    """
    Replace loguru's handlers with the ones LoggingConfig asks for.
    verbose forces DEBUG regardless of the configured level.
    Returns the handler ids that were added.
    """
    config = config or LoggingConfig()
    level = "DEBUG" if verbose else config.level.upper()
    logger.remove()

    if config.json_logs:
        handlers = [logger.add(_sink_json, level=level, filter=_default_trace_id)]
    else:
        handlers = [logger.add(sys.stderr, format=TEXT_FORMAT, level=level, filter=_default_trace_id)]

    if config.file:
        path = Path(config.file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logger.add(
            str(path),
            rotation=config.rotation,
            retention=config.retention,
            level=level,
            filter=_default_trace_id,
            format=FILE_FORMAT,
        ))
    return handlers
