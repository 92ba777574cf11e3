"""Console entry point: run the photodiode pipeline on a Qt event loop.

This module wires up argument parsing and logging, builds the pipeline and
its ingestion worker from configuration, and drives ticks from a
:class:`~luxmon.gui.tick_driver.TickDriver`. ``luxmon``, ``python -m luxmon``
and the repository ``main.py`` all flow through ``main()`` here.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from typing import Sequence, Tuple

from PySide6.QtCore import QCoreApplication, QTimer

from ..config import LuxmonConfig, default_config_path, load_config
from ..core.models import ConversionCompleted
from ..core.pipeline_wiring import PipelineHandles, build_pipeline
from ..dataio import StoreError, open_sink
from .tick_driver import TickDriver

logger = logging.getLogger(__name__)


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="luxmon photodiode monitor")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML configuration file (default: $LUXMON_CONFIG)",
    )
    parser.add_argument("--port", type=str, default=None, help="Serial port override")
    parser.add_argument("--baud", type=int, default=None, help="Baud rate override")
    parser.add_argument(
        "--storage",
        choices=("mongo", "csv", "none"),
        default=None,
        help="Persistence backend override",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=0.0,
        help="Quit after this many seconds (default: run until interrupted)",
    )
    parser.add_argument(
        "--dump",
        choices=("raw", "derived"),
        default=None,
        help="Print stored records of one stream and exit",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging level (default: INFO)",
    )
    return parser


def _parse_cli_args(argv: list[str]) -> tuple[argparse.Namespace, list[str]]:
    parser = _build_arg_parser()
    args, qt_args = parser.parse_known_args(argv[1:])
    qt_argv = [argv[0], *qt_args]
    return args, qt_argv


def resolve_config(args: argparse.Namespace) -> LuxmonConfig:
    """Load the YAML config and apply command-line overrides."""
    cfg = load_config(args.config or default_config_path())
    overrides = {}
    if args.port:
        overrides["serial_port"] = args.port
    if args.baud:
        overrides["baud_rate"] = args.baud
    if args.storage:
        overrides["storage_backend"] = args.storage
    if overrides:
        cfg = replace(cfg, **overrides).sanitized()
    return cfg


def dump_records(cfg: LuxmonConfig, stream: str) -> int:
    """Print every stored record of ``stream``; returns a process exit code."""
    sink = open_sink(cfg)
    try:
        records = sink.query_all_raw() if stream == "raw" else sink.query_all_derived()
    except StoreError as exc:
        logger.error("Failed to query %s records: %s", stream, exc)
        return 1
    for record in records:
        print(f"{record.timestamp.isoformat()}\t{record.value:.8f}")
    logger.info("%d %s records", len(records), stream)
    return 0


def _log_conversion(event: ConversionCompleted) -> None:
    logger.info("Lux: %.2f (%d iterations)", event.value, max(0, len(event.trace) - 1))


def create_app(
    cfg: LuxmonConfig,
    argv: list[str] | None = None,
) -> Tuple[QCoreApplication, TickDriver, PipelineHandles]:
    """
    Create the Qt application, the pipeline handles, and the tick driver.

    The ingestion worker is built but not started.
    """
    qt_args = argv if argv is not None else sys.argv
    app = QCoreApplication.instance() or QCoreApplication(qt_args)

    handles = build_pipeline(cfg, sink=open_sink(cfg))
    driver = TickDriver(
        handles.pipeline,
        handles.status_channel,
        handles.event_channel,
        interval_ms=cfg.tick_interval_ms(),
    )
    driver.status_changed.connect(lambda text: logger.info("Status: %s", text))
    driver.conversion_completed.connect(_log_conversion)
    return app, driver, handles


def main(argv: Sequence[str] | None = None) -> None:
    raw_argv = list(argv) if argv is not None else sys.argv
    args, qt_argv = _parse_cli_args(raw_argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    cfg = resolve_config(args)
    if args.dump:
        raise SystemExit(dump_records(cfg, args.dump))

    app, driver, handles = create_app(cfg, qt_argv)
    if args.duration > 0:
        QTimer.singleShot(int(args.duration * 1000), app.quit)

    handles.worker.start()
    driver.start()
    try:
        code = app.exec()
    finally:
        driver.stop()
        handles.worker.stop(join=True, timeout=1.0)
        handles.sample_channel.close()
        handles.status_channel.close()
    raise SystemExit(code)


if __name__ == "__main__":
    main()
