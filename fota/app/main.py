# fota/app/main.py
from __future__ import annotations

import argparse
import logging
import sys
import threading
from typing import Callable, List, Optional, TextIO

from ..adapters.audit_csv import AuditCsv
from ..adapters.delivery_mock import DeliveryMock
from ..adapters.delivery_rest import DeliveryRestAdapter
from ..adapters.manifest_csv import load_firmware_list
from ..adapters.serial_port import SerialPortTransport
from ..domain.ports import DeliveryPort, TransportError, UseCaseError
from ..domain.rollout import STATE_CONVERGED
from ..usecases.run_rollout import RolloutConfig, RunRollout, summarize
from ..utils import logging as logging_utils
from .command_input import CommandInput
from .serial_monitor import SerialMonitor
from .settings import FotaSettings, load_settings

log = logging.getLogger(__name__)

ROLLOUT_SUBSCRIPTION = "rollout"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fota", description="Serial monitor and firmware rollout driver.")
    parser.add_argument("--settings", help="JSON settings file (default: fota_settings.json)")
    parser.add_argument("--port", dest="serial_port", help="Serial port name")
    parser.add_argument("--baud", type=int, help="Baud rate")
    parser.add_argument("--log-file", dest="log_file", help="Device stream log file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("monitor", help="Stream the device log and forward typed commands")

    rollout = sub.add_parser("rollout", help="Apply the firmware manifest until the device converges")
    rollout.add_argument("--firmware-csv", dest="firmware_csv")
    rollout.add_argument("--audit-csv", dest="audit_csv")
    rollout.add_argument("--device-id", dest="device_id")
    rollout.add_argument("--delivery-url", dest="delivery_url")
    rollout.add_argument("--wait", dest="serial_wait_s", type=float, help="Seconds to wait per step")
    rollout.add_argument("--dry-run", action="store_true", help="Do not contact the delivery backend")
    return parser


def _settings_from_args(args: argparse.Namespace) -> FotaSettings:
    overrides = {
        key: value
        for key, value in vars(args).items()
        if key not in {"settings", "verbose", "command", "dry_run"} and value is not None
    }
    return load_settings(args.settings, overrides=overrides)


def _make_monitor(settings: FotaSettings) -> SerialMonitor:
    transport = SerialPortTransport(settings.serial_port, settings.baud)
    return SerialMonitor(
        transport,
        log_path=settings.log_file,
        queue_capacity=settings.queue_capacity,
    )


def _make_delivery(settings: FotaSettings, dry_run: bool) -> DeliveryPort:
    if dry_run or not settings.delivery_url:
        log.info("Using dry-run delivery; no firmware will be pushed")
        return DeliveryMock()
    return DeliveryRestAdapter(
        settings.delivery_url,
        api_key=settings.api_key or None,
        request_timeout_s=settings.request_timeout_s,
    )


def run_monitor(settings: FotaSettings) -> int:
    monitor = _make_monitor(settings)
    try:
        monitor.start()
    except TransportError as exc:
        log.error("%s", exc)
        return 2
    stop = threading.Event()
    console = CommandInput(monitor.send_line, stop.set, stop_event=stop)
    try:
        console.run()
    except KeyboardInterrupt:
        log.info("Interrupted")
    finally:
        monitor.stop(settings.shutdown_grace_s)
        log.info("Final version map: %s", monitor.state_map.to_json())
        log.info("Shutdown complete.")
    return 0


def _cancel_rollout(cancel: threading.Event) -> Callable[[], None]:
    def on_exit() -> None:
        log.info("Exit requested; cancelling rollout")
        cancel.set()

    return on_exit


def run_rollout(
    settings: FotaSettings,
    *,
    dry_run: bool = False,
    console_stream: Optional[TextIO] = None,
) -> int:
    try:
        firmware = load_firmware_list(settings.firmware_csv)
    except UseCaseError as exc:
        log.error("%s (%s)", exc.message, exc.code)
        return 2
    audit = AuditCsv(settings.audit_csv)
    audit.ensure_header()

    monitor = _make_monitor(settings)
    try:
        monitor.start()
    except TransportError as exc:
        log.error("%s", exc)
        return 2

    cancel = threading.Event()
    # Operator lines still reach the device; exit/quit cancels the rollout.
    console = CommandInput(monitor.send_line, _cancel_rollout(cancel), stream=console_stream)
    threading.Thread(target=console.run, name="command-input", daemon=True).start()
    try:
        source = monitor.subscribe(ROLLOUT_SUBSCRIPTION)
        rollout = RunRollout(
            firmware=firmware,
            state_map=monitor.state_map,
            source=source,
            delivery=_make_delivery(settings, dry_run),
            audit=audit,
            config=RolloutConfig(timeout_s=settings.serial_wait_s, poll_interval_s=settings.poll_interval_s),
            cancel_event=cancel,
        )
        report = rollout(settings.device_id)
    except UseCaseError as exc:
        log.error("%s (%s)", exc.message, exc.code)
        return 2
    except KeyboardInterrupt:
        cancel.set()
        log.info("Interrupted")
        return 130
    finally:
        console.stop_event.set()
        monitor.unsubscribe(ROLLOUT_SUBSCRIPTION)
        monitor.stop(settings.shutdown_grace_s)

    state, steps, last_version = summarize(report)
    print(f"Rollout {state}: {steps} step(s), last reported version {last_version or '-'}")
    if report.reason:
        print(f"Reason: {report.reason}")
    return 0 if state == STATE_CONVERGED else 1


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging_utils.configure_root(args.verbose)
    try:
        settings = _settings_from_args(args)
    except ValueError as exc:
        log.error("Invalid settings: %s", exc)
        return 2
    if args.command == "monitor":
        return run_monitor(settings)
    return run_rollout(settings, dry_run=args.dry_run)


if __name__ == "__main__":
    sys.exit(main())
