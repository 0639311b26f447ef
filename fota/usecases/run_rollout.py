"""Use case driving a sequential firmware rollout until the device converges.

For each manifest entry (ascending version order) the workflow reads the
device's login version, submits the image through ``DeliveryPort``, waits for
the device to report a version on the live stream, classifies the outcome and
appends exactly one audit record before moving on.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Tuple, Union

from fota.domain.audit import AuditRecord
from fota.domain.firmware import FirmwareDescriptor, FirmwareList
from fota.domain.message_rules import STATE_LOGIN
from fota.domain.ports import AuditPort, DeliveryPort, LineSource, UseCaseError
from fota.domain.rollout import (
    RESULT_CANCELLED,
    RESULT_INCOMPARABLE,
    RESULT_REPORTED,
    RESULT_REPORTED_HIGHER,
    RESULT_TIMEOUT,
    STATE_CONVERGED,
    STATE_EXHAUSTED,
    STATE_FAILED,
    STATE_RUNNING,
    RolloutReport,
    StepOutcome,
    classify_label,
)
from fota.domain.state_map import StateMap
from fota.domain.time_utils import utc_now_iso
from fota.domain.versions import VersionFormatError, find_version, is_less, is_less_or_equal
from fota.usecases.wait_for_version import DEFAULT_POLL_INTERVAL_S, DEFAULT_TIMEOUT_S, WaitForVersion

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RolloutConfig:
    """Timing knobs for one rollout session."""

    timeout_s: float = DEFAULT_TIMEOUT_S
    poll_interval_s: float = DEFAULT_POLL_INTERVAL_S


class RunRollout:
    """Use-case callable for the ``idle -> running -> terminal`` rollout loop."""

    def __init__(
        self,
        *,
        firmware: Union[FirmwareList, Iterable[FirmwareDescriptor]],
        state_map: StateMap,
        source: LineSource,
        delivery: DeliveryPort,
        audit: AuditPort,
        config: Optional[RolloutConfig] = None,
        cancel_event: Optional[threading.Event] = None,
        clock: Callable[[], float] = time.monotonic,
        extractor: Callable[[str], Optional[str]] = find_version,
        now_iso: Callable[[], str] = utc_now_iso,
    ) -> None:
        """Wire dependencies for one device session.

        Args:
            firmware: Ordered list (plain iterables are sorted once here).
            state_map: Version map maintained by the state tracker.
            source: Dedicated live line subscription.
            delivery: Firmware push capability.
            audit: Append-only audit sink.
            config: Wait timeout and sampling interval.
            cancel_event: Cooperative stop flag.
            clock: Monotonic clock forwarded to ``WaitForVersion``.
            extractor: Version extractor forwarded to ``WaitForVersion``.
            now_iso: Audit timestamp source.

        Raises:
            UseCaseError: If the firmware list is empty.
        """
        self.firmware = firmware if isinstance(firmware, FirmwareList) else FirmwareList(firmware)
        self.state_map = state_map
        self.source = source
        self.delivery = delivery
        self.audit = audit
        self.config = config or RolloutConfig()
        self.cancel_event = cancel_event or threading.Event()
        self._now_iso = now_iso
        self._wait = WaitForVersion(
            source=source,
            timeout_s=self.config.timeout_s,
            poll_interval_s=self.config.poll_interval_s,
            clock=clock,
            extractor=extractor,
            cancel_event=self.cancel_event,
        )

    def __call__(self, device_id: str) -> RolloutReport:
        """Run the rollout for one device until a terminal state.

        Args:
            device_id: Identifier used for delivery and the ``LOGIN`` lookup.

        Returns:
            RolloutReport: Terminal state (``converged``, ``exhausted`` or
            ``failed``), per-step outcomes and a failure reason if any.

        Side Effects:
            Calls the delivery port once per step, consumes the live line
            subscription and appends one audit record per step.

        Call Chain:
            ``fota.app.main`` -> ``RunRollout.__call__`` ->
            ``DeliveryPort.submit`` / ``WaitForVersion`` / ``AuditPort.append``.

        Raises:
            UseCaseError: If ``device_id`` is blank.
        """
        device = str(device_id or "").strip()
        if not device:
            raise UseCaseError("DEVICE_ID_MISSING", "A device id is required for rollout.")

        report = RolloutReport(device_id=device, state=STATE_RUNNING)
        try:
            self._run(report)
        except Exception as exc:
            log.exception("Unexpected rollout failure device=%s", device)
            self._fail(report, f"unexpected error: {exc}")
        log.info(
            "Rollout finished device=%s state=%s steps=%d",
            device,
            report.state,
            len(report.steps),
        )
        return report

    # ------------------------------------------------------------------
    def _run(self, report: RolloutReport) -> None:
        for index, fw in enumerate(self.firmware):
            if self.cancel_event.is_set():
                self._fail(report, "cancelled")
                return
            report.current_index = index
            outcome = self._step(report.device_id, index, fw)
            try:
                self.audit.append(outcome.record)
            except OSError as exc:
                log.error("Failed to write audit: %s", exc)
                self._fail(report, f"audit write failed: {exc}")
                return
            report.steps.append(outcome)

            if outcome.result == RESULT_CANCELLED:
                self._fail(report, "cancelled")
                return
            if self._reached_latest(outcome.observed_version):
                log.info("Device reached latest version %s. Stopping.", outcome.observed_version)
                report.state = STATE_CONVERGED
                return
        report.state = STATE_EXHAUSTED

    def _step(self, device_id: str, index: int, fw: FirmwareDescriptor) -> StepOutcome:
        before = self.state_map.get(STATE_LOGIN, device_id)
        stale = self.source.drain()
        if stale:
            log.debug("Discarded %d stale lines before step %d", stale, index)
        job_id = self._submit(device_id, fw)
        observed = self._wait()
        if observed is None and self.cancel_event.is_set():
            result = RESULT_CANCELLED
        else:
            result = self._classify(observed, fw)
        record = AuditRecord(
            timestamp=self._now_iso(),
            device_id=device_id,
            firmware_id=fw.firmware_id,
            firmware_version=fw.version,
            firmware_path=fw.path,
            before_version=before,
            after_version=observed,
            result=result,
            job_id=job_id,
        )
        log.info(
            "Step %d firmware=%s target=%s before=%s after=%s result=%s job=%s",
            index,
            fw.firmware_id,
            fw.version,
            before,
            observed,
            result,
            job_id,
        )
        return StepOutcome(index=index, result=result, observed_version=observed, record=record)

    def _submit(self, device_id: str, fw: FirmwareDescriptor) -> Optional[str]:
        try:
            job_id = self.delivery.submit(device_id, fw)
        except Exception as exc:
            log.warning("Delivery failed for firmware=%s: %s; continuing without job id", fw.firmware_id, exc)
            return None
        if job_id:
            log.info("[ORC] Submitted FOTA jobId=%s for firmware=%s", job_id, fw.firmware_id)
            return str(job_id)
        log.info("[ORC] No jobId returned; continuing without it.")
        return None

    def _classify(self, observed: Optional[str], fw: FirmwareDescriptor) -> str:
        if observed is None:
            return RESULT_TIMEOUT
        try:
            kind = RESULT_REPORTED if is_less_or_equal(observed, fw.version) else RESULT_REPORTED_HIGHER
        except VersionFormatError as exc:
            log.warning("Cannot compare observed version: %s", exc)
            kind = RESULT_INCOMPARABLE
        return classify_label(kind, observed)

    def _reached_latest(self, observed: Optional[str]) -> bool:
        if observed is None:
            return False
        try:
            return not is_less(observed, self.firmware.highest.version)
        except VersionFormatError:
            return False

    @staticmethod
    def _fail(report: RolloutReport, reason: str) -> None:
        report.state = STATE_FAILED
        report.reason = reason


def summarize(report: RolloutReport) -> Tuple[str, int, Optional[str]]:
    """Compact ``(state, steps, last_version)`` tuple for CLI output."""
    return report.state, len(report.steps), report.last_observed_version


__all__ = ["RolloutConfig", "RunRollout", "summarize"]
