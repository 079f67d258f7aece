import copy
from typing import Callable, Dict, Optional

from coach_scheduler.constants import StepStatus
from coach_scheduler.models.model import SchedulingProgress
from coach_scheduler.utils.logging_config import get_engine_logger

logger = get_engine_logger()

ProgressCallback = Callable[[SchedulingProgress], None]

_POINTER_FIELDS = ("current_customer", "current_coach", "current_action")


class ProgressReporter:
    """
    Holds the progress snapshot of one run and pushes a copy to the
    subscriber after every transition, synchronously and exactly once per
    transition.

    Subscribers get their own deep copy, so a UI keeping snapshots around
    never sees them change. A subscriber that raises is logged and ignored;
    the run carries on.
    """

    def __init__(self, on_progress: Optional[ProgressCallback] = None):
        self.on_progress = on_progress
        self._progress = SchedulingProgress()

    @property
    def snapshot(self) -> SchedulingProgress:
        return copy.deepcopy(self._progress)

    def update(
        self,
        step_label: Optional[str] = None,
        step_status: Optional[str] = None,
        step_details: Optional[str] = None,
        stats: Optional[Dict[str, int]] = None,
        **pointers
    ) -> SchedulingProgress:
        """
        Produce the next snapshot from the current one and publish it.

        Args:
            step_label: Step to change, if any
            step_status: New status for that step
            step_details: New details for that step
            stats: Statistics fields to overwrite
            **pointers: current_customer / current_coach / current_action;
                passing None clears the pointer
        """
        unknown = set(pointers) - set(_POINTER_FIELDS)
        if unknown:
            raise TypeError(f"Unknown progress fields: {sorted(unknown)}")

        next_progress = copy.deepcopy(self._progress)

        if step_label is not None:
            step = next_progress.step(step_label)
            if step_status is not None:
                step.status = step_status
            if step_details is not None:
                step.details = step_details

        for name, value in (stats or {}).items():
            if not hasattr(next_progress.stats, name):
                raise TypeError(f"Unknown statistic: {name}")
            setattr(next_progress.stats, name, value)

        for name, value in pointers.items():
            setattr(next_progress, name, value)

        self._progress = next_progress
        self._publish()
        return self.snapshot

    def start_step(self, label: str) -> SchedulingProgress:
        return self.update(step_label=label, step_status=StepStatus.PROCESSING)

    def complete_step(self, label: str, details: str, **changes) -> SchedulingProgress:
        return self.update(step_label=label, step_status=StepStatus.COMPLETED, step_details=details, **changes)

    def fail_processing_step(self, details: str) -> SchedulingProgress:
        """Mark whichever step is processing as failed. Publishes even when none is."""
        step = self._progress.processing_step()
        if step is None:
            return self.update()
        return self.update(step_label=step.label, step_status=StepStatus.ERROR, step_details=details)

    def reset(self) -> SchedulingProgress:
        self._progress = SchedulingProgress()
        self._publish()
        return self.snapshot

    def _publish(self) -> None:
        if self.on_progress is None:
            return
        try:
            self.on_progress(self.snapshot)
        except Exception as e:
            logger.exception(f"Progress subscriber raised, ignoring: {e}")
