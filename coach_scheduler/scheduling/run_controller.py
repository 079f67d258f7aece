import datetime
import threading
from typing import Callable, List, Optional

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, EVENT_JOB_MAX_INSTANCES
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from google.api_core.exceptions import GoogleAPIError

from coach_scheduler.constants import AUTO_SCHEDULING_JOB_ID, DEFAULT_SCHEDULING_INTERVAL_SECONDS
from coach_scheduler.firestore.error_handling import describe_store_error
from coach_scheduler.models.model import AutoSchedulingSettings, SchedulingProgress, SchedulingResult
from coach_scheduler.scheduling.engine import AutoSchedulingEngine
from coach_scheduler.scheduling.progress import ProgressCallback, ProgressReporter
from coach_scheduler.utils.logging_config import get_controller_logger
from coach_scheduler.utils.time_utils import format_clock_time, utc_now

logger = get_controller_logger()


def init_scheduler(timezone: str = "UTC") -> BackgroundScheduler:
    scheduler = BackgroundScheduler(
        timezone=timezone,
        job_defaults={
            'max_instances': 1,
            'misfire_grace_time': None,
            'coalesce': True
        }
    )

    def job_listener(event):
        if event.code == EVENT_JOB_MAX_INSTANCES:
            logger.info(f"Job {event.job_id} skipped, previous run still in progress")
        elif getattr(event, 'exception', None):
            logger.error(f"Job {event.job_id} crashed: {event.exception}")
        else:
            logger.debug(f"Job {event.job_id} executed successfully")

    scheduler.add_listener(job_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR | EVENT_JOB_MAX_INSTANCES)
    return scheduler


class AutoSchedulingController:
    """
    Owns the periodic auto-scheduling job.

    The enabled flag lives in Firestore (settings/autoScheduling) so the
    state survives restarts and is shared with the admin dashboard. At most
    one run is active per controller; a tick that fires while a run is in
    flight is dropped.
    """

    def __init__(
        self,
        engine: AutoSchedulingEngine,
        settings_store,
        scheduler: Optional[BackgroundScheduler] = None,
        interval_seconds: int = DEFAULT_SCHEDULING_INTERVAL_SECONDS,
        on_progress: Optional[ProgressCallback] = None,
        now_provider: Callable[[], datetime.datetime] = utc_now
    ):
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")

        self.engine = engine
        self.settings_store = settings_store
        self.scheduler = scheduler if scheduler is not None else init_scheduler()
        self.interval_seconds = interval_seconds
        self.on_progress = on_progress
        self.now_provider = now_provider

        self.enabled = False
        self.progress = SchedulingProgress()
        self.last_result: Optional[SchedulingResult] = None
        self.activity_log: List[str] = []
        self._run_lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    @property
    def next_run_time(self) -> Optional[datetime.datetime]:
        job = self.scheduler.get_job(AUTO_SCHEDULING_JOB_ID)
        if job is None:
            return None
        return job.next_run_time

    def start(self) -> None:
        """Start the scheduler and resume auto-scheduling if it was left enabled."""
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("Auto-scheduling scheduler started")

        try:
            settings = self.settings_store.fetch_auto_scheduling_settings()
        except GoogleAPIError as e:
            logger.error(f"Error loading auto-scheduling state: {e}")
            self._log_activity("Failed to load auto-scheduling state")
            return

        if settings.enabled:
            self.enabled = True
            self.trigger_run()
            self._arm()

    def shutdown(self) -> None:
        self._disarm()
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Auto-scheduling scheduler stopped")

    def enable(self) -> Optional[SchedulingResult]:
        """Persist the enabled flag, run once right away, then arm the interval job."""
        self.settings_store.save_auto_scheduling_enabled(True, self.now_provider())
        self.enabled = True
        self.activity_log.clear()
        self._log_activity("Auto-scheduling enabled, starting process...")
        result = self.trigger_run()
        self._arm()
        return result

    def disable(self) -> None:
        """
        Persist the disabled flag, cancel the interval job and reset progress.
        A run already in flight is not interrupted.
        """
        self.settings_store.save_auto_scheduling_enabled(False, self.now_provider())
        self.enabled = False
        self.activity_log.clear()
        self._disarm()
        self._log_activity("Auto-scheduling disabled")
        self._reset_progress()

    def apply_settings(self, settings: AutoSchedulingSettings) -> None:
        """
        Follow a settings change made elsewhere (e.g. the admin dashboard).
        Nothing is persisted; the first run is handed to the scheduler thread.
        """
        if settings.enabled and not self.enabled:
            logger.info("Auto-scheduling enabled remotely")
            self.enabled = True
            self._log_activity("Auto-scheduling enabled, starting process...")
            self._arm(run_immediately=True)
        elif not settings.enabled and self.enabled:
            logger.info("Auto-scheduling disabled remotely")
            self.enabled = False
            self._disarm()
            self._log_activity("Auto-scheduling disabled")
            self._reset_progress()

    def trigger_run(self) -> Optional[SchedulingResult]:
        """
        Run the engine once unless a run is already active.

        Returns:
            The run result, or None when the run was skipped or failed
        """
        if not self._run_lock.acquire(blocking=False):
            logger.info("Skipping scheduled run - previous run still in progress")
            self._log_activity("Skipping scheduled run - previous run still in progress")
            return None

        try:
            self._log_activity("Starting scheduled auto-scheduling run")
            result = self.engine.run(self._handle_progress)
        except Exception as e:
            description = describe_store_error(e, "Auto-scheduling failed")
            logger.error(f"Auto-scheduling check failed: {description}")
            self._log_activity(f"Error: {description}")
            return None
        finally:
            self._run_lock.release()

        self.last_result = result
        if result.appointments_created > 0:
            logger.info(f"Created {result.appointments_created} new appointments")
            self._log_activity(f"Successfully created {result.appointments_created} appointments")
        else:
            logger.info("No new appointments needed")
            self._log_activity("No appointments needed to be created")
        return result

    def _handle_progress(self, progress: SchedulingProgress) -> None:
        self.progress = progress
        if progress.current_action:
            self._log_activity(progress.current_action)
        if self.on_progress is not None:
            self.on_progress(progress)

    def _reset_progress(self) -> None:
        ProgressReporter(self._handle_progress).reset()

    def _arm(self, run_immediately: bool = False) -> None:
        kwargs = {}
        if run_immediately:
            kwargs['next_run_time'] = self.now_provider()
        self.scheduler.add_job(
            self.trigger_run,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=AUTO_SCHEDULING_JOB_ID,
            name="Auto-scheduling run",
            replace_existing=True,
            **kwargs
        )
        logger.info(f"Auto-scheduling interval started, every {self.interval_seconds}s")
        self._log_activity("Auto-scheduling interval started")

    def _disarm(self) -> None:
        if self.scheduler.get_job(AUTO_SCHEDULING_JOB_ID) is not None:
            self.scheduler.remove_job(AUTO_SCHEDULING_JOB_ID)
            logger.info("Auto-scheduling interval stopped")
            self._log_activity("Auto-scheduling interval stopped")

    def _log_activity(self, message: str) -> None:
        self.activity_log.append(f"{format_clock_time(self.now_provider())}: {message}")
