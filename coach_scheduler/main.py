import argparse
import os
import time

from dotenv import load_dotenv

from coach_scheduler.constants import DEFAULT_SCHEDULING_INTERVAL_SECONDS
from coach_scheduler.firestore.firestore_settings import FirestoreSettingsStore, init_firestore
from coach_scheduler.firestore.scheduling_queries import FirestoreSchedulingStore
from coach_scheduler.scheduling.engine import AutoSchedulingEngine
from coach_scheduler.scheduling.run_controller import AutoSchedulingController, init_scheduler
from coach_scheduler.utils.logging_config import ScheduleSystemLogger, get_main_logger
from coach_scheduler.utils.time_utils import load_timezone

logger = get_main_logger()


def load_config():
    env_file = os.getenv("ENV_FILE")
    if env_file is None:
        logger.info("ENV_FILE not set, using process environment only")
        return
    if not load_dotenv(dotenv_path=env_file):
        raise ValueError(f"Env file {env_file} not found or empty")


def get_service_acc_path() -> str:
    service_acc = os.getenv("SERVICE_ACCOUNT_PATH")
    if service_acc is None:
        raise ValueError("SERVICE_ACCOUNT_PATH not set")
    return service_acc


def get_interval_seconds() -> int:
    raw_interval = os.getenv("AUTO_SCHEDULING_INTERVAL_SECONDS")
    if raw_interval is None:
        return DEFAULT_SCHEDULING_INTERVAL_SECONDS
    try:
        interval = int(raw_interval)
    except ValueError as e:
        raise ValueError(f"AUTO_SCHEDULING_INTERVAL_SECONDS must be an integer, got '{raw_interval}'") from e
    if interval <= 0:
        raise ValueError(f"AUTO_SCHEDULING_INTERVAL_SECONDS must be positive, got {interval}")
    return interval


def get_scheduler_tz_name() -> str:
    return os.getenv("SCHEDULER_TZ", "UTC")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Coach auto-scheduling service")
    parser.add_argument(
        "--run-once",
        action="store_true",
        help="run the matching engine a single time and exit"
    )
    return parser.parse_args(argv)


def build_controller(firestore_db) -> AutoSchedulingController:
    tz_name = get_scheduler_tz_name()
    engine = AutoSchedulingEngine(
        store=FirestoreSchedulingStore(firestore_db),
        tz=load_timezone(tz_name)
    )
    return AutoSchedulingController(
        engine=engine,
        settings_store=FirestoreSettingsStore(firestore_db),
        scheduler=init_scheduler(timezone=tz_name),
        interval_seconds=get_interval_seconds()
    )


def main(argv=None):
    args = parse_args(argv)
    load_config()
    ScheduleSystemLogger.setup_logging()
    firestore_db = init_firestore(get_service_acc_path())
    controller = build_controller(firestore_db)

    if args.run_once:
        result = controller.trigger_run()
        if result is None:
            raise SystemExit(1)
        return

    controller.start()
    watch = controller.settings_store.listen_to_auto_scheduling_settings(controller.apply_settings)

    try:
        # Keep the program running
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        logger.info("[SYSTEM] Exiting gracefully.")
    finally:
        watch.unsubscribe()
        controller.shutdown()


if __name__ == "__main__":
    main()
