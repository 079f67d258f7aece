import datetime
from typing import Callable

import firebase_admin
from firebase_admin import credentials, firestore
from google.cloud.firestore_v1 import Client as FirestoreClient

from coach_scheduler.constants import AUTO_SCHEDULING_SETTINGS_DOCUMENT, SETTINGS_COLLECTION
from coach_scheduler.models.model import AutoSchedulingSettings
from coach_scheduler.parsers.document_parser import parse_auto_scheduling_settings
from coach_scheduler.utils.logging_config import get_firestore_logger

logger = get_firestore_logger()


def init_firestore(service_account_path: str) -> FirestoreClient:
    cred = credentials.Certificate(service_account_path)
    firebase_admin.initialize_app(cred)
    return firestore.client()


class FirestoreSettingsStore:
    """Reads and writes the settings/autoScheduling document."""

    def __init__(
        self,
        firestore_db: FirestoreClient,
        collection: str = SETTINGS_COLLECTION,
        document: str = AUTO_SCHEDULING_SETTINGS_DOCUMENT
    ):
        self.firestore_db = firestore_db
        self.collection = collection
        self.document = document

    def _doc_ref(self):
        return self.firestore_db.collection(self.collection).document(self.document)

    def fetch_auto_scheduling_settings(self) -> AutoSchedulingSettings:
        doc = self._doc_ref().get()
        if doc.exists:
            settings = parse_auto_scheduling_settings(doc.to_dict())
            logger.info(f"Retrieved auto-scheduling settings: enabled={settings.enabled}")
            return settings
        else:
            logger.warning(f"No settings found in {self.collection}/{self.document}, auto-scheduling disabled")
            return AutoSchedulingSettings(enabled=False)

    def save_auto_scheduling_enabled(self, enabled: bool, now: datetime.datetime) -> AutoSchedulingSettings:
        self._doc_ref().set({
            "enabled": enabled,
            "updatedAt": now
        })
        logger.info(f"Settings uploaded to {self.collection}/{self.document}: enabled={enabled}")
        return AutoSchedulingSettings(enabled=enabled, updated_at=now)

    def listen_to_auto_scheduling_settings(self, on_change: Callable[[AutoSchedulingSettings], None]):
        """
        Call `on_change` with the parsed settings every time the document
        changes. Returns the Firestore watch so the caller can unsubscribe().
        """
        def on_snapshot(doc_snapshots, changes, read_time):
            for doc in doc_snapshots:
                on_change(parse_auto_scheduling_settings(doc.to_dict() if doc.exists else None))

        logger.info("Listening for auto-scheduling settings changes...")
        return self._doc_ref().on_snapshot(on_snapshot)
