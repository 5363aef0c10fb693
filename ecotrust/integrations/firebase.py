"""
Firebase integration: Firestore-backed project registry.

`db` starts as None. Call `initialize()` once at process start before
building a `FirestoreRegistry` without an explicit client.
"""

import json
import logging
import os
from typing import List, Optional

import firebase_admin
from firebase_admin import credentials, firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from ecotrust.config import settings
from ecotrust.core.interfaces import Ring
from ecotrust.evidence.geofence import polygon_from_geojson

logger = logging.getLogger(__name__)

# Module-level reference. Set by initialize(); consumers read it at call time
# via `from ecotrust.integrations import firebase; firebase.db`.
db = None  # firestore.Client | None


def initialize() -> None:
    """Initialize Firebase Admin SDK and set the module-level `db` client."""
    global db

    if not firebase_admin._apps:
        service_account_json = os.getenv("FIREBASE_SERVICE_ACCOUNT")
        if service_account_json:
            try:
                sa_info = json.loads(service_account_json)
                cred = credentials.Certificate(sa_info)
                firebase_admin.initialize_app(cred)
            except (ValueError, OSError) as e:
                logger.error(f"[STARTUP] Bad FIREBASE_SERVICE_ACCOUNT, using default credentials: {e}")
                firebase_admin.initialize_app()
        else:
            firebase_admin.initialize_app()

    db = firestore.client()
    logger.info("[STARTUP] Firebase initialized")


def _submission_phash(doc: dict) -> Optional[str]:
    """Primary image's pHash: media[0].pHash, else a top-level pHash."""
    media = doc.get("media") or []
    if media and isinstance(media[0], dict) and media[0].get("pHash"):
        return media[0]["pHash"]
    return doc.get("pHash")


class FirestoreRegistry:
    """
    Registry reading `projects/{id}.geofence` (GeoJSON Polygon) and the
    most recent `submissions` of a project.
    """

    def __init__(self, client=None):
        self._client = client

    def _get_db(self):
        client = self._client or db
        if client is None:
            raise RuntimeError("Firestore is not initialized; call firebase.initialize() first")
        return client

    def prior_hashes(self, project_id: str, window_size: int) -> List[str]:
        query = (
            self._get_db()
            .collection(settings.firestore_submissions_collection)
            .where(filter=FieldFilter("projectId", "==", project_id))
            .order_by("createdAt", direction=firestore.Query.DESCENDING)
            .limit(window_size)
        )

        hashes = []
        for snapshot in query.stream():
            phash = _submission_phash(snapshot.to_dict() or {})
            if phash:
                hashes.append(phash)

        logger.info(f"[REGISTRY] {len(hashes)} prior hash(es) for project {project_id}")
        return hashes

    def geofence(self, project_id: str) -> Optional[Ring]:
        snapshot = (
            self._get_db()
            .collection(settings.firestore_projects_collection)
            .document(project_id)
            .get()
        )
        if not snapshot.exists:
            logger.warning(f"[REGISTRY] Project {project_id} not found")
            return None

        geometry = (snapshot.to_dict() or {}).get("geofence")
        try:
            return polygon_from_geojson(geometry)
        except (ValueError, TypeError, IndexError) as e:
            logger.warning(f"[REGISTRY] Ignoring malformed geofence for project {project_id}: {e}")
            return None
