"""Key-addressed records for projects, documents, templates and test cases.

Every write is a single call with no coordination: concurrent editors of the
same test-case set overwrite each other (last write wins).
"""

import copy
import logging
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Dict, List, Optional

from google.api_core.exceptions import GoogleAPIError
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from constants import DOCUMENTS, PROJECTS, TEMPLATES, TEST_CASES
from errors import StorageError
from settings import get_firestore_project

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def stamp_created(collection: str, data: Dict) -> Dict:
    """Return a copy of ``data`` with the creation timestamps of ``collection``."""
    now = _now()
    if collection == PROJECTS:
        return {**data, "createdAt": now, "lastModified": now}
    if collection in (DOCUMENTS, TEMPLATES):
        return {**data, "uploadedAt": now}
    if collection == TEST_CASES:
        return {**data, "lastModified": now}
    return dict(data)


def stamp_updated(data: Dict) -> Dict:
    return {**data, "lastModified": _now()}


@contextmanager
def _firestore_call(action: str, collection: str):
    try:
        yield
    except GoogleAPIError as exc:
        logger.exception("Firestore %s on %s failed", action, collection)
        raise StorageError(f"Failed to {action} {collection}. Please try again.") from exc


class FirestoreStore:
    """Records kept in Google Cloud Firestore, one collection per kind.

    Firestore API failures surface as ``StorageError``.
    """

    def __init__(self, client: firestore.Client):
        self.client = client

    def list(self, collection: str, project_id: Optional[str] = None) -> List[Dict]:
        ref = self.client.collection(collection)
        if project_id:
            ref = ref.where(filter=FieldFilter("projectId", "==", project_id))
        with _firestore_call("list", collection):
            return [{"id": doc.id, **doc.to_dict()} for doc in ref.stream()]

    def get(self, collection: str, doc_id: str) -> Optional[Dict]:
        with _firestore_call("read", collection):
            snapshot = self.client.collection(collection).document(doc_id).get()
        if not snapshot.exists:
            return None
        return {"id": snapshot.id, **snapshot.to_dict()}

    def create(self, collection: str, data: Dict) -> str:
        with _firestore_call("create", collection):
            _, doc_ref = self.client.collection(collection).add(stamp_created(collection, data))
        logger.info("Created %s/%s", collection, doc_ref.id)
        return doc_ref.id

    def update(self, collection: str, doc_id: str, data: Dict):
        with _firestore_call("update", collection):
            self.client.collection(collection).document(doc_id).update(stamp_updated(data))
        logger.info("Updated %s/%s", collection, doc_id)

    def delete(self, collection: str, doc_id: str):
        with _firestore_call("delete", collection):
            self.client.collection(collection).document(doc_id).delete()
        logger.info("Deleted %s/%s", collection, doc_id)


class InMemoryStore:
    """Same interface as FirestoreStore, kept in a dict for local runs and tests."""

    def __init__(self):
        self.collections: Dict[str, Dict[str, Dict]] = {}

    def list(self, collection: str, project_id: Optional[str] = None) -> List[Dict]:
        docs = self.collections.get(collection, {})
        return [
            {"id": doc_id, **copy.deepcopy(data)}
            for doc_id, data in docs.items()
            if not project_id or data.get("projectId") == project_id
        ]

    def get(self, collection: str, doc_id: str) -> Optional[Dict]:
        data = self.collections.get(collection, {}).get(doc_id)
        if data is None:
            return None
        return {"id": doc_id, **copy.deepcopy(data)}

    def create(self, collection: str, data: Dict) -> str:
        doc_id = uuid.uuid4().hex[:20]
        self.collections.setdefault(collection, {})[doc_id] = copy.deepcopy(
            stamp_created(collection, data)
        )
        return doc_id

    def update(self, collection: str, doc_id: str, data: Dict):
        docs = self.collections.get(collection, {})
        if doc_id not in docs:
            raise KeyError(f"{collection}/{doc_id} does not exist")
        docs[doc_id].update(copy.deepcopy(stamp_updated(data)))

    def delete(self, collection: str, doc_id: str):
        self.collections.get(collection, {}).pop(doc_id, None)


def get_store():
    """Firestore when FIRESTORE_PROJECT_ID is set, otherwise an in-memory store."""
    project = get_firestore_project()
    if project:
        return FirestoreStore(firestore.Client(project=project))
    logger.warning("FIRESTORE_PROJECT_ID is not set; records are kept in memory only")
    return InMemoryStore()
