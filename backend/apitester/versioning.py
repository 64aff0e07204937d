"""Checkpoint creation and rollback for request drafts.

A request carries an ``unsaved`` flag. It starts out true, every edit sets it
true again, and only a successful checkpoint clears it. Clearing the flag is
best-effort: once the checkpoint row is committed the operation counts as a
success, and a failure to reset the flag is reported on the result instead of
being raised.
"""

import copy
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .checkpoint_store import CheckpointStore
from .errors import InconsistentStateError, NotFoundError
from .models import Checkpoint, RequestItem
from .request_store import RequestStore

logger = logging.getLogger(__name__)

SNAPSHOT_FIELDS = ("url", "method", "headers", "body")


class RequestLocks:
    """One mutex per request id, dropped again once no caller holds or waits on it."""

    def __init__(self):
        self._guard = threading.Lock()
        # request id -> [lock, number of holders and waiters]
        self._locks: Dict[int, list] = {}

    @contextmanager
    def hold(self, request_id: int):
        with self._guard:
            entry = self._locks.setdefault(request_id, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[request_id]


_locks = RequestLocks()


@dataclass
class CheckpointResult:
    checkpoint: Checkpoint
    unsaved_cleared: bool
    error: Optional[str] = None


def snapshot(item: RequestItem) -> Dict[str, Any]:
    return {field: copy.deepcopy(getattr(item, field)) for field in SNAPSHOT_FIELDS}


class VersioningService:
    def __init__(
        self,
        requests: RequestStore,
        checkpoints: CheckpointStore,
        locks: Optional[RequestLocks] = None,
    ):
        self.requests = requests
        self.checkpoints = checkpoints
        self.locks = locks or _locks

    def update_request(self, request_id: int, fields: Dict[str, Any]) -> RequestItem:
        with self.locks.hold(request_id):
            return self.requests.update(request_id, fields)

    def create_checkpoint(self, request_id: int, name: Optional[str] = None) -> CheckpointResult:
        logger.info(f'Creating checkpoint for request id={request_id}, name="{name}"')
        with self.locks.hold(request_id):
            item = self.requests.get(request_id)
            checkpoint = self.checkpoints.create(request_id, name, snapshot(item))
            checkpoint_id = checkpoint.id

            # the checkpoint is committed; nothing below may fail the call
            try:
                self.requests.set_unsaved_status(request_id, False)
            except Exception as e:
                logger.error(
                    f"Failed to set unsaved=False for request id={request_id} "
                    f"after creating checkpoint id={checkpoint_id}: {e}",
                    exc_info=True,
                )
                return CheckpointResult(checkpoint, unsaved_cleared=False, error=str(e))

        return CheckpointResult(checkpoint, unsaved_cleared=True)

    def list_checkpoints(self, request_id: int) -> List[Checkpoint]:
        # a missing request is an error even if orphaned checkpoints remain
        self.requests.get(request_id)
        checkpoints = self.checkpoints.list_for_request(request_id)
        logger.info(f"Found {len(checkpoints)} checkpoints for request id={request_id}")
        return checkpoints

    def rollback(self, checkpoint_id: int) -> RequestItem:
        checkpoint = self.checkpoints.get(checkpoint_id)
        request_id = checkpoint.request_id
        logger.info(f"Rolling back request id={request_id} to checkpoint id={checkpoint_id}")

        with self.locks.hold(request_id):
            try:
                item = self.requests.update(request_id, copy.deepcopy(checkpoint.data))
            except NotFoundError:
                logger.error(
                    f'Request "{request_id}" referenced by checkpoint "{checkpoint_id}" '
                    f"no longer exists"
                )
                raise InconsistentStateError(
                    f'Failed to find and update original request with ID "{request_id}" '
                    f"during rollback"
                ) from None
        return item

    def delete_checkpoint(self, checkpoint_id: int) -> Dict[str, Any]:
        return self.checkpoints.delete(checkpoint_id)
