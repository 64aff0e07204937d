import copy
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .errors import NotFoundError
from .models import Checkpoint

logger = logging.getLogger(__name__)


class CheckpointStore:
    """Insert/read/delete for checkpoints. Rows are never updated."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, request_id: int, name: Optional[str], data: Dict[str, Any]) -> Checkpoint:
        checkpoint = Checkpoint(request_id=request_id, name=name, data=copy.deepcopy(data))
        self.db.add(checkpoint)
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(checkpoint)
        logger.info(f"Created checkpoint id={checkpoint.id} for request id={request_id}")
        return checkpoint

    def list_for_request(self, request_id: int) -> List[Checkpoint]:
        stmt = (
            select(Checkpoint)
            .where(Checkpoint.request_id == request_id)
            .order_by(Checkpoint.created_at.desc(), Checkpoint.id.desc())
        )
        return list(self.db.scalars(stmt))

    def get(self, checkpoint_id: int) -> Checkpoint:
        checkpoint = self.db.get(Checkpoint, checkpoint_id)
        if checkpoint is None:
            logger.warning(f'Checkpoint with ID "{checkpoint_id}" not found')
            raise NotFoundError(f'Checkpoint with ID "{checkpoint_id}" not found')
        return checkpoint

    def delete(self, checkpoint_id: int) -> Dict[str, Any]:
        try:
            result = self.db.execute(delete(Checkpoint).where(Checkpoint.id == checkpoint_id))
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        if result.rowcount == 0:
            logger.warning(f'Checkpoint with ID "{checkpoint_id}" not found for deletion')
            raise NotFoundError(f'Checkpoint with ID "{checkpoint_id}" not found')
        logger.info(f"Removed checkpoint id={checkpoint_id}")
        return {"deleted": True, "id": checkpoint_id}
