"""Persistence for the editable request drafts and their ``unsaved`` flag."""

import logging
from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .errors import NotFoundError
from .models import RequestItem

logger = logging.getLogger(__name__)


class RequestStore:
    def __init__(self, db: Session):
        self.db = db

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def create(self, fields: Dict[str, Any]) -> RequestItem:
        item = RequestItem(**fields, unsaved=True)
        self.db.add(item)
        self._commit()
        self.db.refresh(item)
        logger.info(f"Created request id={item.id} {item.method} {item.url}")
        return item

    def list(self) -> List[RequestItem]:
        stmt = select(RequestItem).order_by(RequestItem.id.desc())
        return list(self.db.scalars(stmt))

    def get(self, request_id: int) -> RequestItem:
        item = self.db.get(RequestItem, request_id)
        if item is None:
            logger.warning(f'Request with ID "{request_id}" not found')
            raise NotFoundError(f'Request with ID "{request_id}" not found')
        return item

    def update(self, request_id: int, fields: Dict[str, Any]) -> RequestItem:
        item = self.get(request_id)
        for key, value in fields.items():
            setattr(item, key, value)
        # any edit makes the draft diverge from its latest checkpoint
        item.unsaved = True
        self._commit()
        self.db.refresh(item)
        logger.info(f"Updated request id={request_id} fields={sorted(fields)}")
        return item

    def set_unsaved_status(self, request_id: int, value: bool) -> RequestItem:
        item = self.get(request_id)
        item.unsaved = value
        self._commit()
        self.db.refresh(item)
        logger.info(f"Set unsaved={value} for request id={request_id}")
        return item

    def delete(self, request_id: int) -> Dict[str, Any]:
        item = self.get(request_id)
        self.db.delete(item)
        self._commit()
        logger.info(f"Removed request id={request_id}")
        return {"deleted": True, "id": request_id}
