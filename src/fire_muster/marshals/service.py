from __future__ import annotations

import logging
from typing import Sequence

from ..common.validators import require_non_empty
from .model import Marshal
from .repository import MarshalRepository

logger = logging.getLogger(__name__)


class MarshalService:
    def __init__(self, marshals: MarshalRepository):
        self._marshals = marshals

    def add_marshal(self, name: str) -> Marshal:
        marshal = self._marshals.create(name=require_non_empty(name, "Marshal name"))
        logger.info("Marshal %s added (id=%s)", marshal.name, marshal.marshal_id)
        return marshal

    def list_marshals(self) -> Sequence[Marshal]:
        return self._marshals.list_all()

    def remove_marshal(self, marshal_id: int) -> bool:
        """Delete a marshal. Their party keeps the dangling ``marshal_id``."""
        removed = self._marshals.delete_by_id(int(marshal_id))
        if removed:
            logger.info("Marshal %s removed", marshal_id)
        return removed
