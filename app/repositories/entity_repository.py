"""
Repository for the bundled content entity store

Implements the entity store collaborator the protocol engine needs
(load by type and id, view access) and tells the configured cache clearing
strategy about every change.
"""

from sqlalchemy.exc import SQLAlchemyError
from db import db
from models.content_entity import ContentEntity
from constants import CACHE_OP_INSERT, CACHE_OP_UPDATE, CACHE_OP_DELETE
from utils import to_db_datetime, now_utc


class EntityRepository:
    """Repository for ContentEntity database operations"""

    def __init__(self, on_change=None):
        # on_change(entity_type, entity_id, op)
        self.on_change = on_change

    def load(self, entity_type, entity_id):
        """Load an entity by (type, id), None when it does not exist"""
        return db.session.get(ContentEntity, (entity_type, str(entity_id)))

    def can_view(self, entity):
        return entity is not None and bool(entity.published)

    def save(self, entity_type, entity_id, fields=None, label=None, published=True, created=None, changed=None):
        """Create or update an entity"""
        try:
            item = self.load(entity_type, entity_id)
            op = CACHE_OP_UPDATE
            if item is None:
                op = CACHE_OP_INSERT
                item = ContentEntity(entity_type=entity_type, entity_id=str(entity_id))
                db.session.add(item)
                item.created = to_db_datetime(created or now_utc())
            elif created is not None:
                item.created = to_db_datetime(created)
            item.label = label
            item.fields = fields or {}
            item.published = published
            item.changed = to_db_datetime(changed or now_utc())
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e

        self._notify(entity_type, entity_id, op)
        return item

    def delete(self, entity_type, entity_id):
        """Delete an entity"""
        item = self.load(entity_type, entity_id)
        if not item:
            return False

        db.session.delete(item)
        db.session.commit()
        self._notify(entity_type, entity_id, CACHE_OP_DELETE)
        return True

    def _notify(self, entity_type, entity_id, op):
        if self.on_change is not None:
            self.on_change(entity_type, str(entity_id), op)
