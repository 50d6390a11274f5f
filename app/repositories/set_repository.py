"""
Repository for OaiSet database operations
"""

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from db import db
from models.oai_set import OaiSet
from models.member import Member
from repositories.record_repository import RecordRepository


class SetRepository:
    """Repository for OaiSet database operations"""

    @staticmethod
    def get_all():
        """Get all OaiSet rows ordered by set id"""
        return OaiSet.query.order_by(OaiSet.set_id).all()

    @staticmethod
    def get(set_id):
        """Get OaiSet by set id"""
        return db.session.get(OaiSet, set_id)

    @staticmethod
    def exists(set_id):
        return db.session.get(OaiSet, set_id) is not None

    @staticmethod
    def count():
        """Count total OaiSet rows"""
        return OaiSet.query.count()

    @staticmethod
    def min_pager_limit():
        """Smallest pager limit across every set, 0 when there are no sets"""
        return db.session.query(func.min(OaiSet.pager_limit)).scalar() or 0

    @staticmethod
    def upsert_set(set_id, label, pager_limit=0, view_display=None, entity_type=None):
        """Create or update an OaiSet"""
        try:
            item = db.session.get(OaiSet, set_id)
            if item is None:
                item = OaiSet(set_id=set_id)
                db.session.add(item)
            item.label = label
            item.pager_limit = pager_limit
            item.view_display = view_display
            item.entity_type = entity_type
            db.session.commit()
            return item
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e

    @staticmethod
    def remove_set(set_id):
        """Delete a set, its memberships, and records left without any set"""
        try:
            Member.query.filter_by(set_id=set_id).delete()
            deleted = OaiSet.query.filter_by(set_id=set_id).delete()
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e
        RecordRepository.remove_orphans()
        return deleted > 0

    @staticmethod
    def remove_sets_by_view_display(view_display):
        """Delete every set whose membership comes from view_display"""
        set_ids = [row.set_id for row in OaiSet.query.filter_by(view_display=view_display).all()]
        for set_id in set_ids:
            SetRepository.remove_set(set_id)
        return set_ids

    @staticmethod
    def view_displays_like(prefix):
        """Distinct view displays starting with prefix, e.g. every display of one view"""
        rows = (
            db.session.query(OaiSet.view_display)
            .filter(OaiSet.view_display.like(f"{prefix}%"))
            .distinct()
            .all()
        )
        return [row.view_display for row in rows]
