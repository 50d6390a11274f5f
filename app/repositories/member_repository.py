"""
Repository for Member database operations
"""

from sqlalchemy.exc import SQLAlchemyError
from db import db
from models.member import Member


class MemberRepository:
    """Repository for Member database operations"""

    @staticmethod
    def add_member(entity_type, entity_id, set_id):
        """Add a record to a set, no-op when it already is a member"""
        try:
            key = (entity_type, str(entity_id), set_id)
            item = db.session.get(Member, key)
            if item is None:
                item = Member(entity_type=entity_type, entity_id=str(entity_id), set_id=set_id)
                db.session.add(item)
                db.session.commit()
            return item
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e

    @staticmethod
    def remove_member(entity_type, entity_id, set_id):
        try:
            deleted = Member.query.filter_by(
                entity_type=entity_type, entity_id=str(entity_id), set_id=set_id
            ).delete()
            db.session.commit()
            return deleted > 0
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e

    @staticmethod
    def count():
        """Count total Member rows"""
        return Member.query.count()
