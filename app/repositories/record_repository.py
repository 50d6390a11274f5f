"""
Repository for Record database operations

Read side is what the protocol engine consumes; the write side is the
contract the indexing worker uses to maintain the cache.
"""

from collections import namedtuple

from sqlalchemy import func, and_
from sqlalchemy.exc import SQLAlchemyError
from db import db
from models.record import Record
from models.member import Member
from models.oai_set import OaiSet
from utils import to_db_datetime

SelectedRecord = namedtuple("SelectedRecord", ["entity_type", "entity_id", "changed", "sets"])


def _set_aggregate():
    """Comma-joined set ids for a grouped record, per dialect"""
    if db.engine.dialect.name == "postgresql":
        return func.string_agg(Member.set_id, ",")
    return func.group_concat(Member.set_id)


class RecordRepository:
    """Repository for Record database operations"""

    @staticmethod
    def get(entity_type, entity_id):
        """Get Record by its (entity_type, entity_id) key"""
        return db.session.get(Record, (entity_type, str(entity_id)))

    @staticmethod
    def count():
        """Count total Record rows"""
        return Record.query.count()

    @staticmethod
    def count_of_type(entity_type):
        return Record.query.filter_by(entity_type=entity_type).count()

    @staticmethod
    def earliest_created():
        """MIN(created) over the cache, None when the cache is empty"""
        return db.session.query(func.min(Record.created)).scalar()

    @staticmethod
    def get_exposed(entity_type, entity_id):
        """
        Get the Record only if it belongs to at least one set.
        This is the authoritative "is this exposed to OAI" check.
        """
        return (
            Record.query.join(
                Member,
                and_(Member.entity_type == Record.entity_type, Member.entity_id == Record.entity_id),
            )
            .filter(Record.entity_type == entity_type, Record.entity_id == str(entity_id))
            .first()
        )

    @staticmethod
    def sets_for_record(entity_type, entity_id):
        """All set ids a record is a member of, sorted"""
        rows = (
            db.session.query(Member.set_id)
            .filter(Member.entity_type == entity_type, Member.entity_id == str(entity_id))
            .order_by(Member.set_id)
            .all()
        )
        return [row.set_id for row in rows]

    @staticmethod
    def selection_query(set_id=None, from_date=None, until_date=None):
        """
        Records joined through Member to OaiSet, grouped by record with all of
        its set ids aggregated. Date bounds are inclusive.
        """
        query = (
            db.session.query(
                Record.entity_type,
                Record.entity_id,
                Record.changed,
                _set_aggregate().label("sets"),
            )
            .join(
                Member,
                and_(Member.entity_type == Record.entity_type, Member.entity_id == Record.entity_id),
            )
            .join(OaiSet, OaiSet.set_id == Member.set_id)
        )

        if set_id:
            # Filter on membership of the requested set, but still aggregate every set of the record
            in_set = (
                db.session.query(Member.entity_type, Member.entity_id)
                .filter(Member.set_id == set_id)
                .subquery()
            )
            query = query.join(
                in_set,
                and_(in_set.c.entity_type == Record.entity_type, in_set.c.entity_id == Record.entity_id),
            )
        if from_date is not None:
            query = query.filter(Record.changed >= to_db_datetime(from_date))
        if until_date is not None:
            query = query.filter(Record.changed <= to_db_datetime(until_date))

        return query.group_by(Record.entity_type, Record.entity_id, Record.changed).order_by(
            Record.entity_type, Record.entity_id
        )

    @staticmethod
    def count_matching(set_id=None, from_date=None, until_date=None):
        """Number of distinct records the selection query yields"""
        return RecordRepository.selection_query(set_id, from_date, until_date).count()

    @staticmethod
    def select_page(set_id=None, from_date=None, until_date=None, offset=0, limit=0):
        """One page of the selection; limit 0 returns everything from offset"""
        query = RecordRepository.selection_query(set_id, from_date, until_date)
        if limit > 0:
            query = query.offset(offset).limit(limit)
        results = []
        for row in query.all():
            sets = sorted(set(row.sets.split(","))) if row.sets else []
            results.append(SelectedRecord(row.entity_type, row.entity_id, row.changed, sets))
        return results

    @staticmethod
    def upsert_record(entity_type, entity_id, created, changed):
        """Create or update a Record"""
        try:
            item = db.session.get(Record, (entity_type, str(entity_id)))
            if item is None:
                item = Record(entity_type=entity_type, entity_id=str(entity_id))
                db.session.add(item)
            item.created = to_db_datetime(created)
            item.changed = to_db_datetime(changed)
            db.session.commit()
            return item
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e

    @staticmethod
    def remove_record(entity_type, entity_id):
        """Delete a Record and all of its memberships"""
        try:
            Member.query.filter_by(entity_type=entity_type, entity_id=str(entity_id)).delete()
            deleted = Record.query.filter_by(entity_type=entity_type, entity_id=str(entity_id)).delete()
            db.session.commit()
            return deleted > 0
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e

    @staticmethod
    def remove_orphans():
        """Delete records that no longer belong to any set"""
        try:
            orphans = (
                Record.query.filter(
                    ~db.session.query(Member)
                    .filter(Member.entity_type == Record.entity_type, Member.entity_id == Record.entity_id)
                    .exists()
                )
                .all()
            )
            for record in orphans:
                db.session.delete(record)
            db.session.commit()
            return len(orphans)
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e
