"""
Repository for the resumption token store

Token ids come from a single counter row. The counter is advanced with one
UPDATE ... SET next_id = next_id + 1 in the same transaction that reads it
back, so concurrent requests can never be handed the same id.
"""

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from db import db
from models.resumption_token import ResumptionToken
from models.token_sequence import TokenSequence
from utils import to_db_datetime

SEQUENCE_NAME = "resumption_token"


class TokenRepository:
    """Repository for ResumptionToken database operations"""

    @staticmethod
    def ensure_sequence(start=1):
        """Create the counter row if it does not exist yet"""
        if db.session.get(TokenSequence, SEQUENCE_NAME) is not None:
            return
        try:
            db.session.add(TokenSequence(name=SEQUENCE_NAME, next_id=start))
            db.session.commit()
        except IntegrityError:
            # Another worker created it first
            db.session.rollback()

    @staticmethod
    def get_next_token_id():
        """Id the next issued token will get"""
        value = db.session.query(TokenSequence.next_id).filter_by(name=SEQUENCE_NAME).scalar()
        return value if value is not None else 1

    @staticmethod
    def set_next_token_id(value):
        try:
            TokenRepository.ensure_sequence()
            db.session.execute(
                update(TokenSequence).where(TokenSequence.name == SEQUENCE_NAME).values(next_id=value)
            )
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e

    @staticmethod
    def _allocate_in_transaction():
        result = db.session.execute(
            update(TokenSequence)
            .where(TokenSequence.name == SEQUENCE_NAME)
            .values(next_id=TokenSequence.next_id + 1)
        )
        if result.rowcount == 0:
            db.session.add(TokenSequence(name=SEQUENCE_NAME, next_id=2))
            db.session.flush()
            return 1
        return db.session.query(TokenSequence.next_id).filter_by(name=SEQUENCE_NAME).scalar() - 1

    @staticmethod
    def allocate_id():
        """Reserve a token id and advance the counter"""
        try:
            token_id = TokenRepository._allocate_in_transaction()
            db.session.commit()
            return token_id
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e

    @staticmethod
    def issue(verb, metadata_prefix, cursor, complete_list_size, expires, set_id=None, from_date=None, until_date=None):
        """Allocate an id and persist a new token in one transaction"""
        try:
            token_id = TokenRepository._allocate_in_transaction()
            token = ResumptionToken(
                token_id=token_id,
                verb=verb,
                metadata_prefix=metadata_prefix,
                set_id=set_id,
                cursor=cursor,
                from_date=to_db_datetime(from_date),
                until_date=to_db_datetime(until_date),
                complete_list_size=complete_list_size,
                expires=to_db_datetime(expires),
            )
            db.session.add(token)
            db.session.commit()
            return token
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e

    @staticmethod
    def get(token_id):
        """Get a token by id, None when unknown"""
        return db.session.get(ResumptionToken, token_id)

    @staticmethod
    def delete(token_id):
        item = db.session.get(ResumptionToken, token_id)
        if not item:
            return False

        db.session.delete(item)
        db.session.commit()
        return True

    @staticmethod
    def purge_expired(now):
        """Delete every token whose expiry is at or before now"""
        try:
            deleted = ResumptionToken.query.filter(ResumptionToken.expires <= to_db_datetime(now)).delete()
            db.session.commit()
            return deleted
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e

    @staticmethod
    def count_active(now):
        return ResumptionToken.query.filter(ResumptionToken.expires > to_db_datetime(now)).count()
