"""
Models package

OAI record cache (written by the indexing worker, read by the protocol
engine), the resumption token store, and the bundled content entity store.

For convenience the models can also be imported from db.py:
    from db import Record, OaiSet, Member, etc.
"""

from .record import Record
from .oai_set import OaiSet
from .member import Member
from .resumption_token import ResumptionToken
from .token_sequence import TokenSequence
from .content_entity import ContentEntity

__all__ = [
    "Record",
    "OaiSet",
    "Member",
    "ResumptionToken",
    "TokenSequence",
    "ContentEntity",
]
