"""
Model: Member
Many-to-many association between Record and OaiSet.
"""

from db import db


class Member(db.Model):
    __tablename__ = "oai_member"

    entity_type = db.Column(db.String(64), primary_key=True)
    entity_id = db.Column(db.String(128), primary_key=True)
    set_id = db.Column(db.String(255), db.ForeignKey("oai_set.set_id", ondelete="CASCADE"), primary_key=True)

    __table_args__ = (
        db.ForeignKeyConstraint(
            ["entity_type", "entity_id"],
            ["oai_record.entity_type", "oai_record.entity_id"],
            ondelete="CASCADE",
        ),
        db.Index("idx_member_set", "set_id"),
    )
