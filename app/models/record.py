"""
Model: Record
One entity exposed to OAI-PMH, as denormalized by the indexing worker.
"""

from db import db


class Record(db.Model):
    __tablename__ = "oai_record"

    entity_type = db.Column(db.String(64), primary_key=True)
    entity_id = db.Column(db.String(128), primary_key=True)
    created = db.Column(db.DateTime, nullable=False, index=True)
    changed = db.Column(db.DateTime, nullable=False, index=True)

    def to_dict(self):
        return {
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "created": self.created.isoformat() if self.created else None,
            "changed": self.changed.isoformat() if self.changed else None,
        }
