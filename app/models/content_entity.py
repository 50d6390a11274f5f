"""
Model: ContentEntity
Bundled repository entity store. Deployments that own their content
elsewhere inject another entity store and never touch this table.
"""

from db import db, now_utc


class ContentEntity(db.Model):
    __tablename__ = "content_entity"

    entity_type = db.Column(db.String(64), primary_key=True)
    entity_id = db.Column(db.String(128), primary_key=True)
    label = db.Column(db.String(255))
    fields = db.Column(db.JSON, nullable=False, default=dict)  # {"title": ["..."], "creator": ["a", "b"]}
    published = db.Column(db.Boolean, nullable=False, default=True)
    created = db.Column(db.DateTime, nullable=False, default=now_utc)
    changed = db.Column(db.DateTime, nullable=False, default=now_utc, onupdate=now_utc)

    def field_values(self, field_name):
        values = (self.fields or {}).get(field_name)
        if values is None:
            return []
        if not isinstance(values, list):
            return [values]
        return values
