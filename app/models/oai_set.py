"""
Model: OaiSet
A named grouping of records. Membership comes from view_display, which is
opaque here.
"""

from db import db


class OaiSet(db.Model):
    __tablename__ = "oai_set"

    set_id = db.Column(db.String(255), primary_key=True)
    entity_type = db.Column(db.String(64))
    label = db.Column(db.String(255), nullable=False)
    pager_limit = db.Column(db.Integer, nullable=False, default=0)
    view_display = db.Column(db.String(255), index=True)

    def to_dict(self):
        return {
            "set_id": self.set_id,
            "entity_type": self.entity_type,
            "label": self.label,
            "pager_limit": self.pager_limit,
            "view_display": self.view_display,
        }
