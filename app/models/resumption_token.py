"""
Model: ResumptionToken
Paging cursor handed to harvesters. Never updated after insert.
"""

from db import db


class ResumptionToken(db.Model):
    __tablename__ = "oai_resumption_token"

    token_id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    verb = db.Column(db.String(32), nullable=False)
    metadata_prefix = db.Column(db.String(64), nullable=False)
    set_id = db.Column(db.String(255))
    cursor = db.Column(db.Integer, nullable=False, default=0)
    from_date = db.Column(db.DateTime)
    until_date = db.Column(db.DateTime)
    complete_list_size = db.Column(db.Integer, nullable=False)
    expires = db.Column(db.DateTime, nullable=False, index=True)
