"""
Model: TokenSequence
Single counter row handing out resumption token ids.
"""

from db import db


class TokenSequence(db.Model):
    __tablename__ = "oai_token_sequence"

    name = db.Column(db.String(50), primary_key=True)
    next_id = db.Column(db.Integer, nullable=False, default=1)
