"""
OAI identifiers: oai:<host>:<entityType>-<entityId>

<host> is the request host without its port.
"""

from collections import namedtuple

from utils import strip_port

EntityKey = namedtuple("EntityKey", ["entity_type", "entity_id"])


def build_identifier(host, entity_type, entity_id):
    return f"oai:{strip_port(host)}:{entity_type}-{entity_id}"


def parse_identifier(identifier, host):
    """
    EntityKey for an identifier minted by this host, None when it is
    malformed or belongs to another repository.
    The entity type ends at the first '-', ids may contain hyphens.
    """
    if not identifier:
        return None
    prefix = f"oai:{strip_port(host)}:"
    if not identifier.lower().startswith(prefix.lower()):
        return None
    entity_type, sep, entity_id = identifier[len(prefix):].partition("-")
    if not sep or not entity_type or not entity_id:
        return None
    return EntityKey(entity_type, entity_id)
