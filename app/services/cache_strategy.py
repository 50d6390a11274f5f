"""
Cache clearing strategies.

The record cache is rebuilt by an external worker. A strategy decides what
to drop from the cache when a source entity changes, and when to ask the
worker for a rebuild.

View entities are the sources of sets: a set's view_display is
"<view id>:<display id>" and the view's 'display' field lists its current
display ids.
"""

import structlog

from constants import CACHE_OP_DELETE
from exceptions import ConfigurationException

logger = structlog.get_logger('oai.cache')

VIEW_ENTITY_TYPE = 'view'


class CacheStrategy:
    id = None
    name = None

    def __init__(self, records, sets, entities=None, rebuild=None):
        self.records = records
        self.sets = sets
        self.entities = entities
        self.rebuild = rebuild

    def clear_cache(self, entity_type, entity_id, op):
        if op != CACHE_OP_DELETE:
            return
        if entity_type == VIEW_ENTITY_TYPE:
            for view_display in self.sets.view_displays_like(f"{entity_id}:"):
                removed = self.sets.remove_sets_by_view_display(view_display)
                logger.info("removed sets of deleted view", view_display=view_display, sets=removed)
            return

        if self.records.remove_record(entity_type, entity_id):
            logger.info("removed deleted entity from cache", entity_type=entity_type, entity_id=entity_id)
        # Entities can be the source of a set of their own
        if self.sets.exists(f"{entity_type}:{entity_id}"):
            self.sets.remove_set(f"{entity_type}:{entity_id}")

    def request_rebuild(self, reason):
        if self.rebuild is None:
            logger.debug("no cache rebuild worker configured", reason=reason)
            return False
        logger.info("requesting cache rebuild", reason=reason)
        self.rebuild()
        return True


class ConservativeStrategy(CacheStrategy):
    """Only clears the cache when an entity or view is deleted"""
    id = 'conservative'
    name = 'Conservative'


class LiberalStrategy(CacheStrategy):
    """Also rebuilds the cache when an exposed entity or view is added or updated"""
    id = 'liberal'
    name = 'Liberal'

    def clear_cache(self, entity_type, entity_id, op):
        if op == CACHE_OP_DELETE:
            return super().clear_cache(entity_type, entity_id, op)

        if entity_type == VIEW_ENTITY_TYPE:
            return self._view_changed(entity_id)

        if not self.is_exposed_type(entity_type):
            return
        if self.records.get(entity_type, entity_id) is not None or self.sets.exists(f"{entity_type}:{entity_id}"):
            self.request_rebuild(f"{entity_type}:{entity_id} {op}")

    def is_exposed_type(self, entity_type):
        return any(
            oai_set.entity_type == entity_type for oai_set in self.sets.get_all()
        ) or self.records.count_of_type(entity_type) > 0

    def _view_changed(self, view_id):
        exposed = self.sets.view_displays_like(f"{view_id}:")
        if not exposed:
            return

        current = set()
        view = self.entities.load(VIEW_ENTITY_TYPE, view_id) if self.entities is not None else None
        if view is not None:
            current = {f"{view_id}:{display_id}" for display_id in view.field_values('display')}
        for view_display in sorted(set(exposed) - current):
            removed = self.sets.remove_sets_by_view_display(view_display)
            logger.info("removed sets of deleted view display", view_display=view_display, sets=removed)

        self.request_rebuild(f"view {view_id} changed")


CACHE_STRATEGIES = {
    ConservativeStrategy.id: ConservativeStrategy,
    LiberalStrategy.id: LiberalStrategy,
}


def get_cache_strategy(strategy_id, records, sets, entities=None, rebuild=None):
    try:
        strategy_class = CACHE_STRATEGIES[strategy_id]
    except KeyError:
        raise ConfigurationException(f"Unknown cache strategy: {strategy_id}")
    return strategy_class(records, sets, entities=entities, rebuild=rebuild)
