"""
Per-application wiring of the protocol engine collaborators.

Stored in app.extensions["oai"] by create_app().
"""

from repositories.record_repository import RecordRepository
from repositories.set_repository import SetRepository
from repositories.token_repository import TokenRepository
from repositories.entity_repository import EntityRepository
from services.cache_strategy import get_cache_strategy
from services.oai_engine import OaiEngine
from utils import now_utc


class OaiContext:
    def __init__(self, settings, registry, clock=None, rebuild=None):
        self.settings = settings
        self.registry = registry
        self.clock = clock or now_utc
        self.cache_strategy = get_cache_strategy(
            settings["oai"].get("cache_strategy") or "conservative",
            RecordRepository,
            SetRepository,
            rebuild=rebuild,
        )
        self.entities = EntityRepository(on_change=self.cache_strategy.clear_cache)
        self.cache_strategy.entities = self.entities

    @property
    def oai_settings(self):
        return self.settings["oai"]

    def engine(self):
        """Engine for one request"""
        return OaiEngine(
            records=RecordRepository,
            sets=SetRepository,
            tokens=TokenRepository,
            entities=self.entities,
            registry=self.registry,
            oai_settings=self.oai_settings,
            clock=self.clock,
        )
