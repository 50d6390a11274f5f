"""
Tests for the conservative and liberal cache clearing strategies
"""
from unittest.mock import MagicMock

import pytest

from conftest import seed_cache
from exceptions import ConfigurationException
from repositories.record_repository import RecordRepository
from repositories.set_repository import SetRepository
from services.cache_strategy import ConservativeStrategy, LiberalStrategy, get_cache_strategy


class TestStrategyRegistry:
    """Tests for strategy lookup"""

    def test_known_strategies(self):
        assert isinstance(get_cache_strategy('conservative', RecordRepository, SetRepository), ConservativeStrategy)
        assert isinstance(get_cache_strategy('liberal', RecordRepository, SetRepository), LiberalStrategy)

    def test_unknown_strategy(self):
        with pytest.raises(ConfigurationException):
            get_cache_strategy('aggressive', RecordRepository, SetRepository)

    def test_configured_on_the_app(self, make_app):
        app = make_app(cache_strategy='liberal')

        assert app.extensions['oai'].cache_strategy.id == 'liberal'


class TestConservativeStrategy:
    """Only deletions touch the cache"""

    def test_delete_removes_record(self, seeded_app):
        """Deleting an entity through the entity store drops it from the cache"""
        seeded_app.extensions['oai'].entities.delete('node', '2')

        assert RecordRepository.get('node', '2') is None
        assert RecordRepository.sets_for_record('node', '2') == []

    def test_update_keeps_cache(self, make_app):
        rebuild = MagicMock()
        app = make_app(rebuild=rebuild)
        seed_cache(app)

        app.extensions['oai'].entities.save('node', '1', fields={'title': ['Renamed']})

        rebuild.assert_not_called()
        assert RecordRepository.get('node', '1') is not None

    def test_deleting_view_removes_its_sets(self, seeded_app):
        seeded_app.extensions['oai'].entities.save('view', 'articles', fields={'display': ['page_1', 'page_2']})
        seeded_app.extensions['oai'].entities.delete('view', 'articles')

        assert SetRepository.count() == 0
        assert RecordRepository.count() == 0

    def test_deleting_set_source_entity_removes_the_set(self, seeded_app):
        """An entity can back a set of its own, named <type>:<id>"""
        from repositories.member_repository import MemberRepository

        SetRepository.upsert_set('taxonomy_term:5', 'Term 5', pager_limit=10, entity_type='taxonomy_term')
        MemberRepository.add_member('node', '3', 'taxonomy_term:5')

        seeded_app.extensions['oai'].entities.save('taxonomy_term', '5', fields={'name': ['Five']})
        seeded_app.extensions['oai'].entities.delete('taxonomy_term', '5')

        assert SetRepository.exists('taxonomy_term:5') is False
        assert RecordRepository.sets_for_record('node', '3') == ['setA']


class TestLiberalStrategy:
    """Additions and updates of exposed entities trigger a rebuild"""

    @pytest.fixture
    def rebuild(self):
        return MagicMock()

    @pytest.fixture
    def liberal_app(self, make_app, rebuild):
        app = make_app(cache_strategy='liberal', rebuild=rebuild)
        seed_cache(app)
        rebuild.reset_mock()
        return app

    def test_update_of_cached_entity_rebuilds(self, liberal_app, rebuild):
        liberal_app.extensions['oai'].entities.save('node', '2', fields={'title': ['Changed']})

        rebuild.assert_called_once_with()

    def test_entity_of_unexposed_type_is_ignored(self, liberal_app, rebuild):
        liberal_app.extensions['oai'].entities.save('user', '1', fields={'name': ['Someone']})

        rebuild.assert_not_called()

    def test_new_entity_of_exposed_type_not_yet_cached(self, liberal_app, rebuild):
        """Nothing to refresh until the worker has picked the entity up"""
        liberal_app.extensions['oai'].entities.save('node', '50', fields={'title': ['New']})

        rebuild.assert_not_called()

    def test_delete_behaves_like_conservative(self, liberal_app, rebuild):
        liberal_app.extensions['oai'].entities.delete('node', '3')

        assert RecordRepository.get('node', '3') is None
        rebuild.assert_not_called()

    def test_view_update_drops_removed_displays(self, liberal_app, rebuild):
        """Displays no longer on the view lose their sets, then the cache is rebuilt"""
        liberal_app.extensions['oai'].entities.save('view', 'articles', fields={'display': ['page_1']})

        assert [s.set_id for s in SetRepository.get_all()] == ['setA']
        rebuild.assert_called_once_with()

    def test_view_not_exposed_is_ignored(self, liberal_app, rebuild):
        liberal_app.extensions['oai'].entities.save('view', 'blog', fields={'display': ['page_1']})

        assert SetRepository.count() == 2
        rebuild.assert_not_called()

    def test_without_rebuild_worker(self, make_app):
        """Without a worker the request is only logged"""
        app = make_app(cache_strategy='liberal')
        seed_cache(app)

        assert app.extensions['oai'].cache_strategy.request_rebuild('test') is False
