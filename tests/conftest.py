"""
Pytest fixtures and configuration for the OAI-PMH provider tests
"""
import os
import sys
from datetime import datetime, timedelta, timezone

import pytest
from lxml import etree

# Add app directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'app'))

from constants import OAI_PMH_NS, DC_NS, OAI_DC_NS, OAI_IDENTIFIER_NS  # noqa: E402

FIXED_NOW = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

NS = {
    'oai': OAI_PMH_NS,
    'dc': DC_NS,
    'oai_dc': OAI_DC_NS,
    'id': OAI_IDENTIFIER_NS,
}

OAI_PATH = '/oai/request'


class FakeClock:
    """Callable clock the tests can move forward"""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now = self.now + timedelta(seconds=seconds)


def parse(response):
    """Root element of an OAI-PMH response"""
    assert response.status_code == 200
    assert response.content_type.startswith('text/xml')
    return etree.fromstring(response.data)


def error_codes(root):
    return [error.get('code') for error in root.findall('oai:error', NS)]


def identifiers(root):
    return [element.text for element in root.iterfind('.//oai:header/oai:identifier', NS)]


@pytest.fixture
def clock():
    return FakeClock(FIXED_NOW)


@pytest.fixture
def make_app(clock):
    """
    Build an app on an in-memory database. Keyword arguments override the
    'oai' settings section.
    """
    from db import db
    from app import create_app

    contexts = []

    def _make_app(rebuild=None, dublin_core=None, **oai_overrides):
        settings = {
            'oai': dict({
                'repository_name': 'Test Repository',
                'admin_email': 'oai@example.org',
            }, **oai_overrides),
            'dublin_core': dublin_core or {'field_map': {}},
        }
        _app = create_app(settings=settings, clock=clock, database_uri='sqlite://', rebuild=rebuild)
        _app.config.update(TESTING=True)
        ctx = _app.app_context()
        ctx.push()
        contexts.append(ctx)
        return _app

    yield _make_app

    for ctx in reversed(contexts):
        db.session.remove()
        db.drop_all()
        ctx.pop()


@pytest.fixture
def app(make_app):
    return make_app()


@pytest.fixture
def client(app):
    return app.test_client()


def seed_cache(app):
    """
    Three published nodes, all in setA (pager limit 2); node 1 is also in
    setB (pager limit 10). Page size is therefore 2.
    """
    from repositories.record_repository import RecordRepository
    from repositories.set_repository import SetRepository
    from repositories.member_repository import MemberRepository

    entities = app.extensions['oai'].entities
    nodes = [
        ('1', {'title': ['First article'], 'creator': ['Ada', 'Grace'], 'abstract': ['About one']},
         datetime(2024, 12, 1, 8, 0, 0), datetime(2025, 1, 1, 0, 0, 0)),
        ('2', {'title': ['Second article'], 'subject': [{'label': 'Harvesting', 'id': 7}]},
         datetime(2024, 12, 2, 8, 0, 0), datetime(2025, 2, 1, 10, 0, 0)),
        ('3', {'title': ['Third article'], 'isPartOf': ['Journal']},
         datetime(2024, 12, 3, 8, 0, 0), datetime(2025, 3, 1, 23, 59, 59)),
    ]

    SetRepository.upsert_set('setA', 'Set A', pager_limit=2, view_display='articles:page_1', entity_type='node')
    SetRepository.upsert_set('setB', 'Set B', pager_limit=10, view_display='articles:page_2', entity_type='node')
    for entity_id, fields, created, changed in nodes:
        entities.save('node', entity_id, fields=fields, label=fields['title'][0], created=created, changed=changed)
        RecordRepository.upsert_record('node', entity_id, created, changed)
        MemberRepository.add_member('node', entity_id, 'setA')
    MemberRepository.add_member('node', '1', 'setB')


@pytest.fixture
def seeded_app(app):
    seed_cache(app)
    return app


@pytest.fixture
def seeded_client(seeded_app):
    return seeded_app.test_client()


@pytest.fixture
def oai_get(seeded_client):
    """GET the OAI endpoint with query arguments, returns the parsed root"""
    def _get(**args):
        return parse(seeded_client.get(OAI_PATH, query_string=args))
    return _get
