"""
Tests for verb dispatch, the response envelope and Identify
"""
from conftest import NS, OAI_PATH, parse, error_codes


class TestVerbDispatch:
    """Tests for the verb argument and the envelope"""

    def test_missing_verb_is_bad_verb(self, client):
        """No verb gives exactly one badVerb error and no verb attribute"""
        root = parse(client.get(OAI_PATH))

        assert error_codes(root) == ['badVerb']
        request = root.find('oai:request', NS)
        assert 'verb' not in request.attrib
        assert request.text == 'http://localhost/oai/request'

    def test_unknown_verb_is_bad_verb(self, client):
        """Unrecognized verbs are rejected the same way"""
        root = parse(client.get(OAI_PATH, query_string={'verb': 'ListEverything'}))

        assert error_codes(root) == ['badVerb']
        assert root.find('oai:request', NS).attrib == {}

    def test_repeated_verb_is_bad_verb(self, client):
        """A verb given twice is illegal"""
        root = parse(client.get(f"{OAI_PATH}?verb=Identify&verb=Identify"))

        assert error_codes(root) == ['badVerb']

    def test_errors_are_http_200(self, client):
        """Protocol errors travel inside the document"""
        response = client.get(OAI_PATH, query_string={'verb': 'Nope'})

        assert response.status_code == 200
        assert response.headers['Content-Type'] == 'text/xml; charset=utf-8'

    def test_envelope(self, client):
        """Root element, namespaces and responseDate from the clock"""
        root = parse(client.get(OAI_PATH, query_string={'verb': 'Identify'}))

        assert root.tag == '{http://www.openarchives.org/OAI/2.0/}OAI-PMH'
        schema_location = root.get('{http://www.w3.org/2001/XMLSchema-instance}schemaLocation')
        assert schema_location.endswith('http://www.openarchives.org/OAI/2.0/OAI-PMH.xsd')
        assert root.findtext('oai:responseDate', namespaces=NS) == '2026-01-15T12:00:00Z'
        children = [child.tag.split('}')[1] for child in root]
        assert children[:2] == ['responseDate', 'request']

    def test_post_form_is_accepted(self, client):
        """Form-encoded POST requests are handled like GET"""
        root = parse(client.post(OAI_PATH, data={'verb': 'Identify'}))

        assert error_codes(root) == []
        assert root.find('oai:request', NS).get('verb') == 'Identify'

    def test_illegal_argument_is_bad_argument(self, client):
        """Identify takes no arguments"""
        root = parse(client.get(OAI_PATH, query_string={'verb': 'Identify', 'set': 'setA'}))

        assert error_codes(root) == ['badArgument']
        assert root.find('oai:request', NS).attrib == {}
        assert root.find('oai:Identify', NS) is None


class TestIdentify:
    """Tests for the Identify verb"""

    def test_repository_description(self, seeded_client):
        """Identify reports the configured repository and fixed protocol values"""
        root = parse(seeded_client.get(OAI_PATH, query_string={'verb': 'Identify'}))
        identify = root.find('oai:Identify', NS)

        assert identify.findtext('oai:repositoryName', namespaces=NS) == 'Test Repository'
        assert identify.findtext('oai:baseURL', namespaces=NS) == 'http://localhost/oai/request'
        assert identify.findtext('oai:protocolVersion', namespaces=NS) == '2.0'
        assert identify.findtext('oai:adminEmail', namespaces=NS) == 'oai@example.org'
        assert identify.findtext('oai:deletedRecord', namespaces=NS) == 'no'
        assert identify.findtext('oai:granularity', namespaces=NS) == 'YYYY-MM-DDThh:mm:ssZ'

    def test_earliest_datestamp_is_oldest_created(self, seeded_client):
        """earliestDatestamp is MIN(created) over the cache"""
        root = parse(seeded_client.get(OAI_PATH, query_string={'verb': 'Identify'}))

        assert root.findtext('oai:Identify/oai:earliestDatestamp', namespaces=NS) == '2024-12-01T08:00:00Z'

    def test_earliest_datestamp_on_empty_cache(self, client):
        """An empty cache reports the epoch"""
        root = parse(client.get(OAI_PATH, query_string={'verb': 'Identify'}))

        assert root.findtext('oai:Identify/oai:earliestDatestamp', namespaces=NS) == '1970-01-01T00:00:00Z'

    def test_oai_identifier_description(self, client):
        """The description block carries a sample identifier for this host"""
        root = parse(client.get(OAI_PATH, query_string={'verb': 'Identify'}, base_url='http://repo.example.org:8080'))
        description = root.find('oai:Identify/oai:description/id:oai-identifier', NS)

        assert description.findtext('id:scheme', namespaces=NS) == 'oai'
        assert description.findtext('id:repositoryIdentifier', namespaces=NS) == 'repo.example.org'
        assert description.findtext('id:delimiter', namespaces=NS) == ':'
        assert description.findtext('id:sampleIdentifier', namespaces=NS) == 'oai:repo.example.org:node-1'

    def test_sample_identifier_uses_configured_entity_type(self, make_app):
        """sample_entity_type names the entity type of the sample identifier"""
        app = make_app(sample_entity_type='media')
        root = parse(app.test_client().get(OAI_PATH, query_string={'verb': 'Identify'}))

        assert root.findtext('.//id:sampleIdentifier', namespaces=NS) == 'oai:localhost:media-1'

    def test_configurable_path(self, make_app):
        """The endpoint is served at oai.path"""
        app = make_app(path='/harvest')
        client = app.test_client()

        root = parse(client.get('/harvest', query_string={'verb': 'Identify'}))
        assert root.findtext('oai:request', namespaces=NS) == 'http://localhost/harvest'
        assert client.get(OAI_PATH).status_code == 404
