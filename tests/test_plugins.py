"""
Tests for the metadata format plugins and the plugin registry
"""
import pytest
from lxml import etree

from conftest import NS
from exceptions import ConfigurationException, MetadataRenderException
from models.content_entity import ContentEntity
from plugin_system import MetadataFormatPlugin, PluginRegistry, get_plugin_registry
from plugins.dublin_core import DublinCorePlugin, dc_element_for, normalize_property
from plugins.raw_fields import RawFieldsPlugin, element_name


def make_entity(fields, entity_type='node', entity_id='1'):
    return ContentEntity(entity_type=entity_type, entity_id=entity_id, fields=fields, published=True)


class TestDublinCoreMapping:
    """Tests for property normalization and the synonym table"""

    def test_normalize_property(self):
        assert normalize_property('dcterms:abstract') == 'abstract'
        assert normalize_property('dc11:title') == 'title'
        assert normalize_property('title') == 'title'
        assert normalize_property('schema:name') is None
        assert normalize_property('') is None

    def test_element_and_synonyms(self):
        """DC elements map to themselves, DC terms refinements to their element"""
        assert dc_element_for('dc:creator') == 'creator'
        assert dc_element_for('dcterms:abstract') == 'description'
        assert dc_element_for('dcterms:created') == 'date'
        assert dc_element_for('isPartOf') == 'relation'
        assert dc_element_for('dcterms:spatial') == 'coverage'
        assert dc_element_for('body') is None

    def test_field_map_overrides_field_name(self):
        """Configured mappings are used before the field's own name"""
        plugin = DublinCorePlugin({'dublin_core': {'field_map': {'node': {
            'body': 'dcterms:abstract',
            'title': 'schema:name',
        }}}})
        entity = make_entity({'body': ['Text'], 'title': ['Ignored'], 'creator': ['Ada']})

        assert plugin.map_fields(entity) == {'description': ['Text'], 'creator': ['Ada']}

    def test_field_map_is_per_entity_type(self):
        plugin = DublinCorePlugin({'dublin_core': {'field_map': {'media': {'body': 'dc:description'}}}})
        entity = make_entity({'body': ['Text']})

        assert plugin.map_fields(entity) == {}


class TestDublinCorePlugin:
    """Tests for rendering oai_dc"""

    def test_descriptor(self):
        descriptor = DublinCorePlugin().get_metadata_format()

        assert descriptor.metadata_prefix == 'oai_dc'
        assert descriptor.schema == 'http://www.openarchives.org/OAI/2.0/oai_dc.xsd'
        assert descriptor.metadata_namespace == 'http://www.openarchives.org/OAI/2.0/oai_dc/'

    def test_multi_valued_fields_repeat(self):
        """Each value becomes its own element, elements in Dublin Core order"""
        entity = make_entity({'title': ['T'], 'subject': ['a', {'label': 'b'}], 'creator': ['c']})
        root = etree.fromstring(DublinCorePlugin().render_metadata(entity).encode('utf-8'))

        assert root.tag == '{http://www.openarchives.org/OAI/2.0/oai_dc/}dc'
        assert [(child.tag.split('}')[1], child.text) for child in root] == [
            ('creator', 'c'),
            ('subject', 'a'),
            ('subject', 'b'),
            ('title', 'T'),
        ]

    def test_values_are_escaped(self):
        entity = make_entity({'title': ['Tom & Jerry <1>']})
        root = etree.fromstring(DublinCorePlugin().render_metadata(entity).encode('utf-8'))

        assert root.findtext('dc:title', namespaces=NS) == 'Tom & Jerry <1>'

    def test_empty_values_are_skipped(self):
        entity = make_entity({'title': ['', None], 'creator': ['Ada']})
        root = etree.fromstring(DublinCorePlugin().render_metadata(entity).encode('utf-8'))

        assert root.findall('dc:title', NS) == []
        assert root.findtext('dc:creator', namespaces=NS) == 'Ada'

    def test_scalar_field_value(self):
        """A single value not wrapped in a list still renders"""
        entity = make_entity({'title': 'Alone'})

        assert DublinCorePlugin().map_fields(entity) == {'title': ['Alone']}

    def test_failure_is_render_exception(self):
        plugin = DublinCorePlugin()
        entity = make_entity({'title': ['T']})
        plugin.map_fields = lambda entity: 1 / 0

        with pytest.raises(MetadataRenderException):
            plugin.render_metadata(entity)


class TestRawFieldsPlugin:
    """Tests for the raw fields format"""

    def test_element_name(self):
        assert element_name('field_title') == 'field_title'
        assert element_name('my field') == 'my_field'
        assert element_name('1st') == '_1st'
        assert element_name('xmlData') == '_xmlData'

    def test_every_field_rendered(self):
        entity = make_entity({'zeta': ['z'], 'alpha': ['a1', 'a2']})
        root = etree.fromstring(RawFieldsPlugin().render_metadata(entity).encode('utf-8'))

        assert root.tag == 'oai_raw'
        assert [(child.tag, child.text) for child in root] == [('alpha', 'a1'), ('alpha', 'a2'), ('zeta', 'z')]


class TestPluginRegistry:
    """Tests for the explicit plugin registry"""

    def test_builtin_plugins(self):
        registry = get_plugin_registry()

        assert registry.ids() == ['dublin_core', 'raw_fields']
        assert [p['metadata_prefix'] for p in registry.list_plugins()] == ['oai_dc', 'oai_raw']

    def test_duplicate_registration(self):
        registry = PluginRegistry()
        registry.register(DublinCorePlugin)

        with pytest.raises(ConfigurationException):
            registry.register(DublinCorePlugin)

    def test_plugin_without_id(self):
        class Anonymous(MetadataFormatPlugin):
            pass

        with pytest.raises(ConfigurationException):
            PluginRegistry().register(Anonymous)

    def test_unknown_plugin(self):
        with pytest.raises(ConfigurationException):
            PluginRegistry().get('mods')

    def test_for_prefix_follows_the_map(self):
        """The prefix is resolved through the configured mapping only"""
        registry = get_plugin_registry()

        assert registry.for_prefix('oai_dc', {'oai_dc': 'dublin_core'}).id == 'dublin_core'
        assert registry.for_prefix('dc_raw', {'dc_raw': 'raw_fields'}).id == 'raw_fields'
        assert registry.for_prefix('oai_raw', {'oai_dc': 'dublin_core'}) is None
        assert registry.for_prefix('mods', {'mods': 'mods_plugin'}) is None

    def test_formats_use_mapped_prefix(self):
        """Descriptors carry the configured prefix and skip unregistered plugins"""
        registry = get_plugin_registry()
        formats = registry.formats({'dc': 'dublin_core', 'mods': 'missing'})

        assert [f.metadata_prefix for f in formats] == ['dc']
        assert formats[0].schema == 'http://www.openarchives.org/OAI/2.0/oai_dc.xsd'
