from plugin_system import MetadataFormatPlugin, MetadataWrapper
from constants import DC_ELEMENTS, DC_TERMS_SYNONYMS, DC_NS, OAI_DC_NS, OAI_DC_SCHEMA, XSI_NS
import logging

logger = logging.getLogger('main')

# Vocabulary prefixes that all mean "Dublin Core" in a field mapping
DC_PREFIXES = ('dc', 'dc11', 'dcterms')


def normalize_property(prop):
    """
    'dcterms:abstract' -> 'abstract', 'dc11:title' -> 'title', 'title' -> 'title'.
    Returns None for properties from other vocabularies.
    """
    if not prop:
        return None
    if ':' in prop:
        prefix, name = prop.split(':', 1)
        if prefix not in DC_PREFIXES:
            return None
        return name
    return prop


def dc_element_for(prop):
    """oai_dc element a property maps to, None when it has no Dublin Core equivalent"""
    name = normalize_property(prop)
    if name in DC_ELEMENTS:
        return name
    return DC_TERMS_SYNONYMS.get(name)


def value_to_text(value):
    """Referenced values are rendered by label"""
    if isinstance(value, dict):
        value = value.get('label', value.get('value'))
    if value is None:
        return None
    return str(value)


class DublinCorePlugin(MetadataFormatPlugin):
    """
    Maps entity fields onto the 15 Dublin Core elements.

    A field is mapped through dublin_core.field_map[<entity_type>][<field>]
    (an RDF-style property such as 'dcterms:abstract'), or, without an
    explicit mapping, by its own name. DC terms refinements fold into their
    element (abstract -> description, isPartOf -> relation, ...).
    """
    id = "dublin_core"
    name = "OAI Dublin Core (field mapping)"
    description = "Simple Dublin Core built from the entity fields"
    version = "1.0.0"
    metadata_prefix = "oai_dc"
    schema = OAI_DC_SCHEMA
    metadata_namespace = OAI_DC_NS
    template = "oai_dc.xml.j2"

    def get_metadata_wrapper(self):
        return MetadataWrapper('oai_dc:dc', {
            'xmlns:dc': DC_NS,
            'xmlns:oai_dc': OAI_DC_NS,
            'xmlns:xsi': XSI_NS,
            'xsi:schemaLocation': f"{OAI_DC_NS} {OAI_DC_SCHEMA}",
        })

    def field_map(self, entity_type):
        field_maps = (self.settings.get('dublin_core') or {}).get('field_map') or {}
        return field_maps.get(entity_type) or {}

    def map_fields(self, entity):
        """{dc element: [values]} for one entity"""
        mapping = self.field_map(entity.entity_type)
        elements = {}
        for field_name in (entity.fields or {}):
            element = dc_element_for(mapping.get(field_name, field_name))
            if element is None:
                continue
            for value in entity.field_values(field_name):
                text = value_to_text(value)
                if text is None or text == '':
                    continue
                elements.setdefault(element, []).append(text)
        return elements

    def transform_record(self, entity):
        elements = self.map_fields(entity)
        ordered = [(element, elements[element]) for element in DC_ELEMENTS if element in elements]
        return self.build({'metadata_prefix': self.metadata_prefix, 'elements': ordered})
