import re

from plugin_system import MetadataFormatPlugin
from plugins.dublin_core import value_to_text

_INVALID_NAME_CHARS = re.compile(r'[^A-Za-z0-9_.-]')


def element_name(field_name):
    """Turn a field name into a legal XML element name"""
    name = _INVALID_NAME_CHARS.sub('_', str(field_name))
    if not name or not (name[0].isalpha() or name[0] == '_') or name.lower().startswith('xml'):
        name = f"_{name}"
    return name


class RawFieldsPlugin(MetadataFormatPlugin):
    """Every field as-is. Use for testing only."""
    id = "raw_fields"
    name = "Raw Fields"
    description = "Dumps every entity field, one element per value"
    version = "1.0.0"
    metadata_prefix = "oai_raw"
    template = "oai_raw.xml.j2"

    def transform_record(self, entity):
        elements = []
        for field_name in sorted(entity.fields or {}):
            values = [value_to_text(v) for v in entity.field_values(field_name)]
            values = [v for v in values if v not in (None, '')]
            if values:
                elements.append((element_name(field_name), values))
        return self.build({'metadata_prefix': self.metadata_prefix, 'elements': elements})
