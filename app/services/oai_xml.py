"""
OAI-PMH response tree.

Builds the OAI-PMH envelope with lxml and serializes it. Every element is
created in the OAI-PMH namespace; metadata fragments rendered by plugins are
parsed and grafted under <metadata>.
"""

from lxml import etree

from constants import (
    OAI_PMH_NS,
    OAI_PMH_SCHEMA,
    OAI_IDENTIFIER_NS,
    OAI_IDENTIFIER_SCHEMA,
    XSI_NS,
    PROTOCOL_VERSION,
    OAI_GRANULARITY,
)
from exceptions import MetadataRenderException
from utils import format_oai_date


def _q(tag, ns=OAI_PMH_NS):
    return '{' + ns + '}' + tag


class OaiResponseBuilder:
    """One OAI-PMH response document"""

    def __init__(self, response_date, base_url):
        self.root = etree.Element(
            _q('OAI-PMH'),
            nsmap={None: OAI_PMH_NS, 'xsi': XSI_NS},
            attrib={_q('schemaLocation', XSI_NS): f"{OAI_PMH_NS} {OAI_PMH_SCHEMA}"},
        )
        self.add_text(self.root, 'responseDate', format_oai_date(response_date))
        self.request = self.add_text(self.root, 'request', base_url)

    @staticmethod
    def add_text(parent, tag, text=None, **attrib):
        element = etree.SubElement(parent, _q(tag), attrib={k: str(v) for k, v in attrib.items()})
        if text is not None:
            element.text = str(text)
        return element

    def echo_request(self, verb, arguments):
        """Copy the verb and accepted arguments onto <request>"""
        self.request.set('verb', verb)
        for name in sorted(arguments):
            self.request.set(name, arguments[name])

    def add_errors(self, errors):
        # <request> carries no attributes when the request was rejected
        for name in list(self.request.attrib):
            del self.request.attrib[name]
        for error in errors:
            self.add_text(self.root, 'error', error.message, code=error.code)

    def verb_element(self, verb):
        return etree.SubElement(self.root, _q(verb))

    def add_identify(self, repository_name, base_url, admin_email, earliest_datestamp, repository_identifier,
                     sample_identifier):
        identify = self.verb_element('Identify')
        self.add_text(identify, 'repositoryName', repository_name)
        self.add_text(identify, 'baseURL', base_url)
        self.add_text(identify, 'protocolVersion', PROTOCOL_VERSION)
        self.add_text(identify, 'adminEmail', admin_email)
        self.add_text(identify, 'earliestDatestamp', format_oai_date(earliest_datestamp))
        self.add_text(identify, 'deletedRecord', 'no')
        self.add_text(identify, 'granularity', OAI_GRANULARITY)

        description = self.add_text(identify, 'description')
        oai_identifier = etree.SubElement(
            description,
            _q('oai-identifier', OAI_IDENTIFIER_NS),
            nsmap={None: OAI_IDENTIFIER_NS},
            attrib={_q('schemaLocation', XSI_NS): f"{OAI_IDENTIFIER_NS} {OAI_IDENTIFIER_SCHEMA}"},
        )
        for tag, text in (
            ('scheme', 'oai'),
            ('repositoryIdentifier', repository_identifier),
            ('delimiter', ':'),
            ('sampleIdentifier', sample_identifier),
        ):
            etree.SubElement(oai_identifier, _q(tag, OAI_IDENTIFIER_NS)).text = text
        return identify

    def add_metadata_formats(self, descriptors):
        list_formats = self.verb_element('ListMetadataFormats')
        for descriptor in descriptors:
            metadata_format = self.add_text(list_formats, 'metadataFormat')
            self.add_text(metadata_format, 'metadataPrefix', descriptor.metadata_prefix)
            self.add_text(metadata_format, 'schema', descriptor.schema)
            self.add_text(metadata_format, 'metadataNamespace', descriptor.metadata_namespace)
        return list_formats

    def add_sets(self, sets):
        list_sets = self.verb_element('ListSets')
        for oai_set in sets:
            set_xml = self.add_text(list_sets, 'set')
            self.add_text(set_xml, 'setSpec', oai_set.set_id)
            self.add_text(set_xml, 'setName', oai_set.label)
        return list_sets

    def add_header(self, parent, identifier, datestamp, set_specs=()):
        header = self.add_text(parent, 'header')
        self.add_text(header, 'identifier', identifier)
        if datestamp is not None:
            self.add_text(header, 'datestamp', format_oai_date(datestamp))
        for set_spec in set_specs:
            self.add_text(header, 'setSpec', set_spec)
        return header

    def add_record(self, parent, identifier, datestamp, set_specs, metadata_xml):
        record = self.add_text(parent, 'record')
        self.add_header(record, identifier, datestamp, set_specs)
        metadata = self.add_text(record, 'metadata')
        metadata.append(self.parse_fragment(metadata_xml))
        return record

    @staticmethod
    def parse_fragment(metadata_xml):
        """Metadata rendered by a plugin as an element, it must be well-formed"""
        try:
            return etree.fromstring(metadata_xml.encode('utf-8'))
        except etree.XMLSyntaxError as e:
            raise MetadataRenderException(f"Rendered metadata is not well-formed XML: {e}")

    def add_resumption_token(self, parent, token_id, complete_list_size, cursor, expiration_date):
        return self.add_text(
            parent,
            'resumptionToken',
            token_id,
            completeListSize=complete_list_size,
            cursor=cursor,
            expirationDate=format_oai_date(expiration_date),
        )

    def to_bytes(self):
        return etree.tostring(
            self.root,
            xml_declaration=True,
            pretty_print=True,
            encoding='utf-8',
        )
