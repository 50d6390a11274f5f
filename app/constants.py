import os

APP_DIR = os.path.dirname(os.path.abspath(__file__))
CONFIG_DIR = os.environ.get('OAI_CONFIG_DIR', os.path.join(APP_DIR, 'config'))
DB_FILE = os.path.join(CONFIG_DIR, 'oai.db')
CONFIG_FILE = os.path.join(CONFIG_DIR, 'settings.yaml')
ALEMBIC_DIR = os.path.join(APP_DIR, 'migrations')

OAI_DB = os.environ.get('DATABASE_URL', 'sqlite:///' + DB_FILE)

BUILD_VERSION = '20261019_0900'

DEFAULT_SETTINGS = {
    "oai": {
        "repository_name": "OAI-PMH Repository",
        "admin_email": "admin@example.com",
        "path": "/oai/request",
        "expiration": 3600,
        "sets_enabled": True,
        "metadata_map": {
            "oai_dc": "dublin_core",
        },
        "sample_entity_type": "node",
        "cache_strategy": "conservative",
        "rate_limit": None,
        "token_purge_interval": 0,
    },
    "dublin_core": {
        "field_map": {},
    },
}

# OAI-PMH protocol
OAI_PMH_NS = 'http://www.openarchives.org/OAI/2.0/'
OAI_PMH_SCHEMA = 'http://www.openarchives.org/OAI/2.0/OAI-PMH.xsd'
OAI_IDENTIFIER_NS = 'http://www.openarchives.org/OAI/2.0/oai-identifier'
OAI_IDENTIFIER_SCHEMA = 'http://www.openarchives.org/OAI/2.0/oai-identifier.xsd'
XSI_NS = 'http://www.w3.org/2001/XMLSchema-instance'

OAI_DATE_FORMAT = '%Y-%m-%dT%H:%M:%SZ'
OAI_DAY_FORMAT = '%Y-%m-%d'
OAI_GRANULARITY = 'YYYY-MM-DDThh:mm:ssZ'
PROTOCOL_VERSION = '2.0'

VERB_IDENTIFY = 'Identify'
VERB_GET_RECORD = 'GetRecord'
VERB_LIST_IDENTIFIERS = 'ListIdentifiers'
VERB_LIST_METADATA_FORMATS = 'ListMetadataFormats'
VERB_LIST_RECORDS = 'ListRecords'
VERB_LIST_SETS = 'ListSets'

OAI_VERBS = [
    VERB_IDENTIFY,
    VERB_GET_RECORD,
    VERB_LIST_IDENTIFIERS,
    VERB_LIST_METADATA_FORMATS,
    VERB_LIST_RECORDS,
    VERB_LIST_SETS,
]

# Arguments each verb accepts besides 'verb'
VERB_ARGUMENTS = {
    VERB_IDENTIFY: set(),
    VERB_GET_RECORD: {'identifier', 'metadataPrefix'},
    VERB_LIST_IDENTIFIERS: {'metadataPrefix', 'set', 'from', 'until', 'resumptionToken'},
    VERB_LIST_METADATA_FORMATS: {'identifier'},
    VERB_LIST_RECORDS: {'metadataPrefix', 'set', 'from', 'until', 'resumptionToken'},
    VERB_LIST_SETS: {'resumptionToken'},
}

# Dublin Core
DC_NS = 'http://purl.org/dc/elements/1.1/'
OAI_DC_NS = 'http://www.openarchives.org/OAI/2.0/oai_dc/'
OAI_DC_SCHEMA = 'http://www.openarchives.org/OAI/2.0/oai_dc.xsd'

DC_ELEMENTS = [
    'contributor',
    'coverage',
    'creator',
    'date',
    'description',
    'format',
    'identifier',
    'language',
    'publisher',
    'relation',
    'rights',
    'source',
    'subject',
    'title',
    'type',
]

# http://purl.org/dc/terms refinements and their oai_dc element
DC_TERMS_SYNONYMS = {
    'abstract': 'description',
    'accessRights': 'rights',
    'alternative': 'title',
    'available': 'date',
    'bibliographicCitation': 'identifier',
    'conformsTo': 'relation',
    'created': 'date',
    'dateAccepted': 'date',
    'dateCopyrighted': 'date',
    'dateSubmitted': 'date',
    'extent': 'format',
    'hasFormat': 'format',
    'hasPart': 'relation',
    'hasVersion': 'relation',
    'isFormatOf': 'relation',
    'isPartOf': 'relation',
    'isReferencedBy': 'relation',
    'isReplacedBy': 'relation',
    'isRequiredBy': 'relation',
    'isVersionOf': 'relation',
    'issued': 'date',
    'license': 'rights',
    'medium': 'format',
    'modified': 'date',
    'references': 'relation',
    'replaces': 'relation',
    'requires': 'relation',
    'spatial': 'coverage',
    'tableOfContents': 'description',
    'temporal': 'coverage',
    'valid': 'date',
}

CACHE_OP_INSERT = 'insert'
CACHE_OP_UPDATE = 'update'
CACHE_OP_DELETE = 'delete'
