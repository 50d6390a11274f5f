"""
OAI-PMH protocol engine.

OaiEngine.handle() turns one OaiRequest into one OAI-PMH response document.
Every collaborator (cache repositories, token store, entity store, plugin
registry, settings, clock) is passed in at construction.
"""

from datetime import datetime, timezone

import structlog

import metrics
from constants import (
    VERB_ARGUMENTS,
    VERB_IDENTIFY,
    VERB_GET_RECORD,
    VERB_LIST_IDENTIFIERS,
    VERB_LIST_METADATA_FORMATS,
    VERB_LIST_RECORDS,
    VERB_LIST_SETS,
)
from services.identifiers import build_identifier, parse_identifier
from services.oai_errors import OaiError, OaiErrorCode, Outcome
from services.oai_xml import OaiResponseBuilder
from services.record_selection import RecordSelector
from utils import strip_port, ensure_utc, is_xml_compatible

logger = structlog.get_logger('oai.engine')

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class OaiRequest:
    """
    One harvester request.

    args maps every argument name to the list of values it was given, so
    repeated arguments can be detected.
    """

    def __init__(self, args, host, base_url):
        self.args = {name: list(values) for name, values in (args or {}).items()}
        self.host = host
        self.base_url = base_url

    @classmethod
    def from_flask(cls, flask_request):
        return cls(
            args=flask_request.values.to_dict(flat=False),
            host=flask_request.host,
            base_url=flask_request.base_url,
        )


class OaiEngine:
    def __init__(self, records, sets, tokens, entities, registry, oai_settings, clock):
        self.records = records
        self.sets = sets
        self.tokens = tokens
        self.entities = entities
        self.registry = registry
        self.oai_settings = oai_settings
        self.clock = clock
        self.selector = RecordSelector(records, sets, tokens, registry, oai_settings, clock)
        self.handlers = {
            VERB_IDENTIFY: self.identify,
            VERB_GET_RECORD: self.get_record,
            VERB_LIST_IDENTIFIERS: self.list_identifiers,
            VERB_LIST_METADATA_FORMATS: self.list_metadata_formats,
            VERB_LIST_RECORDS: self.list_records,
            VERB_LIST_SETS: self.list_sets,
        }

    @property
    def metadata_map(self):
        return self.oai_settings.get('metadata_map') or {}

    def handle(self, oai_request):
        """OaiResponseBuilder for oai_request, serialize it with to_bytes()"""
        response = OaiResponseBuilder(self.clock(), oai_request.base_url)

        verb_values = oai_request.args.get('verb') or []
        verb = verb_values[0] if len(verb_values) == 1 else None
        if verb not in self.handlers:
            logger.info("illegal verb", verb=verb_values)
            return self._fail(response, None, [OaiError(OaiErrorCode.BAD_VERB)])

        return metrics.track_verb(verb)(self._dispatch)(verb, oai_request, response)

    def _dispatch(self, verb, oai_request, response):
        arguments = self.check_arguments(verb, oai_request.args)
        if not arguments.ok:
            return self._fail(response, verb, arguments.errors)

        response.echo_request(verb, arguments.value)
        outcome = self.handlers[verb](oai_request, arguments.value, response)
        if not outcome.ok:
            return self._fail(response, verb, outcome.errors)

        logger.debug("verb handled", verb=verb, arguments=arguments.value)
        return response

    @staticmethod
    def _fail(response, verb, errors):
        logger.info("request rejected", verb=verb, errors=[error.code for error in errors])
        metrics.record_errors(errors)
        # Drop any partial verb output, keep responseDate and request
        for child in list(response.root)[2:]:
            response.root.remove(child)
        response.add_errors(errors)
        return response

    @staticmethod
    def check_arguments(verb, args):
        """Outcome with {name: value}: no repeats and only arguments verb accepts"""
        allowed = VERB_ARGUMENTS[verb]
        errors = []
        arguments = {}
        for name in sorted(args):
            if name == 'verb':
                continue
            values = args[name]
            if not is_xml_compatible(name) or not all(is_xml_compatible(value) for value in values):
                # Neither may be echoed back, the message leaves them out
                errors.append(OaiError(OaiErrorCode.BAD_ARGUMENT, "Argument contains characters not allowed in XML."))
            elif name not in allowed:
                errors.append(OaiError(OaiErrorCode.BAD_ARGUMENT, f"Illegal argument {name} for verb {verb}."))
            elif len(values) != 1:
                errors.append(OaiError(OaiErrorCode.BAD_ARGUMENT, f"Argument {name} is repeated."))
            else:
                arguments[name] = values[0]
        if errors:
            return Outcome.failure(*errors)
        return Outcome.success(arguments)

    def load_exposed_entity(self, identifier, host):
        """
        Outcome with the entity behind identifier, only when the record is in
        the cache, belongs to a set and can still be loaded and viewed.
        """
        key = parse_identifier(identifier, host)
        if key is None:
            return Outcome.error(OaiErrorCode.ID_DOES_NOT_EXIST)

        record = self.records.get_exposed(key.entity_type, key.entity_id)
        if record is None:
            return Outcome.error(OaiErrorCode.ID_DOES_NOT_EXIST)

        entity = self.entities.load(key.entity_type, key.entity_id)
        if entity is None or not self.entities.can_view(entity):
            return Outcome.error(OaiErrorCode.ID_DOES_NOT_EXIST)
        return Outcome.success((record, entity))

    def set_specs_for(self, entity_type, entity_id, sets=None):
        if not self.oai_settings.get('sets_enabled', True):
            return []
        if sets is None:
            return self.records.sets_for_record(entity_type, entity_id)
        return sets

    # Verbs

    def identify(self, oai_request, arguments, response):
        host = strip_port(oai_request.host)
        earliest = self.records.earliest_created()
        sample = build_identifier(host, self.oai_settings.get('sample_entity_type') or 'node', 1)
        response.add_identify(
            repository_name=self.oai_settings.get('repository_name'),
            base_url=oai_request.base_url,
            admin_email=self.oai_settings.get('admin_email'),
            earliest_datestamp=earliest if earliest is not None else EPOCH,
            repository_identifier=host,
            sample_identifier=sample,
        )
        return Outcome.success()

    def list_metadata_formats(self, oai_request, arguments, response):
        if 'identifier' in arguments:
            loaded = self.load_exposed_entity(arguments['identifier'], oai_request.host)
            if not loaded.ok:
                return loaded

        descriptors = self.registry.formats(self.metadata_map)
        if not descriptors:
            return Outcome.error(OaiErrorCode.NO_METADATA_FORMATS)
        response.add_metadata_formats(descriptors)
        return Outcome.success()

    def list_sets(self, oai_request, arguments, response):
        if 'resumptionToken' in arguments:
            return Outcome.error(OaiErrorCode.BAD_RESUMPTION_TOKEN)
        if not self.selector.sets_supported():
            return Outcome.error(OaiErrorCode.NO_SET_HIERARCHY)
        response.add_sets(self.sets.get_all())
        return Outcome.success()

    def get_record(self, oai_request, arguments, response):
        errors = []
        identifier = arguments.get('identifier')
        metadata_prefix = arguments.get('metadataPrefix')
        if not identifier:
            errors.append(OaiError(OaiErrorCode.BAD_ARGUMENT, "Missing required argument identifier."))
        if not metadata_prefix:
            errors.append(OaiError(OaiErrorCode.BAD_ARGUMENT, "Missing required argument metadataPrefix."))
        if errors:
            return Outcome.failure(*errors)

        loaded = self.load_exposed_entity(identifier, oai_request.host)
        if not loaded.ok:
            errors.extend(loaded.errors)
        plugin = self.registry.for_prefix(metadata_prefix, self.metadata_map)
        if plugin is None:
            errors.append(OaiError(OaiErrorCode.CANNOT_DISSEMINATE_FORMAT))
        if errors:
            return Outcome.failure(*errors)

        record, entity = loaded.value
        container = response.verb_element(VERB_GET_RECORD)
        response.add_record(
            container,
            identifier,
            self._datestamp(record, entity),
            self.set_specs_for(record.entity_type, record.entity_id),
            plugin.render_metadata(entity),
        )
        return Outcome.success()

    def list_identifiers(self, oai_request, arguments, response):
        return self._list(VERB_LIST_IDENTIFIERS, oai_request, arguments, response, with_metadata=False)

    def list_records(self, oai_request, arguments, response):
        return self._list(VERB_LIST_RECORDS, oai_request, arguments, response, with_metadata=True)

    def _list(self, verb, oai_request, arguments, response, with_metadata):
        resolved = self.selector.resolve_params(verb, arguments)
        if not resolved.ok:
            return resolved
        params = resolved.value

        plugin = self.registry.for_prefix(params.metadata_prefix, self.metadata_map)
        if plugin is None:
            # The mapping changed while a harvest was running
            return Outcome.error(OaiErrorCode.CANNOT_DISSEMINATE_FORMAT)

        selection = self.selector.select(params)
        if not selection.ok:
            return selection
        page = selection.value

        host = strip_port(oai_request.host)
        container = response.verb_element(verb)
        for selected in page.records:
            identifier = build_identifier(host, selected.entity_type, selected.entity_id)
            set_specs = self.set_specs_for(selected.entity_type, selected.entity_id, selected.sets)
            if not with_metadata:
                response.add_header(container, identifier, selected.changed, set_specs)
                continue

            entity = self.entities.load(selected.entity_type, selected.entity_id)
            if entity is None or not self.entities.can_view(entity):
                logger.warning("skipping stale cache row", entity_type=selected.entity_type,
                               entity_id=selected.entity_id)
                continue
            response.add_record(
                container,
                identifier,
                selected.changed,
                set_specs,
                plugin.render_metadata(entity),
            )

        token = self.selector.issue_token(params, page)
        if token is not None:
            metrics.oai_resumption_tokens_issued_total.inc()
            response.add_resumption_token(
                container,
                token.token_id,
                page.complete_list_size,
                page.cursor,
                ensure_utc(token.expires),
            )
        return Outcome.success()

    @staticmethod
    def _datestamp(record, entity):
        if record.changed is not None:
            return record.changed
        return getattr(entity, 'changed', None) or record.created
