"""
Record selection for ListIdentifiers and ListRecords.

Resolves the effective parameters (from a resumption token or from the
request), counts the matching records once per harvest, cuts one page out
of the selection and issues the token for the next page once that page
has been rendered.
"""

from collections import namedtuple
from datetime import timedelta

import structlog

from services.oai_errors import OaiError, OaiErrorCode, Outcome
from utils import parse_oai_date, ensure_utc

logger = structlog.get_logger('oai.selection')

# Largest id a 64-bit INTEGER column holds
MAX_TOKEN_ID = 2 ** 63 - 1

SelectionParams = namedtuple(
    'SelectionParams',
    ['verb', 'metadata_prefix', 'set_id', 'from_date', 'until_date', 'cursor', 'complete_list_size'],
)

# next_cursor is None on the last page
Page = namedtuple('Page', ['records', 'cursor', 'complete_list_size', 'next_cursor'])


class RecordSelector:
    def __init__(self, records, sets, tokens, registry, oai_settings, clock):
        self.records = records
        self.sets = sets
        self.tokens = tokens
        self.registry = registry
        self.oai_settings = oai_settings
        self.clock = clock

    def sets_supported(self):
        return bool(self.oai_settings.get('sets_enabled', True)) and self.sets.count() > 0

    def resolve_params(self, verb, args):
        """Outcome carrying SelectionParams for verb and the request arguments"""
        if 'resumptionToken' in args:
            return self._params_from_token(verb, args['resumptionToken'])
        return self._params_from_request(verb, args)

    def _params_from_token(self, verb, raw_token):
        try:
            token_id = int(raw_token)
        except (TypeError, ValueError):
            return Outcome.error(OaiErrorCode.BAD_RESUMPTION_TOKEN)
        if not 1 <= token_id <= MAX_TOKEN_ID:
            return Outcome.error(OaiErrorCode.BAD_RESUMPTION_TOKEN)

        token = self.tokens.get(token_id)
        if token is None:
            return Outcome.error(OaiErrorCode.BAD_RESUMPTION_TOKEN)

        if ensure_utc(token.expires) <= self.clock():
            logger.info("resumption token expired", token_id=token_id)
            self.tokens.delete(token_id)
            return Outcome.error(OaiErrorCode.BAD_RESUMPTION_TOKEN)

        if token.verb != verb:
            logger.info("resumption token presented for another verb", token_id=token_id,
                        issued_for=token.verb, verb=verb)
            self.tokens.delete(token_id)
            return Outcome.error(OaiErrorCode.BAD_RESUMPTION_TOKEN)

        return Outcome.success(SelectionParams(
            verb=verb,
            metadata_prefix=token.metadata_prefix,
            set_id=token.set_id,
            from_date=ensure_utc(token.from_date),
            until_date=ensure_utc(token.until_date),
            cursor=token.cursor,
            complete_list_size=token.complete_list_size,
        ))

    def _params_from_request(self, verb, args):
        errors = []

        metadata_prefix = args.get('metadataPrefix')
        if not metadata_prefix:
            errors.append(OaiError(OaiErrorCode.BAD_ARGUMENT, "Missing required argument metadataPrefix."))
        elif self.registry.for_prefix(metadata_prefix, self.oai_settings.get('metadata_map')) is None:
            errors.append(OaiError(OaiErrorCode.CANNOT_DISSEMINATE_FORMAT))

        set_id = args.get('set')
        if set_id and not self.sets_supported():
            errors.append(OaiError(OaiErrorCode.NO_SET_HIERARCHY))

        dates = self._parse_dates(args.get('from'), args.get('until'))
        if not dates.ok:
            errors.extend(dates.errors)

        if errors:
            return Outcome.failure(*errors)

        from_date, until_date = dates.value
        return Outcome.success(SelectionParams(
            verb=verb,
            metadata_prefix=metadata_prefix,
            set_id=set_id or None,
            from_date=from_date,
            until_date=until_date,
            cursor=0,
            complete_list_size=None,
        ))

    @staticmethod
    def _parse_dates(raw_from, raw_until):
        from_date, from_granularity = parse_oai_date(raw_from)
        until_date, until_granularity = parse_oai_date(raw_until, end_of_day=True)

        errors = []
        if raw_from and from_date is None:
            errors.append(OaiError(OaiErrorCode.BAD_ARGUMENT, f"Illegal date in from argument: {raw_from}"))
        if raw_until and until_date is None:
            errors.append(OaiError(OaiErrorCode.BAD_ARGUMENT, f"Illegal date in until argument: {raw_until}"))
        if errors:
            return Outcome.failure(*errors)

        if from_granularity and until_granularity and from_granularity != until_granularity:
            return Outcome.error(OaiErrorCode.BAD_ARGUMENT,
                                 "The from and until arguments have different granularities.")
        if from_date and until_date and from_date > until_date:
            return Outcome.error(OaiErrorCode.BAD_ARGUMENT, "The from argument is later than the until argument.")
        return Outcome.success((from_date, until_date))

    def page_size(self):
        return self.sets.min_pager_limit()

    def select(self, params):
        """Outcome carrying the Page for params, noRecordsMatch when it is empty"""
        page_size = self.page_size()

        complete_list_size = params.complete_list_size
        if complete_list_size is None:
            complete_list_size = self.records.count_matching(params.set_id, params.from_date, params.until_date)

        records = []
        if complete_list_size > 0:
            records = self.records.select_page(
                params.set_id,
                params.from_date,
                params.until_date,
                offset=params.cursor,
                limit=page_size,
            )
        if not records:
            return Outcome.error(OaiErrorCode.NO_RECORDS_MATCH)

        next_cursor = None
        if page_size > 0 and complete_list_size > params.cursor + page_size:
            next_cursor = params.cursor + page_size
        return Outcome.success(Page(records, params.cursor, complete_list_size, next_cursor))

    def issue_token(self, params, page):
        """Store the ResumptionToken for the page after page, None on the last page"""
        if page.next_cursor is None:
            return None

        now = self.clock()
        token = self.tokens.issue(
            verb=params.verb,
            metadata_prefix=params.metadata_prefix,
            cursor=page.next_cursor,
            complete_list_size=page.complete_list_size,
            expires=now + timedelta(seconds=int(self.oai_settings.get('expiration', 3600))),
            set_id=params.set_id,
            from_date=params.from_date,
            until_date=params.until_date,
        )
        logger.info("resumption token issued", token_id=token.token_id, verb=params.verb,
                    cursor=token.cursor, complete_list_size=page.complete_list_size)
        return token
