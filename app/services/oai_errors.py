"""
OAI-PMH protocol errors and the result type validators return.

Protocol errors are values, not exceptions: every validation step returns
an Outcome that either carries a value or the list of errors to render.
"""


class OaiErrorCode:
    BAD_VERB = "badVerb"
    BAD_ARGUMENT = "badArgument"
    ID_DOES_NOT_EXIST = "idDoesNotExist"
    CANNOT_DISSEMINATE_FORMAT = "cannotDisseminateFormat"
    NO_SET_HIERARCHY = "noSetHierarchy"
    BAD_RESUMPTION_TOKEN = "badResumptionToken"
    NO_RECORDS_MATCH = "noRecordsMatch"
    NO_METADATA_FORMATS = "noMetadataFormats"


DEFAULT_MESSAGES = {
    OaiErrorCode.BAD_VERB: (
        "Value of the verb argument is not a legal OAI-PMH verb, "
        "the verb argument is missing, or the verb argument is repeated."
    ),
    OaiErrorCode.BAD_ARGUMENT: (
        "The request includes illegal arguments, is missing required arguments, "
        "includes a repeated argument, or values for arguments have an illegal syntax."
    ),
    OaiErrorCode.ID_DOES_NOT_EXIST: "The value of the identifier argument is unknown or illegal in this repository.",
    OaiErrorCode.CANNOT_DISSEMINATE_FORMAT: (
        "The metadata format identified by the value given for the metadataPrefix argument "
        "is not supported by the item or by the repository."
    ),
    OaiErrorCode.NO_SET_HIERARCHY: "The repository does not support sets.",
    OaiErrorCode.BAD_RESUMPTION_TOKEN: "The value of the resumptionToken argument is invalid or expired.",
    OaiErrorCode.NO_RECORDS_MATCH: (
        "The combination of the values of the from, until, set and metadataPrefix arguments "
        "results in an empty list."
    ),
    OaiErrorCode.NO_METADATA_FORMATS: "There are no metadata formats available for the specified item.",
}


class OaiError:
    __slots__ = ("code", "message")

    def __init__(self, code, message=None):
        self.code = code
        self.message = message or DEFAULT_MESSAGES.get(code, "")

    def __eq__(self, other):
        return isinstance(other, OaiError) and (self.code, self.message) == (other.code, other.message)

    def __repr__(self):
        return f"OaiError({self.code!r}, {self.message!r})"


class Outcome:
    """Either a value (ok) or a non-empty list of OaiError"""
    __slots__ = ("value", "errors")

    def __init__(self, value=None, errors=None):
        self.value = value
        self.errors = list(errors or [])

    @property
    def ok(self):
        return not self.errors

    @classmethod
    def success(cls, value=None):
        return cls(value=value)

    @classmethod
    def failure(cls, *errors):
        return cls(errors=errors)

    @classmethod
    def error(cls, code, message=None):
        return cls(errors=[OaiError(code, message)])

    def __repr__(self):
        if self.ok:
            return f"Outcome.success({self.value!r})"
        return f"Outcome.failure({', '.join(repr(e) for e in self.errors)})"
