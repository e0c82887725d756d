"""Exception hierarchy shared by the client, the schema and the decoder."""

from __future__ import annotations


class DialogflowError(Exception):
    pass


class ConfigurationError(DialogflowError):
    pass


# ─── Schema (configuration time) ───────────────────────


class SchemaError(ConfigurationError):
    pass


class DuplicateIntentError(SchemaError):
    def __init__(self, tag: str, first: str, second: str) -> None:
        self.tag = tag
        self.first = first
        self.second = second
        super().__init__(
            f"Intent variants {first!r} and {second!r} both normalize to {tag!r}"
        )


class UnsupportedFieldType(SchemaError):
    def __init__(self, variant: str, field: str, annotation: object) -> None:
        self.variant = variant
        self.field = field
        self.annotation = annotation
        super().__init__(
            f"Field {variant}.{field} has unsupported type {annotation!r}"
        )


# ─── Transport ─────────────────────────────────────────


class TransportError(DialogflowError):
    pass


class AuthenticationError(TransportError):
    pass


class ServiceError(TransportError):
    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"Dialogflow returned HTTP {status_code}: {message}")


class ResponseFormatError(TransportError):
    pass


# ─── Decoding ──────────────────────────────────────────


class DecodeError(DialogflowError):
    pass


class UnknownIntent(DecodeError):
    """The detected intent name matches none of the declared variants.

    ``raw_name`` is empty when the service did not match any intent at all;
    ``no_match`` tells the two situations apart.
    """

    def __init__(self, raw_name: str) -> None:
        self.raw_name = raw_name
        if raw_name:
            super().__init__(f"Unknown intent {raw_name!r}")
        else:
            super().__init__("No intent matched the utterance")

    @property
    def no_match(self) -> bool:
        return not self.raw_name


class MissingField(DecodeError):
    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"Missing required parameter {field!r}")


class TypeMismatch(DecodeError):
    def __init__(self, field: str, expected: str, found: str) -> None:
        self.field = field
        self.expected = expected
        self.found = found
        super().__init__(
            f"Parameter {field!r} expected {expected}, found {found}"
        )


class InvalidParameters(DecodeError):
    def __init__(self, intent: str, details: str) -> None:
        self.intent = intent
        self.details = details
        super().__init__(f"Parameters rejected by intent {intent!r}: {details}")
