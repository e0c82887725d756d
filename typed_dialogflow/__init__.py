"""An easy-to-use typed Google Dialogflow client.

Declare the intents your agent knows as pydantic models, then let the client
turn each utterance into one of them:

    from typed_dialogflow import IntentModel, IntentSchema, create_client

    class Hello(IntentModel):
        pass

    class Weather(IntentModel):
        location: str

    intents = IntentSchema(Hello, Weather)
    client = await create_client()
    intent = await client.detect_intent("What's the weather in Antarctica?", intents)
"""

from typed_dialogflow.core.errors import (
    AuthenticationError,
    ConfigurationError,
    DecodeError,
    DialogflowError,
    DuplicateIntentError,
    InvalidParameters,
    MissingField,
    ResponseFormatError,
    SchemaError,
    ServiceError,
    TransportError,
    TypeMismatch,
    UnknownIntent,
    UnsupportedFieldType,
)
from typed_dialogflow.schemas.detect_intent import RawDetectionResult
from typed_dialogflow.services.dialogflow import (
    DetectIntentOptions,
    DialogflowClient,
    create_client,
)
from typed_dialogflow.services.intent import (
    IntentModel,
    IntentSchema,
    decode,
    to_snake_case,
)

__all__ = [
    "AuthenticationError",
    "ConfigurationError",
    "DecodeError",
    "DetectIntentOptions",
    "DialogflowClient",
    "DialogflowError",
    "DuplicateIntentError",
    "IntentModel",
    "IntentSchema",
    "InvalidParameters",
    "MissingField",
    "RawDetectionResult",
    "ResponseFormatError",
    "SchemaError",
    "ServiceError",
    "TransportError",
    "TypeMismatch",
    "UnknownIntent",
    "UnsupportedFieldType",
    "create_client",
    "decode",
    "to_snake_case",
]
