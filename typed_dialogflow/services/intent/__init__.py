from .contracts import IntentModel, IntentSchema, to_snake_case
from .decoder import decode

__all__ = ["IntentModel", "IntentSchema", "decode", "to_snake_case"]
