from .client import DetectIntentOptions, DialogflowClient, create_client

__all__ = ["DetectIntentOptions", "DialogflowClient", "create_client"]
