"""Text-to-speech endpoint access.

This package contains the speech endpoint client and the request pacer used
by the pipeline fetch stage.
"""

from .client import SpeechFetchClient, encode_uri_component
from .pacing import RequestPacer

__all__ = ["RequestPacer", "SpeechFetchClient", "encode_uri_component"]
