from .llm import LLMClientPort
from .repos import RecordStorePort
from .services import (
    DeliverabilityPort,
    DeliverabilityVerdict,
    Employment,
    ExtractionBackendPort,
    LookupProfile,
    ProfileLookupPort,
)
from .source import MailSelector, MailSourcePort

__all__ = [
    "LLMClientPort",
    "RecordStorePort",
    "DeliverabilityPort",
    "DeliverabilityVerdict",
    "Employment",
    "ExtractionBackendPort",
    "LookupProfile",
    "ProfileLookupPort",
    "MailSelector",
    "MailSourcePort",
]
