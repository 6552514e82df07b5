from .record import StoredRecord, new_id, utc_now
from .submission import RawSubmission
from .extraction_result import CONTACT_FIELDS, ExtractionResult
from .extracted_profile import ExtractedProfile, ExtractionStatus, compute_extraction_status
from .verification_result import Deliverability, VerificationResult
from .linkedin_verification import LinkedInStatus, LinkedInVerification
from .verified_profile import VerifiedProfile
from .validation_failure import FailureStage, ValidationFailure

__all__ = [
    "StoredRecord",
    "new_id",
    "utc_now",
    "RawSubmission",
    "CONTACT_FIELDS",
    "ExtractionResult",
    "ExtractedProfile",
    "ExtractionStatus",
    "compute_extraction_status",
    "Deliverability",
    "VerificationResult",
    "LinkedInStatus",
    "LinkedInVerification",
    "VerifiedProfile",
    "FailureStage",
    "ValidationFailure",
]
