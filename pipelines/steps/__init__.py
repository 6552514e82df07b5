# Namespace for pipeline steps
from .persist_submission import CheckRegisteredSender, PersistSubmission  # noqa: F401
from .extract_profile import NormalizeContent, ExtractFields, PersistProfile  # noqa: F401
from .score_profile import ScoreProfile  # noqa: F401
from .verify_linkedin import VerifyLinkedIn  # noqa: F401
from .promote_profile import AutoPromote, meets_policy  # noqa: F401
