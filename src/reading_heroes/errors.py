"""Named error conditions raised by the trainer engine."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from reading_heroes.engine.certificate import EligibilityReport


class TrainerError(Exception):
    """Base class for all engine errors."""

    code = "trainer_error"


class ContentValidationError(TrainerError):
    """Content failed validation (malformed question, skill id mismatch)."""

    code = "validation_failure"


class InsufficientContentError(TrainerError):
    """Too few questions are available to start a skill drill."""

    code = "insufficient_skill_content"

    def __init__(self, skill_id: int, available: int, required: int):
        super().__init__(
            f"skill {skill_id} has {available} question(s), at least {required} required"
        )
        self.skill_id = skill_id
        self.available = available
        self.required = required


class NotEligibleError(TrainerError):
    """Certificate requested before every threshold is met."""

    code = "not_eligible"

    def __init__(self, report: "EligibilityReport"):
        super().__init__("certificate requirements not met: " + ", ".join(report.unmet))
        self.report = report


class AuthMismatchError(TrainerError):
    """Instructor password did not match the stored credential."""

    code = "auth_mismatch"


class CredentialSetupError(TrainerError):
    """Instructor credential is missing or the new password was rejected."""

    code = "credential_setup"


class SessionStateError(TrainerError):
    """Operation is not valid for the current play session state."""

    code = "session_state"


class ProfileRequiredError(TrainerError):
    """A student profile must exist before this operation."""

    code = "profile_required"


class CatalogLoadError(TrainerError):
    """The content catalog could not be loaded. Fatal at startup."""

    code = "catalog_load"
