"""Certificate eligibility, one-time issuance and verification."""

import secrets
from datetime import datetime

import structlog
from pydantic import BaseModel

from reading_heroes.config import CertificatePolicy
from reading_heroes.errors import NotEligibleError, ProfileRequiredError
from reading_heroes.models.progress import Certificate
from reading_heroes.storage.repository import StudentRepository

logger = structlog.get_logger()

VERIFICATION_PREFIX = "RH-"
VERIFICATION_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
VERIFICATION_LENGTH = 8

GRADE_BANDS: tuple[tuple[int, str], ...] = ((90, "A"), (80, "B"), (70, "C"), (60, "D"))


def grade_for(percent: int) -> str:
    """Letter grade for an average percentage."""
    for floor, grade in GRADE_BANDS:
        if percent >= floor:
            return grade
    return "F"


def generate_verification_code() -> str:
    return VERIFICATION_PREFIX + "".join(
        secrets.choice(VERIFICATION_ALPHABET) for _ in range(VERIFICATION_LENGTH)
    )


class EligibilityReport(BaseModel):
    """Itemized certificate requirements, for rendering a checklist."""

    eligible: bool
    all_mastered: bool
    enough_texts: bool
    good_average: bool
    texts_completed: int
    min_texts: int
    average_percent: int
    min_average: int
    mastery_threshold: int
    unmastered_skills: list[int]

    @property
    def unmet(self) -> list[str]:
        conditions = {
            "all_mastered": self.all_mastered,
            "enough_texts": self.enough_texts,
            "good_average": self.good_average,
        }
        return [name for name, met in conditions.items() if not met]


class VerificationResult(BaseModel):
    valid: bool
    certificate: Certificate | None = None


class CertificateAuthority:
    """Decides eligibility and issues the single completion certificate.

    Args:
        repo: Student state repository.
        policy: Thresholds (minimum passages, average and per-skill mastery).
    """

    def __init__(self, repo: StudentRepository, policy: CertificatePolicy | None = None):
        self.repo = repo
        self.policy = policy or CertificatePolicy()

    def check_eligibility(self) -> EligibilityReport:
        progress = self.repo.get_progress()
        skills = self.repo.get_skills()

        # Skills never attempted have no record and impose no penalty
        unmastered = sorted(
            sid for sid, record in skills.items() if record.mastery < self.policy.mastery_threshold
        )
        average = progress.average_percent
        all_mastered = not unmastered
        enough_texts = progress.texts_completed >= self.policy.min_texts
        good_average = average >= self.policy.min_avg_percent

        return EligibilityReport(
            eligible=all_mastered and enough_texts and good_average,
            all_mastered=all_mastered,
            enough_texts=enough_texts,
            good_average=good_average,
            texts_completed=progress.texts_completed,
            min_texts=self.policy.min_texts,
            average_percent=average,
            min_average=self.policy.min_avg_percent,
            mastery_threshold=self.policy.mastery_threshold,
            unmastered_skills=unmastered,
        )

    @property
    def certificate(self) -> Certificate | None:
        return self.repo.get_certificate()

    def issue(self) -> Certificate:
        """Return the stored certificate, issuing it first if eligible.

        Raises:
            NotEligibleError: No certificate exists and requirements are unmet.
            ProfileRequiredError: No student profile to put on the certificate.
        """
        existing = self.repo.get_certificate()
        if existing is not None:
            return existing

        report = self.check_eligibility()
        if not report.eligible:
            raise NotEligibleError(report)

        profile = self.repo.get_profile()
        if profile is None:
            raise ProfileRequiredError("a student profile is required to issue a certificate")

        progress = self.repo.get_progress()
        certificate = Certificate(
            name=profile.name,
            class_name=profile.class_name,
            issued_at=datetime.now(),
            average_percent=report.average_percent,
            grade=grade_for(report.average_percent),
            verification_code=generate_verification_code(),
            xp=progress.xp,
            texts_completed=progress.texts_completed,
        )
        self.repo.set_certificate(certificate)
        logger.info(
            "certificate_issued",
            verification_code=certificate.verification_code,
            average_percent=certificate.average_percent,
        )
        return certificate

    def verify(self, code: str) -> VerificationResult:
        """Read-only check of a submitted verification code."""
        certificate = self.repo.get_certificate()
        if certificate is not None and certificate.verification_code == code.strip():
            return VerificationResult(valid=True, certificate=certificate)
        return VerificationResult(valid=False)
