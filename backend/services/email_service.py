"""Outbound email. Nothing is actually delivered: messages are validated, logged and kept in a bounded outbox."""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Deque, List, Optional

from pydantic import BaseModel

from config.app_config import EMAIL_ENABLED, EMAIL_OUTBOX_LIMIT
from models.schemas import Award, Hackathon, HackathonStage, Submission
from utils.text import title_case

logger = logging.getLogger(__name__)


class EmailParams(BaseModel):
    to: str = ""
    subject: str = ""
    body: str = ""


class EmailResult(BaseModel):
    success: bool
    message: str


_OUTBOX: Deque[EmailParams] = deque(maxlen=EMAIL_OUTBOX_LIMIT)
_OUTBOX_LOCK = threading.Lock()


def send_email(params: EmailParams) -> EmailResult:
    if not params.to or not params.subject or not params.body:
        msg = "Email sending failed: Missing required parameters."
        logger.warning(msg)
        return EmailResult(success=False, message=msg)
    if "@" not in params.to:
        msg = f"Email sending failed: Invalid recipient email: {params.to}"
        logger.warning(msg)
        return EmailResult(success=False, message=msg)
    if not EMAIL_ENABLED:
        return EmailResult(success=False, message="Email sending is disabled.")

    with _OUTBOX_LOCK:
        _OUTBOX.append(params)
    msg = f'Mock email successfully "sent" to {params.to} with subject "{params.subject}".'
    logger.info(msg)
    return EmailResult(success=True, message=msg)


def get_outbox() -> List[EmailParams]:
    with _OUTBOX_LOCK:
        return list(_OUTBOX)


def clear_outbox() -> None:
    with _OUTBOX_LOCK:
        _OUTBOX.clear()


# --- Notification templates ---

def _sign_off(hackathon: Hackathon) -> str:
    return f"\n\nBest regards,\nThe {hackathon.title} Team"


def _to_participant(submission: Submission, subject: str, text: str, hackathon: Hackathon) -> EmailResult:
    body = f"Dear {submission.participant_name},\n\n{text}{_sign_off(hackathon)}"
    return send_email(EmailParams(to=submission.participant_email, subject=subject, body=body))


def notify_under_review(hackathon: Hackathon, submission: Submission, stage: HackathonStage) -> EmailResult:
    return _to_participant(
        submission,
        f"Your Submission to {hackathon.title} is Under Review for {stage.name}",
        f'Your submission "{submission.project_name}" for {hackathon.title} has been assigned to '
        f'the "{stage.name}" stage and is now pending review.\n\nGood luck!',
        hackathon,
    )


def notify_advanced(
    hackathon: Hackathon, submission: Submission, passed: HackathonStage, upcoming: HackathonStage
) -> EmailResult:
    return _to_participant(
        submission,
        f"Congratulations! You've Advanced to {upcoming.name} in {hackathon.title}",
        f'We are thrilled to inform you that your submission "{submission.project_name}" has successfully '
        f'passed "{passed.name}" and has advanced to the "{upcoming.name}" stage of {hackathon.title}!\n\n'
        "Further instructions for this new stage will follow. Keep up the great work!",
        hackathon,
    )


def notify_selected(hackathon: Hackathon, submission: Submission, stage: HackathonStage) -> EmailResult:
    return _to_participant(
        submission,
        f"You've Passed {stage.name} in {hackathon.title}",
        f'Your submission "{submission.project_name}" has passed the "{stage.name}" stage of '
        f"{hackathon.title}. You will hear from us when the next stage opens.",
        hackathon,
    )


def notify_finalist(hackathon: Hackathon, submission: Submission) -> EmailResult:
    return _to_participant(
        submission,
        f"You're a Finalist in {hackathon.title}!",
        f'Congratulations! Your submission "{submission.project_name}" has successfully passed all '
        f"judging stages and is now a finalist in {hackathon.title}!\n\n"
        "Award decisions will be announced soon. Well done!",
        hackathon,
    )


def notify_not_selected(hackathon: Hackathon, submission: Submission, stage: Optional[HackathonStage]) -> EmailResult:
    where = f' for the "{stage.name}" stage' if stage else ""
    return _to_participant(
        submission,
        f"Update on Your Submission to {hackathon.title}",
        f'Thank you for your participation in {hackathon.title} with your project "{submission.project_name}". '
        f"After careful review{where}, your submission was not selected to advance further at this time.\n\n"
        "We appreciate your effort and encourage you to continue developing your ideas.",
        hackathon,
    )


def notify_award(hackathon: Hackathon, submission: Submission, award: Award) -> EmailResult:
    label = f"{title_case(award.level.value)} - {award.category_name}"
    return _to_participant(
        submission,
        f"Congratulations! You've Received an Award in {hackathon.title}!",
        f'We are thrilled to announce that your project "{submission.project_name}" has been awarded '
        f'"{label}" in {hackathon.title}!',
        hackathon,
    )


def notify_award_rescinded(hackathon: Hackathon, submission: Submission, award: Award) -> EmailResult:
    label = f"{title_case(award.level.value)} - {award.category_name}"
    return _to_participant(
        submission,
        f"Important Update Regarding Your Award in {hackathon.title}",
        f'The previously communicated award for your project "{submission.project_name}" ("{label}") '
        "has been rescinded after an administrative review.\n\n"
        "Please contact the hackathon organizers if you have questions.",
        hackathon,
    )


def notify_reverted(hackathon: Hackathon, submission: Submission, stage: HackathonStage) -> EmailResult:
    return _to_participant(
        submission,
        f"Update: Submission Reverted to Previous Stage in {hackathon.title}",
        f'Your submission "{submission.project_name}" for {hackathon.title} has been reverted to the '
        f'stage: "{stage.name}" by an administrator.\n\n'
        "You may need to await further review for this stage.",
        hackathon,
    )


def send_invitation_reminder(email: str, role: str) -> EmailResult:
    role_name = "an Administrator" if role == "admin" else "a judge"
    return send_email(EmailParams(
        to=email,
        subject=f"Welcome to the Hackathon Platform - {title_case(role)} Invitation Reminder",
        body=(
            f"Hello {email},\n\nThis is a reminder of your invitation to be {role_name} on our "
            "Hackathon Platform. Please log in or contact support if you have any issues.\n\n"
            "Best regards,\nThe Platform Team"
        ),
    ))
