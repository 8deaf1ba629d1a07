"""Email service for generating and sending registration emails"""

import logging
from typing import Dict, Optional

from workshop_registry.backends.email_client import (
    ORGANIZER_TAG,
    REGISTRANT_TAG,
    EmailClient,
)
from workshop_registry.backends.llm_client import LLMClient
from workshop_registry.models.registration import Registration, RegistrationStatus
from workshop_registry.models.workshop import Workshop
from workshop_registry.services.admission_service import Outcome, OutcomeKind
from workshop_registry.system_prompts import EMAIL_GENERATION_PROMPT

logger = logging.getLogger(__name__)

# Internal bookkeeping keys never shown to organizers
_HIDDEN_FORM_KEYS = {"fullName", "email", "phone"}


class EmailService:
    """Sends registrant and organizer emails for admission outcomes.

    Delivery failures are logged and reported as False; they never undo or
    fail a registration.
    """

    def __init__(
        self,
        llm_client: Optional[LLMClient],
        email_config: dict,
        email_client: Optional[EmailClient] = None,
    ):
        self.llm_client = llm_client
        self.email_client = email_client or EmailClient(email_config)

    @staticmethod
    def email_type_for(outcome: Outcome) -> Optional[str]:
        if outcome.kind == OutcomeKind.REJECTED:
            return None
        if outcome.kind == OutcomeKind.WAITLISTED:
            return "waitlist"
        if outcome.status == RegistrationStatus.PENDING:
            return "pending"
        return "confirmed"

    async def notify_registrant(
        self, workshop: Workshop, registration: Registration, outcome: Outcome
    ) -> bool:
        """
        Generate and send a personalized email for the registrant's outcome.

        Args:
            workshop: The workshop registered for
            registration: The stored registration
            outcome: Admission outcome (rejections are not emailed)

        Returns:
            bool: True if email was sent successfully, False otherwise
        """
        email_type = self.email_type_for(outcome)
        if email_type is None:
            return False
        if not registration.email:
            logger.info("No email provided, skipping registration email")
            return False

        email_content = None
        if self.llm_client is not None:
            try:
                user_message = f"""Generate an email for this {email_type} scenario:

EMAIL TYPE: {email_type}
REGISTRANT: {registration.name}
WAITLIST POSITION: {outcome.waitlist_position or 'n/a'}
WORKSHOP DETAILS:
{self._format_workshop_details(workshop)}

Generate appropriate email subject and body for this scenario."""

                data = await self.llm_client.process_json_instruction(
                    messages=[{"role": "user", "content": user_message}],
                    system=EMAIL_GENERATION_PROMPT,
                    max_tokens=300,
                )
                if "subject" not in data or "body" not in data:
                    raise ValueError("Missing required keys in JSON response")
                email_content = {
                    "subject": str(data["subject"]).strip(),
                    "body": str(data["body"]).strip(),
                }
                logger.info(f"Generated {email_type} email for {registration.name}")
            except Exception as e:
                logger.warning(f"Failed to generate LLM email content: {e}")

        if email_content is None:
            email_content = self._generate_fallback_email(
                workshop, registration, email_type, outcome
            )
            logger.info(f"Using fallback {email_type} email for {registration.name}")

        return await self._send_email(
            registration.email,
            email_content,
            tag=REGISTRANT_TAG,
            reply_to=workshop.organizer_email,
        )

    def _format_workshop_details(self, workshop: Workshop) -> str:
        details = [f"Title: {workshop.title}"]
        if workshop.starts_at:
            details.append(f"Date: {workshop.starts_at.strftime('%B %d, %Y')}")
            time_str = workshop.starts_at.strftime("%I:%M %p")
            if workshop.ends_at:
                time_str += f" - {workshop.ends_at.strftime('%I:%M %p')}"
            details.append(f"Time: {time_str}")
        if workshop.description:
            details.append(f"Description: {workshop.description}")
        return "\n".join(details)

    def _generate_fallback_email(
        self,
        workshop: Workshop,
        registration: Registration,
        email_type: str,
        outcome: Outcome,
    ) -> Dict[str, str]:
        """Generate a simple fallback email if LLM fails"""
        if email_type == "waitlist":
            subject = f"You're on the waitlist for {workshop.title}"
            body = f"""Hi {registration.name},

{workshop.title} is currently full, so we've added you to the waitlist at position #{outcome.waitlist_position}.

We'll let you know as soon as a seat opens up.

Best regards"""
        elif email_type == "pending":
            subject = f"We received your registration for {workshop.title}"
            body = f"""Hi {registration.name},

Thanks for registering for {workshop.title}! The organizer reviews registrations before confirming them, and you'll hear from us once your spot is approved.

Best regards"""
        else:
            subject = f"You're registered for {workshop.title}"
            body = f"""Hi {registration.name},

You're all set for {workshop.title}!"""
            if workshop.starts_at:
                body += f"\n\n📅 Date: {workshop.starts_at.strftime('%B %d, %Y')}"
                body += f"\n🕐 Time: {workshop.starts_at.strftime('%I:%M %p')}"
            body += "\n\nLooking forward to seeing you there!"

        return {"subject": subject, "body": body}

    async def notify_organizer(
        self, workshop: Workshop, registration: Registration
    ) -> bool:
        """
        Send notification email to the workshop organizer about a new registration.

        Returns:
            bool: True if email was sent successfully, False otherwise
        """
        if not workshop.organizer_email:
            logger.debug(f"Workshop {workshop.id} has no organizer email")
            return False

        details = [f"Name: {registration.name}"]
        if registration.email:
            details.append(f"Email: {registration.email}")
        details.append(f"Status: {registration.status.value}")
        if registration.waitlist_position:
            details.append(f"Waitlist position: {registration.waitlist_position}")

        for key, value in (registration.form_data or {}).items():
            if key in _HIDDEN_FORM_KEYS:
                continue
            if isinstance(value, list):
                value = ", ".join(value)
            details.append(f"{key.replace('_', ' ').title()}: {value}")

        registered_at = (
            registration.registered_at.strftime("%B %d, %Y at %I:%M %p UTC")
            if registration.registered_at
            else "just now"
        )
        subject = f"New registration for {workshop.title}"
        body = f"""You have a new registration for your workshop!

Workshop: {workshop.title}
Seats taken: {workshop.registered_count}{f" of {workshop.capacity}" if workshop.capacity else ""}
Waitlist: {workshop.waitlist_count}

Registration Details:
{chr(10).join(details)}

This registration was submitted on {registered_at}."""

        return await self._send_email(
            workshop.organizer_email,
            {"subject": subject, "body": body},
            tag=ORGANIZER_TAG,
        )

    async def _send_email(
        self,
        to_email: str,
        email_content: Dict[str, str],
        tag: str,
        reply_to: Optional[str] = None,
    ) -> bool:
        try:
            await self.email_client.send_email(
                to=to_email,
                text=email_content["body"],
                subject=email_content["subject"],
                tag=tag,
                reply_to=reply_to,
            )
            logger.info(f"Email sent successfully to {to_email}")
            return True
        except Exception as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            return False
