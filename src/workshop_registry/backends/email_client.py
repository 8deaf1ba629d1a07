import logging
from typing import Dict, Optional

from mailgun.client import Client

logger = logging.getLogger(__name__)

REGISTRANT_TAG = "workshop-registrant"
ORGANIZER_TAG = "workshop-organizer"


class EmailClient:
    """Mailgun sender for registration emails"""

    def __init__(self, config: dict):
        self.domain = config["mailgun_domain"]
        self.sender_email = config["sender_email"]
        self.client = Client(auth=("api", config["mailgun_api_key"]))

    def build_message(
        self,
        to: str,
        text: str,
        subject: Optional[str] = None,
        tag: str = REGISTRANT_TAG,
        reply_to: Optional[str] = None,
    ) -> Dict[str, str]:
        message = {
            "from": self.sender_email,
            "to": to,
            "subject": subject or "Your workshop registration",
            "text": text,
            "o:tag": tag,
        }
        if reply_to:
            # Registrants answer the organizer, not the no-reply sender
            message["h:Reply-To"] = reply_to
        return message

    async def send_email(
        self,
        to: str,
        text: str,
        subject: Optional[str] = None,
        tag: str = REGISTRANT_TAG,
        reply_to: Optional[str] = None,
    ) -> Dict:
        """
        Send a plain-text email through Mailgun

        Args:
            to: Recipient email address
            text: Email body text
            subject: Email subject (a generic one is used if not provided)
            tag: Mailgun tag separating registrant and organizer mail
            reply_to: Address replies should go to

        Returns:
            Dict containing Mailgun API response

        Raises:
            RuntimeError: If Mailgun refuses or cannot be reached
        """
        message = self.build_message(to, text, subject, tag, reply_to)

        try:
            req = self.client.messages.create(data=message, domain=self.domain)
            response = req.json()
        except Exception as e:
            logger.error(f"Mailgun request for {to} failed: {e}")
            raise RuntimeError(f"Email sending failed: {e}") from e

        if req.status_code != 200:
            logger.error(f"Mailgun API error: {req.status_code} - {response}")
            raise RuntimeError(f"Failed to send email: {response}")

        logger.info(f"Mailgun accepted email to {to}: {response.get('id', 'unknown')}")
        return response
