# core/mailer.py
"""
SMTP relay client for contact form messages

Connection parameters come from EmailRelay; the mailer is built from them
once and invoked explicitly for every message. One attempt per message,
failures are raised to the caller.
"""

import asyncio
import logging
import uuid
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formatdate

import aiosmtplib
from markupsafe import escape

from config.site import EmailRelay
from core.errors import MailDeliveryError

logger = logging.getLogger(__name__)

IMPLICIT_TLS_PORT = 465


def build_message(recipient: str, sender: str, subject: str, body: str,
                  domain: str = 'localhost') -> MIMEMultipart:
    """Plain text message with an escaped HTML alternative"""
    msg = MIMEMultipart('alternative')
    msg['Subject'] = subject
    msg['From'] = sender
    msg['To'] = recipient
    msg['Reply-To'] = sender
    msg['Date'] = formatdate(localtime=True)
    msg['Message-ID'] = f"<{uuid.uuid4()}@{domain}>"

    html_body = str(escape(body)).replace('\n', '<br>\n')
    msg.attach(MIMEText(body, 'plain', 'utf-8'))
    msg.attach(MIMEText(html_body, 'html', 'utf-8'))
    return msg


class SMTPMailer:
    """Sends messages through the configured relay over TLS"""

    def __init__(self, relay: EmailRelay, timeout: float = 10.0):
        self.relay = relay
        self.timeout = timeout
        if not relay.verify_certificates:
            logger.warning(
                f"TLS certificate verification disabled for SMTP relay {relay.host}"
            )

    def send(self, msg: MIMEMultipart) -> None:
        """
        Deliver msg, blocking until the relay accepts or rejects it

        Raises:
            MailDeliveryError: connection, TLS, auth or delivery failed
        """
        try:
            asyncio.run(self._send_async(msg))
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP delivery to {self.relay.host} failed: {e}")
            raise MailDeliveryError(f'failed to send message: {e}') from e

        logger.info(f"Contact message {msg['Message-ID']} relayed via {self.relay.host}")

    async def _send_async(self, msg: MIMEMultipart) -> None:
        # Port 465 is implicit TLS; anything else upgrades with STARTTLS
        # when the relay offers it.
        smtp = aiosmtplib.SMTP(
            hostname=self.relay.host,
            port=self.relay.port,
            timeout=self.timeout,
            use_tls=self.relay.port == IMPLICIT_TLS_PORT,
            validate_certs=self.relay.verify_certificates,
        )

        await smtp.connect()
        try:
            await smtp.login(self.relay.username, self.relay.password)
            await smtp.send_message(msg)
            await smtp.quit()
        finally:
            if smtp.is_connected:
                smtp.close()
