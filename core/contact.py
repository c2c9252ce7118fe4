# core/contact.py
"""
Contact form submission pipeline

A short-circuiting chain: method, form parsing, sender address, form
values, CAPTCHA, delivery. Each step fails with its own error type so the
handler can answer with a distinct status and reason. Nothing is stored or
retried once the request is over.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Mapping

from email_validator import EmailNotValidError, validate_email

from config.site import SiteConfig
from core.captcha import CaptchaVerifier
from core.errors import (
    CaptchaRejectedError, InvalidAddressError, InvalidFormValuesError,
    MalformedSubmissionError, NotFoundError
)
from core.mailer import SMTPMailer, build_message

logger = logging.getLogger(__name__)

# Form field names posted by the landing page
FIELD_FROM = 'from'
FIELD_NAME = 'name'
FIELD_BODY = 'body'
FIELD_CAPTCHA = 'g-recaptcha-response'


@dataclass
class ContactSubmission:
    sender_email: str
    sender_name: str
    message: str
    captcha_token: str
    client_ip: str


@dataclass(frozen=True)
class ContactPolicy:
    """Length limits applied to a submission"""
    max_address_length: int = 254
    min_name_length: int = 1
    min_body_length: int = 1

    @classmethod
    def from_settings(cls, settings: Mapping) -> 'ContactPolicy':
        return cls(
            max_address_length=settings.get('CONTACT_MAX_ADDRESS_LENGTH', 254),
            min_name_length=max(1, settings.get('CONTACT_MIN_NAME_LENGTH', 1)),
            min_body_length=max(1, settings.get('CONTACT_MIN_BODY_LENGTH', 1)),
        )


def is_valid_address(address: str, max_length: int = 254) -> bool:
    if not address or len(address) > max_length:
        return False
    try:
        validate_email(address, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def parse_submission(form: Mapping, client_ip: str) -> ContactSubmission:
    if form is None or not hasattr(form, 'get'):
        raise MalformedSubmissionError()
    return ContactSubmission(
        sender_email=(form.get(FIELD_FROM) or '').strip(),
        sender_name=(form.get(FIELD_NAME) or '').strip(),
        message=form.get(FIELD_BODY) or '',
        captcha_token=form.get(FIELD_CAPTCHA) or '',
        client_ip=client_ip,
    )


class ContactPipeline:
    """Validates a contact form post and relays it to the site owner"""

    def __init__(self,
                 config: SiteConfig,
                 verifier: CaptchaVerifier,
                 mailer: SMTPMailer,
                 policy: ContactPolicy = None):
        self.config = config
        self.verifier = verifier
        self.mailer = mailer
        self.policy = policy or ContactPolicy()

    def validate(self, submission: ContactSubmission) -> None:
        """Local checks, no network involved"""
        if not is_valid_address(submission.sender_email, self.policy.max_address_length):
            raise InvalidAddressError()

        if (len(submission.sender_name) < self.policy.min_name_length
                or len(submission.message.strip()) < self.policy.min_body_length):
            raise InvalidFormValuesError()

        # The name goes into the Subject header
        if '\r' in submission.sender_name or '\n' in submission.sender_name:
            raise InvalidFormValuesError()

    def verify_captcha(self, submission: ContactSubmission) -> None:
        # CaptchaServiceError from the verifier propagates as is
        if not self.verifier.verify(submission.captcha_token, submission.client_ip):
            raise CaptchaRejectedError()

    def subject_for(self, submission: ContactSubmission) -> str:
        return f"{self.config.name} contact form - from {submission.sender_name}"

    def deliver(self, submission: ContactSubmission) -> None:
        msg = build_message(
            recipient=self.config.email.recipient,
            sender=submission.sender_email,
            subject=self.subject_for(submission),
            body=submission.message,
            domain=self.config.host,
        )
        self.mailer.send(msg)

    def submit(self,
               method: str,
               load_form: Callable[[], Mapping],
               client_ip: str) -> ContactSubmission:
        """
        Run the whole chain for one request

        Args:
            method: HTTP method of the request
            load_form: returns the parsed form, raises MalformedSubmissionError
            client_ip: caller address used for CAPTCHA verification

        Returns:
            The delivered submission

        Raises:
            ContactError: for client-side rejections
            CaptchaServiceError, MailDeliveryError: for upstream failures
        """
        if method != 'POST':
            raise NotFoundError('invalid request')

        submission = parse_submission(load_form(), client_ip)
        self.validate(submission)
        self.verify_captcha(submission)
        self.deliver(submission)

        logger.info(f"Contact form from {submission.sender_email} ({client_ip}) delivered")
        return submission
