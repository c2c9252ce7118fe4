# core/errors.py
"""
Exception hierarchy for the site server

Every error carries the HTTP status and the short reason string that the
error handlers in app.py send back to the client.
"""


class SiteError(Exception):
    """Base exception for request and startup failures"""

    status_code = 500
    message = 'internal error'

    def __init__(self, message: str = None):
        super().__init__(message or self.message)
        if message:
            self.message = message


class ConfigurationError(SiteError):
    """Missing or invalid site parameters, fatal at startup"""
    message = 'invalid configuration'


class NotFoundError(SiteError):
    status_code = 404
    message = 'not found'


class MethodNotImplementedError(SiteError):
    status_code = 501
    message = 'Not Implemented'


class TemplateRenderError(SiteError):
    """A template failed to parse or execute (deployment defect)"""
    message = 'template rendering failed'


# Contact form rejections

class ContactError(SiteError):
    """Base exception for contact submission rejections"""
    status_code = 400


class MalformedSubmissionError(ContactError):
    message = 'malformed form submission'


class InvalidAddressError(ContactError):
    status_code = 422
    message = 'invalid email address'


class InvalidFormValuesError(ContactError):
    status_code = 422
    message = 'invalid form values'


class CaptchaRejectedError(ContactError):
    """Verification service answered, and the answer was no"""
    status_code = 403
    message = 'invalid captcha'


# Upstream failures

class UpstreamError(SiteError):
    status_code = 502
    message = 'upstream service failure'


class CaptchaServiceError(UpstreamError):
    """Verification call failed or returned something unreadable"""
    message = 'captcha verification unavailable'


class ReleaseLookupError(UpstreamError):
    message = 'release lookup failed'


class MailDeliveryError(SiteError):
    message = 'failed to send message'


class NothingToDownloadError(SiteError):
    message = 'nothing to download'
