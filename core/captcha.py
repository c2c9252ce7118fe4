# core/captcha.py
"""
reCAPTCHA server-side verification

https://developers.google.com/recaptcha/docs/verify
"""

import logging
from typing import Optional

import requests

from core.errors import CaptchaServiceError

logger = logging.getLogger(__name__)

VERIFY_URL = 'https://www.google.com/recaptcha/api/siteverify'
DEFAULT_TIMEOUT = 1.0


class CaptchaVerifier:
    """Checks a user's CAPTCHA token with a single call, no retries"""

    def __init__(self,
                 secret: str,
                 session: Optional[requests.Session] = None,
                 timeout: float = DEFAULT_TIMEOUT,
                 verify_url: str = VERIFY_URL):
        self.secret = secret
        self.session = session or requests.Session()
        self.timeout = timeout
        self.verify_url = verify_url

    def verify(self, token: str, remote_ip: str) -> bool:
        """
        Ask the verification service whether token is valid

        Returns:
            True if the service reports success, False if it reports failure

        Raises:
            CaptchaServiceError: the call failed or the answer was unreadable
        """
        try:
            resp = self.session.post(
                self.verify_url,
                data={
                    'secret': self.secret,
                    'response': token,
                    'remoteip': remote_ip,
                },
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.warning(f"CAPTCHA verification call failed: {e}")
            raise CaptchaServiceError(f'captcha verification failed: {e}') from e

        try:
            payload = resp.json()
        except ValueError as e:
            logger.warning(f"CAPTCHA service returned non-JSON body: {resp.text[:200]!r}")
            raise CaptchaServiceError('malformed captcha verification response') from e

        if not isinstance(payload, dict) or not isinstance(payload.get('success'), bool):
            logger.warning(f"CAPTCHA service returned unexpected payload: {payload!r}")
            raise CaptchaServiceError('malformed captcha verification response')

        if not payload['success']:
            logger.info(f"CAPTCHA rejected for {remote_ip}: {payload.get('error-codes', [])}")
        return payload['success']
