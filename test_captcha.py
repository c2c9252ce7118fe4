import pytest
import requests

from core.captcha import CaptchaVerifier
from core.errors import CaptchaServiceError


class FakeResponse:
    def __init__(self, payload=None, status_code=200, text=None):
        self.payload = payload
        self.status_code = status_code
        self.text = text if text is not None else str(payload)

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f'{self.status_code} error')

    def json(self):
        if self.payload is None:
            raise ValueError('no JSON')
        return self.payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def post(self, url, data=None, timeout=None):
        self.requests.append({'url': url, 'data': data, 'timeout': timeout})
        if self.error:
            raise self.error
        return self.response


def test_success_sends_secret_token_and_ip():
    session = FakeSession(FakeResponse({'success': True}))
    verifier = CaptchaVerifier('priv-key', session=session, timeout=1.0)

    assert verifier.verify('token-123', '203.0.113.9') is True

    sent = session.requests[0]
    assert sent['url'] == 'https://www.google.com/recaptcha/api/siteverify'
    assert sent['data'] == {'secret': 'priv-key', 'response': 'token-123',
                            'remoteip': '203.0.113.9'}
    assert sent['timeout'] == 1.0


def test_reported_failure_returns_false():
    session = FakeSession(FakeResponse({'success': False, 'error-codes': ['invalid-input-response']}))
    assert CaptchaVerifier('k', session=session).verify('bad', '1.2.3.4') is False


def test_transport_error_raises():
    session = FakeSession(error=requests.ConnectionError('unreachable'))
    with pytest.raises(CaptchaServiceError):
        CaptchaVerifier('k', session=session).verify('t', '1.2.3.4')


def test_http_error_raises():
    session = FakeSession(FakeResponse({'success': True}, status_code=503))
    with pytest.raises(CaptchaServiceError):
        CaptchaVerifier('k', session=session).verify('t', '1.2.3.4')


@pytest.mark.parametrize('response', [
    FakeResponse(None, text='<html>oops</html>'),
    FakeResponse(['success']),
    FakeResponse({'success': 'yes'}),
    FakeResponse({}),
])
def test_malformed_response_raises(response):
    with pytest.raises(CaptchaServiceError):
        CaptchaVerifier('k', session=FakeSession(response)).verify('t', '1.2.3.4')
