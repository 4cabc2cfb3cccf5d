"""
Webhook signature validation tests.
These protect the authentication boundary for inbound SMS.
"""
from unittest.mock import MagicMock, patch

from src.utils.webhook_signatures import (
    get_webhook_url,
    validate_twilio_signature,
    verify_twilio_request,
)


def _mock_request(headers=None, scheme="http", path="/api/v1/webhook/twilio/sms", query=""):
    request = MagicMock()
    request.headers = headers or {}
    request.url.scheme = scheme
    request.url.path = path
    request.url.query = query
    return request


class TestValidateTwilioSignature:
    def test_missing_signature_returns_false(self):
        result = validate_twilio_signature(
            auth_token="test_token",
            signature="",
            url="https://example.com/webhook",
            params={},
        )
        assert result is False

    def test_valid_signature_returns_true(self):
        with patch("twilio.request_validator.RequestValidator") as mock_cls:
            mock_cls.return_value.validate.return_value = True

            result = validate_twilio_signature(
                "test_token", "sig", "https://example.com/webhook", {"Body": "/start"},
            )

        assert result is True
        mock_cls.assert_called_once_with("test_token")

    def test_validator_exception_returns_false(self):
        with patch("twilio.request_validator.RequestValidator") as mock_cls:
            mock_cls.return_value.validate.side_effect = Exception("boom")
            result = validate_twilio_signature("t", "sig", "https://x", {})

        assert result is False


class TestGetWebhookUrl:
    def test_uses_forwarded_headers(self):
        request = _mock_request(headers={
            "x-forwarded-proto": "https",
            "x-forwarded-host": "bot.example.com",
            "host": "api:8000",
        })
        assert get_webhook_url(request) == "https://bot.example.com/api/v1/webhook/twilio/sms"

    def test_falls_back_to_host_and_scheme(self):
        request = _mock_request(headers={"host": "localhost:8000"})
        assert get_webhook_url(request) == "http://localhost:8000/api/v1/webhook/twilio/sms"

    def test_includes_query(self):
        request = _mock_request(headers={"host": "h"}, query="a=1")
        assert get_webhook_url(request).endswith("?a=1")


class TestVerifyTwilioRequest:
    def test_disabled_validation_accepts(self, mock_settings):
        mock_settings.twilio_validate_signature = False
        with patch("src.config.get_settings", return_value=mock_settings):
            assert verify_twilio_request(_mock_request(), {}) is True

    def test_missing_auth_token_rejects(self, mock_settings):
        mock_settings.twilio_validate_signature = True
        mock_settings.twilio_auth_token = ""
        with patch("src.config.get_settings", return_value=mock_settings):
            assert verify_twilio_request(_mock_request(), {}) is False

    def test_delegates_to_validator(self, mock_settings):
        mock_settings.twilio_validate_signature = True
        request = _mock_request(headers={"host": "h", "X-Twilio-Signature": "sig"})

        with (
            patch("src.config.get_settings", return_value=mock_settings),
            patch(
                "src.utils.webhook_signatures.validate_twilio_signature", return_value=True,
            ) as mock_validate,
        ):
            assert verify_twilio_request(request, {"From": "+1"}) is True

        mock_validate.assert_called_once_with(
            "test_token", "sig", "http://h/api/v1/webhook/twilio/sms", {"From": "+1"},
        )
