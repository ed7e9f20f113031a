"""
Unit tests for the verification gateways.

The Twilio client is replaced by a MagicMock; nothing leaves the process.
"""

from unittest.mock import MagicMock

import pytest
from twilio.base.exceptions import TwilioRestException

from slotbook.errors import ConfigurationError, GatewayError
from slotbook.services import TwilioVerifyGateway, StaticCodeGateway


def _gateway(client):
    return TwilioVerifyGateway("ACtest", "token", "VAtest", client=client)


def _service(client):
    return client.verify.v2.services.return_value


class TestTwilioVerifyGateway:

    @pytest.mark.unit
    def test_missing_credentials(self):
        with pytest.raises(ConfigurationError):
            TwilioVerifyGateway(None, "token", "VAtest", client=MagicMock())
        with pytest.raises(ConfigurationError, match="TWILIO_VERIFY_SERVICE_SID"):
            TwilioVerifyGateway("ACtest", "token", None, client=MagicMock())

    @pytest.mark.unit
    def test_send_code(self):
        client = MagicMock()
        _service(client).verifications.create.return_value = MagicMock(sid="VE123", status="pending")

        result = _gateway(client).send_code("+14148616375")

        client.verify.v2.services.assert_called_with("VAtest")
        _service(client).verifications.create.assert_called_once_with(to="+14148616375", channel="sms")
        assert result.attempt_id == "VE123"
        assert result.status == "pending"

    @pytest.mark.unit
    def test_send_failure_is_gateway_error(self):
        client = MagicMock()
        _service(client).verifications.create.side_effect = TwilioRestException(
            429, "https://verify.twilio.com", msg="Too many requests", code=20429
        )

        with pytest.raises(GatewayError):
            _gateway(client).send_code("+14148616375")

    @pytest.mark.unit
    def test_check_approved(self):
        client = MagicMock()
        _service(client).verification_checks.create.return_value = MagicMock(status="approved")

        result = _gateway(client).check_code("+14148616375", "123456")

        _service(client).verification_checks.create.assert_called_once_with(to="+14148616375", code="123456")
        assert result.approved is True

    @pytest.mark.unit
    def test_check_pending_is_not_approved(self):
        client = MagicMock()
        _service(client).verification_checks.create.return_value = MagicMock(status="pending")

        assert _gateway(client).check_code("+14148616375", "000000").approved is False

    @pytest.mark.unit
    def test_consumed_verification_is_not_approved(self):
        """Twilio answers 404 once a verification is approved or expired."""
        client = MagicMock()
        _service(client).verification_checks.create.side_effect = TwilioRestException(
            404, "https://verify.twilio.com", msg="Not found", code=20404
        )

        result = _gateway(client).check_code("+14148616375", "123456")

        assert result.approved is False
        assert result.status == "not_found"

    @pytest.mark.unit
    def test_check_failure_is_gateway_error(self):
        client = MagicMock()
        _service(client).verification_checks.create.side_effect = TwilioRestException(
            500, "https://verify.twilio.com", msg="Server error"
        )

        with pytest.raises(GatewayError):
            _gateway(client).check_code("+14148616375", "123456")


class TestStaticCodeGateway:

    @pytest.mark.unit
    def test_approves_fixed_code_once(self):
        gateway = StaticCodeGateway(code="424242")

        assert gateway.check_code("+14148616375", "000000").approved is False
        assert gateway.check_code("+14148616375", "424242").approved is True
        assert gateway.check_code("+14148616375", "424242").approved is False

    @pytest.mark.unit
    def test_new_send_makes_code_usable_again(self):
        gateway = StaticCodeGateway()
        gateway.check_code("+14148616375", "123456")

        gateway.send_code("+14148616375")

        assert gateway.check_code("+14148616375", "123456").approved is True
