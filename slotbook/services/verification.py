"""
Verification gateway using Twilio Verify.

Sends one-time codes by SMS and checks them. The provider owns the
verification attempt (its status, expiry and rate limits); this module only
translates between canonical phone numbers and the provider's API.
"""

import logging
import threading
import uuid
from dataclasses import dataclass
from typing import Optional, Protocol, Set, Tuple

from twilio.base.exceptions import TwilioException, TwilioRestException
from twilio.rest import Client

from ..auth.phone import mask_phone
from ..errors import ConfigurationError, GatewayError

logger = logging.getLogger(__name__)

APPROVED = "approved"


@dataclass
class SendResult:
    """Outcome of dispatching a code."""
    attempt_id: str
    status: str = "pending"

    def to_dict(self) -> dict:
        return {"attempt_id": self.attempt_id, "status": self.status}


@dataclass
class CheckResult:
    """Outcome of checking a code."""
    approved: bool
    status: str

    def to_dict(self) -> dict:
        return {"approved": self.approved, "status": self.status}


class VerificationGateway(Protocol):
    """Anything that can send and check one-time codes for a canonical phone."""

    def send_code(self, phone: str) -> SendResult:
        ...

    def check_code(self, phone: str, code: str) -> CheckResult:
        ...


class TwilioVerifyGateway:
    """
    Twilio Verify adapter.

    The REST client is created once and shared by every request; it holds no
    per-request state. Provider failures surface as GatewayError and are
    never retried here.
    """

    def __init__(
        self,
        account_sid: Optional[str],
        auth_token: Optional[str],
        service_sid: Optional[str],
        client: Optional[Client] = None
    ):
        """
        Initialize the gateway.

        Args:
            account_sid: Twilio account SID
            auth_token: Twilio auth token
            service_sid: Verify service SID
            client: Pre-built client (tests inject a mock)

        Raises:
            ConfigurationError: if any credential is missing
        """
        if not account_sid or not auth_token:
            raise ConfigurationError("Missing TWILIO_ACCOUNT_SID or TWILIO_AUTH_TOKEN")
        if not service_sid:
            raise ConfigurationError("Missing TWILIO_VERIFY_SERVICE_SID")

        self.service_sid = service_sid
        self._client = client or Client(account_sid, auth_token)
        logger.info("Twilio Verify gateway initialized")

    @property
    def _service(self):
        return self._client.verify.v2.services(self.service_sid)

    def send_code(self, phone: str) -> SendResult:
        """
        Ask Twilio to text a code to the phone.

        Args:
            phone: Canonical (E.164) phone number

        Returns:
            SendResult with the provider's verification SID

        Raises:
            GatewayError: provider rejected or failed the request (including
                          its own rate limiting)
        """
        try:
            verification = self._service.verifications.create(to=phone, channel="sms")
        except TwilioRestException as e:
            logger.error(f"Twilio send failed for {mask_phone(phone)}: HTTP {e.status} code {e.code}")
            raise GatewayError("Failed to send verification code") from e
        except (TwilioException, OSError) as e:
            logger.error(f"Twilio send failed for {mask_phone(phone)}: {e.__class__.__name__}")
            raise GatewayError("Failed to send verification code") from e

        logger.info(f"Verification code sent to {mask_phone(phone)}")
        return SendResult(attempt_id=verification.sid, status=verification.status)

    def check_code(self, phone: str, code: str) -> CheckResult:
        """
        Submit a code to Twilio.

        A code that was already approved (or whose attempt expired) makes
        Twilio answer 404; that is reported as not approved, so repeating a
        consumed code is never an error and never approves twice.

        Args:
            phone: Canonical (E.164) phone number
            code: Code typed by the user

        Returns:
            CheckResult

        Raises:
            GatewayError: any other provider failure
        """
        try:
            check = self._service.verification_checks.create(to=phone, code=code)
        except TwilioRestException as e:
            if e.status == 404:
                logger.info(f"No pending verification for {mask_phone(phone)}")
                return CheckResult(approved=False, status="not_found")
            logger.error(f"Twilio check failed for {mask_phone(phone)}: HTTP {e.status} code {e.code}")
            raise GatewayError("Failed to check verification code") from e
        except (TwilioException, OSError) as e:
            logger.error(f"Twilio check failed for {mask_phone(phone)}: {e.__class__.__name__}")
            raise GatewayError("Failed to check verification code") from e

        return CheckResult(approved=check.status == APPROVED, status=check.status)


class StaticCodeGateway:
    """
    Development gateway that accepts a single fixed code.

    Sends nothing. Each (phone, code) pair approves once; checking it again
    returns not approved, like a consumed provider verification.
    """

    def __init__(self, code: str = "123456"):
        self.code = code
        self._consumed: Set[Tuple[str, str]] = set()
        self._lock = threading.Lock()
        logger.warning("Using static verification code gateway; do not use in production")

    def send_code(self, phone: str) -> SendResult:
        logger.info(f"Static gateway: pretending to send code to {mask_phone(phone)}")
        with self._lock:
            # A new attempt makes the code usable again
            self._consumed.discard((phone, self.code))
        return SendResult(attempt_id=f"static-{uuid.uuid4().hex[:12]}", status="pending")

    def check_code(self, phone: str, code: str) -> CheckResult:
        with self._lock:
            if code != self.code:
                return CheckResult(approved=False, status="pending")
            if (phone, code) in self._consumed:
                return CheckResult(approved=False, status="not_found")
            self._consumed.add((phone, code))
        return CheckResult(approved=True, status=APPROVED)
