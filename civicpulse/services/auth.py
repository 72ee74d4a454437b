from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Dict
import threading
import time


class Role(str, Enum):
    citizen = "citizen"
    admin = "admin"


class AuthError(Exception):
    pass


class InvalidMobileNumber(AuthError):
    pass


class OtpVerificationError(AuthError):
    pass


@dataclass
class User:
    id: str
    name: str
    mobile: str
    role: Role


@dataclass
class OtpChallenge:
    mobile: str
    sent_to: str
    requested_at: float


class Authenticator(ABC):
    """Identity capability used by the login endpoints.

    Complaint handling never calls into this, so a real verifier can be
    swapped in without touching submission or status logic.
    """

    @abstractmethod
    def request_otp(self, mobile: str) -> OtpChallenge:
        ...

    @abstractmethod
    def verify_otp(self, mobile: str, otp: str, role: Role) -> User:
        ...


class SimulatedOtpAuthenticator(Authenticator):
    """Demo login: 10-digit mobile, any 4-digit OTP. Nothing is sent."""

    MOBILE_DIGITS = 10
    OTP_DIGITS = 4

    def __init__(self, country_code: str = "+91") -> None:
        self.country_code = country_code
        self._pending: Dict[str, OtpChallenge] = {}
        self._lock = threading.Lock()

    def _check_mobile(self, mobile: str) -> str:
        mobile = (mobile or "").strip()
        if len(mobile) != self.MOBILE_DIGITS or not mobile.isdigit():
            raise InvalidMobileNumber("Please enter a valid 10-digit mobile number.")
        return mobile

    def request_otp(self, mobile: str) -> OtpChallenge:
        mobile = self._check_mobile(mobile)
        challenge = OtpChallenge(
            mobile=mobile,
            sent_to=f"{self.country_code} {'*' * 6}{mobile[-4:]}",
            requested_at=time.time(),
        )
        with self._lock:
            self._pending[mobile] = challenge
        return challenge

    def verify_otp(self, mobile: str, otp: str, role: Role) -> User:
        mobile = self._check_mobile(mobile)
        otp = (otp or "").strip()
        with self._lock:
            if mobile not in self._pending:
                raise OtpVerificationError("No OTP was requested for this number")
            if len(otp) != self.OTP_DIGITS or not otp.isdigit():
                raise OtpVerificationError("Invalid OTP")
            del self._pending[mobile]

        role = Role(role)
        if role == Role.admin:
            return User(id="admin-1", name="Municipal Officer", mobile=mobile, role=role)
        return User(id=f"u-{mobile}", name="Concerned Citizen", mobile=mobile, role=role)
