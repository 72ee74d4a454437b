"""Tests for the simulated OTP login."""
import pytest

from civicpulse.services.auth import (
    Authenticator,
    InvalidMobileNumber,
    OtpVerificationError,
    Role,
    SimulatedOtpAuthenticator,
)


@pytest.fixture
def auth():
    return SimulatedOtpAuthenticator()


def test_citizen_login(auth):
    challenge = auth.request_otp("9876543210")
    assert challenge.sent_to == "+91 ******3210"
    user = auth.verify_otp("9876543210", "0000", Role.citizen)
    assert user.id == "u-9876543210"
    assert user.name == "Concerned Citizen"
    assert user.role == Role.citizen


def test_admin_login(auth):
    auth.request_otp("9876543210")
    user = auth.verify_otp("9876543210", "1234", "admin")
    assert (user.id, user.name, user.role) == ("admin-1", "Municipal Officer", Role.admin)


@pytest.mark.parametrize("mobile", ["", "12345", "98765432101", "98765abcde"])
def test_invalid_mobile(auth, mobile):
    with pytest.raises(InvalidMobileNumber):
        auth.request_otp(mobile)


@pytest.mark.parametrize("otp", ["", "123", "12345", "12a4"])
def test_invalid_otp_keeps_challenge(auth, otp):
    auth.request_otp("9876543210")
    with pytest.raises(OtpVerificationError):
        auth.verify_otp("9876543210", otp, Role.citizen)
    assert auth.verify_otp("9876543210", "1234", Role.citizen).mobile == "9876543210"


def test_challenge_is_single_use(auth):
    auth.request_otp("9876543210")
    auth.verify_otp("9876543210", "1234", Role.citizen)
    with pytest.raises(OtpVerificationError):
        auth.verify_otp("9876543210", "1234", Role.citizen)


def test_authenticator_requires_both_operations():
    class RequestOnly(Authenticator):
        def request_otp(self, mobile):
            return None

    with pytest.raises(TypeError):
        RequestOnly()
