import pytest

from app.core.config import Settings
from app.services.verification_service import VerificationPolicy


def test_dev_mode_is_off_by_default():
    settings = Settings(_env_file=None)

    assert settings.VERIFICATION_DEV_MODE is False
    assert settings.OTP_TTL_SECONDS == 300


def test_dev_mode_rejected_in_production():
    with pytest.raises(ValueError):
        Settings(_env_file=None, ENVIRONMENT="production", VERIFICATION_DEV_MODE=True)


def test_ttl_must_be_positive():
    with pytest.raises(ValueError):
        Settings(_env_file=None, OTP_TTL_SECONDS=0)


@pytest.mark.parametrize("template", [
    "Your code is {code} for {name}",
    "Your code is {0}",
    "Your code is {code",
    "No code here, valid for {ttl} seconds",
])
def test_message_template_rejected_when_it_cannot_render_the_code(template):
    with pytest.raises(ValueError):
        Settings(_env_file=None, OTP_MESSAGE_TEMPLATE=template)

    with pytest.raises(ValueError):
        VerificationPolicy(message_template=template)


def test_message_template_may_omit_ttl():
    settings = Settings(_env_file=None, OTP_MESSAGE_TEMPLATE="Code: {code}")

    assert VerificationPolicy.from_settings(settings).message_template == "Code: {code}"


def test_policy_from_settings():
    settings = Settings(
        _env_file=None,
        VERIFICATION_DEV_MODE=True,
        OTP_TTL_SECONDS=60,
        INVALIDATE_CODE_ON_DELIVERY_FAILURE=True,
    )

    policy = VerificationPolicy.from_settings(settings)

    assert policy.development_mode is True
    assert policy.ttl_seconds == 60
    assert policy.invalidate_on_delivery_failure is True


def test_twilio_configured_requires_ac_sid():
    settings = Settings(
        _env_file=None,
        TWILIO_ACCOUNT_SID="XX123",
        TWILIO_AUTH_TOKEN="token",
        TWILIO_PHONE_NUMBER="+15550001111",
    )
    assert settings.twilio_configured is False

    settings = Settings(
        _env_file=None,
        TWILIO_ACCOUNT_SID="AC123",
        TWILIO_AUTH_TOKEN="token",
        TWILIO_PHONE_NUMBER="+15550001111",
    )
    assert settings.twilio_configured is True
