from typing import Optional, Any

class PhoneVerifyError(Exception):
    """
    Base exception for the phone verification service.
    """
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500, details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)

class ValidationError(PhoneVerifyError):
    """
    Raised when a phone number or code is malformed.
    Always raised before any storage access.
    """
    def __init__(self, message: str = "Validation error", details: Optional[Any] = None):
        super().__init__(message, code="VALIDATION_ERROR", status_code=400, details=details)

class StorageError(PhoneVerifyError):
    """
    Raised when the backing store is unreachable or a write could not be resolved.
    Retryable for issuing codes; verify callers must not blindly resubmit.
    """
    def __init__(self, message: str = "Storage unavailable", details: Optional[Any] = None):
        super().__init__(message, code="STORAGE_ERROR", status_code=500, details=details)

class DeliveryError(PhoneVerifyError):
    """
    Raised when the SMS gateway could not deliver the code.
    """
    def __init__(self, message: str = "SMS delivery service unavailable", code_valid: bool = True, details: Optional[Any] = None):
        self.code_valid = code_valid
        super().__init__(message, code="DELIVERY_UNAVAILABLE", status_code=503, details=details)

class InvalidOrExpiredCodeError(PhoneVerifyError):
    """
    Raised when no live record matches the submitted phone number and code.
    Deliberately does not say whether the code was wrong, expired or never issued.
    """
    def __init__(self, message: str = "Invalid or expired verification code"):
        super().__init__(message, code="INVALID_OR_EXPIRED_CODE", status_code=400, details=None)

class ProfileUpdateError(PhoneVerifyError):
    """
    Raised when the code was consumed but the user record could not be written.
    The code is spent; clients must request a new one rather than resubmit.
    """
    def __init__(self, message: str = "Phone verified but profile update failed", details: Optional[Any] = None):
        super().__init__(
            message,
            code="VERIFIED_PROFILE_UPDATE_FAILED",
            status_code=500,
            details={"verified": True, **(details or {})}
        )
