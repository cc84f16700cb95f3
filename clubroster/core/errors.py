"""Domain errors raised by the invitation services.

Every error carries a short user-facing ``message``; the underlying cause
(database driver error, SMTP error) is kept on ``cause`` for logging and is
never rendered in a response.
"""
from typing import Optional


class ClubRosterError(Exception):
    code = "error"
    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None, cause: Optional[BaseException] = None):
        self.message = message or self.default_message
        self.cause = cause
        super().__init__(self.message)


class Unauthorized(ClubRosterError):
    code = "unauthorized"
    status_code = 403
    default_message = "You do not have permission to perform this action"


class InvalidInput(ClubRosterError):
    code = "invalid_input"
    status_code = 400
    default_message = "Invalid input"


class NotFound(ClubRosterError):
    code = "not_found"
    status_code = 404
    default_message = "Invalid invitation token"


class Expired(ClubRosterError):
    code = "expired"
    status_code = 410
    default_message = "This invitation has expired"


class AlreadyConsumed(ClubRosterError):
    code = "already_consumed"
    status_code = 409
    default_message = "This invitation has already been used"


class EmailMismatch(ClubRosterError):
    code = "email_mismatch"
    status_code = 400
    default_message = "Email must match the invitation email"


class InvalidCredentials(ClubRosterError):
    code = "invalid_credentials"
    status_code = 401
    default_message = "Incorrect email or password"


class RegistrationFailed(ClubRosterError):
    code = "registration_failed"
    status_code = 400
    default_message = "Failed to complete registration. Please try again."


class DuplicateEmail(RegistrationFailed):
    code = "duplicate_email"
    status_code = 409
    default_message = "An account with this email already exists"


class WeakPassword(RegistrationFailed):
    code = "weak_password"
    status_code = 400
    default_message = "Password does not meet the minimum requirements"


class TransientFailure(ClubRosterError):
    code = "transient_failure"
    status_code = 503
    default_message = "Service temporarily unavailable, please retry"
