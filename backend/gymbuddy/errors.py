"""Domain errors shared by the HTTP routers and the chat socket."""


class GymBuddyError(Exception):
    """Base error carrying the HTTP status and a user-facing message."""

    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(GymBuddyError):
    status_code = 400
    default_message = "Validation error"


class NotAuthenticated(GymBuddyError):
    status_code = 401
    default_message = "Not authenticated"


class Forbidden(GymBuddyError):
    status_code = 403
    default_message = "Not authorized"


class NotFound(GymBuddyError):
    status_code = 404
    default_message = "Not found"
