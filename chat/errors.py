"""Chat error taxonomy.

Every error carries the HTTP status the REST views answer with; the views
render them as ``{"error": <message>}``.
"""


class ChatError(Exception):
    status_code = 500
    default_message = "Chat error"

    def __init__(self, message=None):
        super().__init__(message or self.default_message)

    @property
    def message(self):
        return self.args[0]


class ValidationError(ChatError):
    status_code = 400
    default_message = "Invalid request"


class AuthenticationError(ChatError):
    status_code = 401
    default_message = "Invalid token"


class AuthorizationError(ChatError):
    status_code = 403
    default_message = "Not authorized"


class NotFoundError(ChatError):
    status_code = 404
    default_message = "Message not found"


class PersistenceError(ChatError):
    status_code = 500
    default_message = "Failed to access chat storage"
