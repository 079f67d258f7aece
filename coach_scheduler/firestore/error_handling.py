from google.api_core import exceptions as gexc

DEFAULT_ERROR_MESSAGE = "An error occurred"

# Order matters: subclasses before the classes they derive from
_STORE_ERROR_MESSAGES = (
    (gexc.FailedPrecondition, "Operating in offline mode. Some features may be limited."),
    (gexc.ServiceUnavailable, "Connection lost. Working offline."),
    (gexc.PermissionDenied, "You don't have permission to perform this action."),
    (gexc.NotFound, "The requested resource was not found."),
    (gexc.Cancelled, "The operation was cancelled."),
    (gexc.DeadlineExceeded, "Operation timed out. Please try again."),
    (gexc.ResourceExhausted, "Too many requests. Please try again later."),
    (gexc.Unauthenticated, "Please login to continue."),
)


def describe_store_error(error: BaseException, default_message: str = DEFAULT_ERROR_MESSAGE) -> str:
    """
    Turn a Firestore failure into a message fit for an operator notification.

    Wrapped errors (raise ... from e) are unwrapped so the original gRPC
    status decides the message.
    """
    cause = error
    while cause.__cause__ is not None:
        cause = cause.__cause__

    for error_type, message in _STORE_ERROR_MESSAGES:
        if isinstance(cause, error_type):
            return message

    return str(error) or default_message
