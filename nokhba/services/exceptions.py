"""
Domain errors raised by the services and mapped to HTTP responses by the routers
"""


class PortalError(Exception):
    """Base class for expected, user-facing failures"""
    status_code = 400
    message = "Request could not be processed"

    def __init__(self, message: str = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class StudentNotFound(PortalError):
    status_code = 404
    message = "Student profile not found"


class LessonNotFound(PortalError):
    status_code = 404
    message = "Lesson not found"


class AttemptNotFound(PortalError):
    status_code = 404
    message = "Quiz attempt not found"


class InvalidLesson(PortalError):
    status_code = 400
    message = "Invalid lesson data"


class InvalidAnswer(PortalError):
    status_code = 400
    message = "Invalid answer selection"


class IncompleteAnswers(PortalError):
    status_code = 400
    message = "All questions must be answered before submitting"


class AttemptClosed(PortalError):
    status_code = 409
    message = "This quiz attempt has already been submitted"


class LessonAlreadyPassed(PortalError):
    status_code = 409
    message = "Lesson is already unlocked"


class InvalidCodeValue(PortalError):
    status_code = 400
    message = "Unsupported recharge code value"


class EmptyMessage(PortalError):
    status_code = 400
    message = "Message must not be empty"
