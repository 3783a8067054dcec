"""Error kinds raised by the services and translated by the HTTP layer.

Every failure that reaches a client is one of these. The ``message`` is
safe to show; anything else stays in the server log.
"""


class TaskTrackerError(Exception):
    status_code = 500
    message = 'Server error'

    def __init__(self, message=None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_dict(self):
        return {'message': self.message}


class ValidationError(TaskTrackerError):
    """Malformed or missing input. Carries a list of field/message pairs."""

    status_code = 400
    message = 'Validation failed'

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__('; '.join(e['message'] for e in self.errors) or None)

    @classmethod
    def single(cls, field, message):
        return cls([{'field': field, 'message': message}])

    def to_dict(self):
        return {'errors': self.errors}


class DuplicateIdentity(TaskTrackerError):
    status_code = 409
    message = 'Email already registered'


class InvalidCredentials(TaskTrackerError):
    status_code = 401
    message = 'Invalid credentials'


class Unauthenticated(TaskTrackerError):
    status_code = 401
    message = 'Not authenticated'


class NotFound(TaskTrackerError):
    status_code = 404
    message = 'Task not found'


class InternalFailure(TaskTrackerError):
    status_code = 500
    message = 'Server error'
