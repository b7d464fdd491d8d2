# errors.py
# Ошибки предметной области. Каждая несёт код и понятное пользователю сообщение.


class FashionVoteError(Exception):
    """Базовая ошибка. Маршруты превращают её в JSON-ответ с нужным статусом."""

    status_code = 500
    code = 'FASHIONVOTE_ERROR'

    def __init__(self, message, code=None, details=None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.details = details or {}

    def to_dict(self):
        result = {'error': self.code, 'message': self.message}
        if self.details:
            result['details'] = self.details
        return result


# --- Четыре вида ошибок ---

class ValidationError(FashionVoteError):
    status_code = 400
    code = 'VALIDATION_ERROR'


class NotFoundError(FashionVoteError):
    status_code = 404
    code = 'NOT_FOUND'


class ConflictError(FashionVoteError):
    status_code = 409
    code = 'CONFLICT'


class AuthorizationError(FashionVoteError):
    status_code = 403
    code = 'FORBIDDEN'


# --- Конкретные причины отказа ---

class NotAuthenticated(AuthorizationError):
    status_code = 401
    code = 'NOT_AUTHENTICATED'

    def __init__(self):
        super().__init__('You need to log in first.')


class RoleRequired(AuthorizationError):
    code = 'ROLE_REQUIRED'

    def __init__(self, roles):
        super().__init__(
            f"This action requires the {' or '.join(roles)} role.",
            details={'roles': list(roles)}
        )


class NotAParticipant(AuthorizationError):
    code = 'NOT_A_PARTICIPANT'

    def __init__(self, email=None):
        super().__init__(
            'Only registered participants can do this.',
            details={'email': email} if email else None
        )


class NotRegistered(AuthorizationError):
    code = 'NOT_REGISTERED'

    def __init__(self, show_id):
        super().__init__('You are not registered for this show.', details={'show_id': show_id})


class NoSelection(ValidationError):
    code = 'NO_SELECTION'

    def __init__(self):
        super().__init__('You must vote for at least one designer.')


class ShowNotFound(NotFoundError):
    code = 'SHOW_NOT_FOUND'

    def __init__(self, show_id):
        super().__init__('Show not found.', details={'show_id': show_id})


class ParticipantNotFound(NotFoundError):
    code = 'PARTICIPANT_NOT_FOUND'

    def __init__(self, participant_id):
        super().__init__('Participant not found.', details={'participant_id': participant_id})


class DesignerNotFound(NotFoundError):
    code = 'DESIGNER_NOT_FOUND'

    def __init__(self, designer_id):
        super().__init__('Designer not found.', details={'designer_id': designer_id})


class VoteNotFound(NotFoundError):
    code = 'VOTE_NOT_FOUND'

    def __init__(self, show_id, designer_id):
        super().__init__(
            'No vote found to remove.',
            details={'show_id': show_id, 'designer_id': designer_id}
        )


class RegistrationNotFound(NotFoundError):
    code = 'REGISTRATION_NOT_FOUND'

    def __init__(self, show_id):
        super().__init__('You are not registered for this show.', details={'show_id': show_id})


class AlreadyRegistered(ConflictError):
    code = 'ALREADY_REGISTERED'

    def __init__(self, show_id):
        super().__init__('You are already registered for this show.', details={'show_id': show_id})


class SchedulingConflict(ConflictError):
    code = 'SCHEDULING_CONFLICT'

    def __init__(self, show_id, conflicting_show):
        super().__init__(
            f'This show overlaps with "{conflicting_show.name}", which you are already registered for.',
            details={'show_id': show_id, 'conflicting_show_id': conflicting_show.id}
        )


class ShowAlreadyStarted(ConflictError):
    code = 'SHOW_ALREADY_STARTED'

    def __init__(self, show):
        super().__init__(
            f'You cannot unregister from "{show.name}": it has already started.',
            details={'show_id': show.id}
        )


class ShowNotFinished(ConflictError):
    code = 'SHOW_NOT_FINISHED'

    def __init__(self, show):
        super().__init__(
            f'You can only delete past shows. "{show.name}" ends at {show.end_time.isoformat()}.',
            details={'show_id': show.id}
        )


class DesignerAlreadyAssigned(ConflictError):
    code = 'DESIGNER_ALREADY_ASSIGNED'

    def __init__(self, designer_id, show_id):
        super().__init__(
            'Designer is already assigned to this show.',
            details={'designer_id': designer_id, 'show_id': show_id}
        )


class VoteImageExists(ConflictError):
    code = 'VOTE_IMAGE_EXISTS'

    def __init__(self, show_id, designer_id):
        super().__init__(
            'This vote already has an image. Remove the vote to replace it.',
            details={'show_id': show_id, 'designer_id': designer_id}
        )


class DuplicateEmail(ConflictError):
    code = 'DUPLICATE_EMAIL'

    def __init__(self, email):
        super().__init__(f'The email {email} is already in use.', details={'email': email})
