"""
Typed domain errors raised by the lifecycle, bidding and selection modules.

Each error carries the HTTP status the API layer renders it with, so route
handlers never translate them by hand.
"""


class DomainError(Exception):
    """Base class for every expected, caller-facing failure"""
    status_code = 400
    code = 'domain_error'
    default_message = 'Request could not be processed'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self):
        return {'error': self.message, 'code': self.code}


class ValidationError(DomainError):
    code = 'validation_error'
    default_message = 'Invalid input data'


class InvalidTransition(DomainError):
    """Requested status change is not in the transition table, or its precondition is unmet"""
    code = 'invalid_transition'

    def __init__(self, current, requested, reason=None):
        self.current = getattr(current, 'value', current)
        self.requested = getattr(requested, 'value', requested)
        message = f'Cannot move request from {self.current} to {self.requested}'
        if reason:
            message = f'{message}: {reason}'
        super().__init__(message)

    def to_dict(self):
        data = super().to_dict()
        data['current_status'] = self.current
        data['requested_status'] = self.requested
        return data


class InvalidState(DomainError):
    code = 'invalid_state'
    default_message = 'Request is not in a state that allows this action'


class Unauthorized(DomainError):
    status_code = 403
    code = 'unauthorized'
    default_message = 'Access denied'


class NotFound(DomainError):
    status_code = 404
    code = 'not_found'
    default_message = 'Not found'


class Conflict(DomainError):
    """A conditional update matched no rows: another writer changed the record first"""
    status_code = 409
    code = 'conflict'
    default_message = 'The record was changed by another request; reload and try again'


class BidNotFound(DomainError):
    code = 'bid_not_found'
    default_message = 'Selected contractor has not submitted a pending bid'
