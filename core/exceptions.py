"""
Domain errors raised by the ledger, payment and conversion services.
Subclass DRF APIException so views can let them propagate to the handler.
"""
from rest_framework import status
from rest_framework.exceptions import APIException


class NotFound(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found.'
    default_code = 'not_found'


class InvalidAmount(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid amount.'
    default_code = 'invalid_amount'


class MissingField(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Missing required field.'
    default_code = 'missing_field'

    def __init__(self, field=None, detail=None, code=None):
        self.field = field
        if detail is None and field:
            detail = f'{field} is required'
        super().__init__(detail, code)


class LeadAlreadyConverted(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Lead has already been converted.'
    default_code = 'already_converted'


class PersistenceError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Could not save changes. Please retry.'
    default_code = 'persistence_error'


class EmailDeliveryFailure(Exception):
    """Raised inside the notifier when a message could not be sent. Never leaves it."""


class DuplicateStudent(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'A student with this phone number already exists.'
    default_code = 'duplicate_phone'
