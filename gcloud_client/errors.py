# -*- coding: utf-8 -*-
# Copyright 2015 Red Hat, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
#     Unless required by applicable law or agreed to in writing, software
#     distributed under the License is distributed on an "AS IS" BASIS,
#     WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#     See the License for the specific language governing permissions and
#     limitations under the License.

import http.client as httplib
import json
import sys


class Error(Exception):
    """Base error for all gcloud_client operations."""
    pass


class Credentials(Error):
    """Credentials errors."""
    pass


class Http(Error):
    """HTTP specific errors."""
    code = None

    def __init__(self, message=None, code=None):
        if code:
            self.code = code
        self.message = message

    def __str__(self):
        msg = 'HTTP Error %s' % self.code
        if self.message:
            msg += ': %s' % self.message
        return msg


class Fatal(Http):
    """Fatal HTTP exceptions."""
    pass


class Transient(Http):
    """Transient  HTTP exceptions."""
    pass


http_errors = {
    httplib.REQUEST_TIMEOUT: ('RequestTimeout', Transient),
    httplib.INTERNAL_SERVER_ERROR: ('InternalServer', Transient),
    httplib.BAD_GATEWAY: ('BadGateway', Transient),
    httplib.SERVICE_UNAVAILABLE: ('ServiceUnavailable', Transient),
    httplib.GATEWAY_TIMEOUT: ('GatewayTimeout', Transient),
    httplib.NOT_FOUND: ('NotFound', Fatal),
    httplib.BAD_REQUEST: ('BadRequest', Fatal),
    httplib.FORBIDDEN: ('Forbidden', Fatal),
    httplib.UNAUTHORIZED: ('Unauthorized', Fatal),
    httplib.CONFLICT: ('Conflict', Fatal),
    httplib.PRECONDITION_FAILED: ('PreconditionFailed', Fatal),
    httplib.REQUESTED_RANGE_NOT_SATISFIABLE: ('InvalidRange', Fatal),
    429: ('TooManyRequests', Transient),
}


def create_http_exception(status_code, message=None):
    """Create an http exception.

    Create an Http exception instance as specific as possible.

    For status codes that have specific exceptions, like with 408
    (RequestTimeout class), those will be returned, but for those that we don't
    have one we will return a generic Http error with the right status code.

    :param status_code: Status code of the http error
    :type status_code: int or string
    :param message: Detailed message for the error
    :type message: str
    :returns: Http exception instance as specific as possible
    :rtype: Http or subclass
    """
    # Try to convert status_code to an integer if it's not one already
    if not isinstance(status_code, int):
        try:
            status_code = int(status_code)
        except ValueError:
            pass

    # Get specific exception if possible
    cls_name, __ = http_errors.get(status_code, (None, None))
    if cls_name:
        return globals()[cls_name](message)

    # Return generic exception
    return Http(message, status_code)


# Dynamically create all HTTP error classes from http_errors dictionary
for status_code, (name, error_class) in http_errors.items():
    new_class = type(name, (error_class,),
                     {'__module__': __name__, 'code': status_code})
    sys.modules[__name__ + '.' + name] = new_class
    globals()[new_class.__name__] = new_class


class DatastoreError(Http):
    """Errors returned by the Datastore service."""
    default_message = 'An unknown error occured'

    def __init__(self, message=None, code=None):
        super(DatastoreError, self).__init__(message or self.default_message,
                                             code)


class UnknownDatastoreError(DatastoreError):
    pass


class TransactionAborted(DatastoreError):
    default_message = 'The transaction was aborted.'


class Timeout(DatastoreError):
    default_message = 'The operation timed out.'


class NeedIndex(DatastoreError):
    default_message = 'An index is needed for the query to succeed.'


class PermissionDenied(DatastoreError):
    default_message = 'Permission denied.'


class InternalError(DatastoreError):
    default_message = 'Internal service error.'


class QuotaExceeded(DatastoreError):
    default_message = 'Quota was exceeded.'


# Canonical status names used in Datastore v1 JSON error bodies
datastore_errors = {
    'ABORTED': TransactionAborted,
    'DEADLINE_EXCEEDED': Timeout,
    'PERMISSION_DENIED': PermissionDenied,
    'UNAUTHENTICATED': PermissionDenied,
    'RESOURCE_EXHAUSTED': QuotaExceeded,
    'INTERNAL': InternalError,
    'UNAVAILABLE': InternalError,
}


def create_datastore_exception(status_code, body=None):
    """Create a Datastore exception from an error response.

    The Datastore REST API returns a JSON body like
    {"error": {"code": 409, "status": "ABORTED", "message": "..."}}; the
    status name selects the exception class.  A FAILED_PRECONDITION status
    whose message talks about an index is reported as NeedIndex.

    :param status_code: HTTP status code of the response.
    :type status_code: int
    :param body: Raw response body.
    :type body: bytes or str
    :returns: Datastore exception instance as specific as possible.
    :rtype: DatastoreError or subclass
    """
    status = message = None
    if body:
        try:
            if isinstance(body, bytes):
                body = body.decode('utf-8')
            error = json.loads(body).get('error', {})
            status = error.get('status')
            message = error.get('message')
        except (ValueError, AttributeError):
            message = body

    if status == 'FAILED_PRECONDITION' and 'index' in (message or '').lower():
        cls = NeedIndex
    else:
        cls = datastore_errors.get(status, UnknownDatastoreError)

    if cls is UnknownDatastoreError:
        message = 'An unknown error occured (%s: %s).' % (status or
                                                          status_code,
                                                          message)
    return cls(message, status_code)


class PropertyValidation(Error):
    """A model property failed validation while mapping to or from entities.

    :ivar property_name: Name of the offending model field.
    :ivar kind: Kind (or model class name) being mapped.
    """

    def __init__(self, message, property_name=None, kind=None):
        super(PropertyValidation, self).__init__(message)
        self.message = message
        self.property_name = property_name
        self.kind = kind

    def __str__(self):
        return self.message


class ModelRegistration(Error):
    """Invalid model or description registration."""
    pass


class TransactionState(Error):
    """A db transaction was used after being committed or rolled back."""
    pass


class KeyNotFound(Error):
    """Lookup of a single model whose key does not exist."""
    pass
