# Copyright (c) 2009-2010 Six Apart Ltd.
# All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
# * Redistributions of source code must retain the above copyright notice,
#   this list of conditions and the following disclaimer.
#
# * Redistributions in binary form must reproduce the above copyright notice,
#   this list of conditions and the following disclaimer in the documentation
#   and/or other materials provided with the distribution.
#
# * Neither the name of Six Apart Ltd. nor the names of its contributors may
#   be used to endorse or promote products derived from this software without
#   specific prior written permission.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
# AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
# IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE
# ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE
# LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR
# CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF
# SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS
# INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN
# CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE)
# ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE
# POSSIBILITY OF SUCH DAMAGE.

"""

Typed wrappers around backend responses.

Every response is built from a `RawResponse` (or from a body string and a
status code) and never raises while doing so: a missing response, a body
that is not JSON, or a body that does not parse all leave the response with
empty contents, and the problem is logged. Failures the backend reports are
data too: check `was_success()` and the `error_map`.

Most backend calls answer with an envelope holding ``success`` and
``errors`` objects keyed by object id, which `SuccessErrorResponse` and its
subclasses pick apart.

"""

from copy import deepcopy
import http.client
import logging

import simplejson as json

from cloudobjects import dataobject
from cloudobjects.dynamic import CLASS_KEY, OBJECT_ID_KEY, TYPE_KEY
from cloudobjects.dynamic import DynamicObject, ObjectType
from cloudobjects.errors import ConversionError
from cloudobjects.geo import Distance, DistanceUnits, GeoPoint
from cloudobjects.objects import AccessList, FileMetadata, StoredFile, User
from cloudobjects.session import SessionToken


log = logging.getLogger('cloudobjects.response')

UNKNOWN = 'UNKNOWN'

typed_classes = {
    ObjectType.FILE:        FileMetadata,
    ObjectType.ACCESS_LIST: AccessList,
}


def decode_object(key, contents):
    """Turns one ``success`` entry into the most specific object available:
    an instance of the registered class named by its ``__class__``, a
    `GeoPoint`, or else a `DynamicObject`."""
    codec = dataobject.codecs_by_class_name.get(contents.get(CLASS_KEY))
    if codec is not None and issubclass(codec[0], dataobject.DataObject):
        try:
            obj = codec[2](contents)
        except ConversionError as exc:
            log.error('Could not decode %r as %s: %s', key, codec[0].__name__, exc)
        else:
            if 'object_id' in obj.fields and obj.object_id is None:
                obj.object_id = key
            return obj
    object_type = ObjectType.from_id(contents.get(TYPE_KEY))
    try:
        if object_type == ObjectType.GEO_POINT:
            return GeoPoint.from_contents(key, contents)
        if object_type in typed_classes:
            obj = typed_classes[object_type].from_dict(contents)
            if obj.object_id is None:
                obj.object_id = key
            return obj
    except ConversionError as exc:
        log.info('Could not decode %r as a %s: %s', key, object_type, exc)
    return DynamicObject(key, contents)


class ServiceResponse(object):

    """A response from the backend.

    `status_code` is the HTTP status, or 204 No Content if there was no
    response at all. The JSON object in the body, if any, is available
    through `get()` and `has()`.

    Subclasses map status codes to names for `response_code` through their
    `status_codes` tables.

    """

    NO_RESPONSE_CODE = http.client.NO_CONTENT
    SUCCESS_RANGE = range(200, 300)

    status_codes = {
        http.client.CREATED:     'CREATED',
        http.client.CONFLICT:    'EMAIL_ALREADY_EXISTS',
        http.client.BAD_REQUEST: 'INVALID_EMAIL_OR_MISSING_PASSWORD',
        http.client.NOT_FOUND:   'APPLICATION_ID_NOT_FOUND',
    }

    parse_json = True

    def __init__(self, body=None, status_code=None, headers=None):
        """Builds a response from a message body and status code.

        Optional parameter `headers` holds the response headers. When
        headers are given, the body is only read as JSON if their
        ``content-type`` says it is JSON; without headers it is always read.

        """
        if status_code is None:
            status_code = self.NO_RESPONSE_CODE
        self.status_code = status_code
        self.headers = dict((k.lower(), v) for k, v in (headers or {}).items())
        if body is None:
            body = b''
        if isinstance(body, str):
            body = body.encode('utf-8')
        self.content = body
        self.document = None
        if self.parse_json:
            self.document = self.read_document(headers is not None)
        if isinstance(self.document, dict):
            self.base_map = self.document
        else:
            self.base_map = {}

    @classmethod
    def from_raw(cls, raw, **kwargs):
        """Builds a response of this class from a `RawResponse`, or an empty
        response if `raw` is `None`."""
        if raw is None:
            log.info('Received no response')
            return cls(**kwargs)
        return cls(raw.content, raw.status, raw.headers, **kwargs)

    @classmethod
    def from_string(cls, body, status_code=http.client.OK, **kwargs):
        return cls(body, status_code, **kwargs)

    @property
    def body(self):
        return self.content.decode('utf-8', 'replace')

    @property
    def content_type(self):
        return self.headers.get('content-type', '').split(';', 1)[0].strip()

    def read_document(self, check_content_type):
        text = self.body
        if not text.strip():
            return None
        if check_content_type and 'json' not in self.content_type:
            log.info('Received non-JSON %r response with status %d',
                self.content_type, self.status_code)
            return None
        if self.status_code > http.client.ACCEPTED:
            log.info('Received error response with status %d', self.status_code)
        try:
            return json.loads(text)
        except ValueError as exc:
            log.error('Failed converting response content to JSON: %s', exc)
            return None

    def get(self, key, default=None):
        return self.base_map.get(key, default)

    def has(self, key):
        return key in self.base_map

    @property
    def results(self):
        """The ``result`` of a server function run with the request."""
        return self.get('result')

    def was(self, *status_codes):
        return self.status_code in status_codes

    def was_success(self):
        return self.status_code in self.SUCCESS_RANGE

    @property
    def response_code(self):
        return self.status_codes.get(self.status_code, UNKNOWN)

    def to_dict(self):
        return deepcopy(self.base_map)

    def to_json(self):
        return json.dumps(self.base_map)

    def __repr__(self):
        return '<%s %d %s>' % (type(self).__name__, self.status_code, self.to_json())


def as_map(value):
    if isinstance(value, dict):
        return value
    if value is not None:
        log.info('Converting a non-object value to an empty map: %r', value)
    return {}


class SuccessErrorResponse(ServiceResponse):

    """A response holding ``success`` and ``errors`` maps keyed by object
    id. Either map is empty if the response does not have it."""

    SUCCESS = 'success'
    ERRORS = 'errors'

    status_codes = {
        http.client.OK:           'LOAD_SUCCESS',
        http.client.UNAUTHORIZED: 'MISSING_OR_INVALID_CREDENTIALS',
        http.client.NOT_FOUND:    'APPLICATION_ID_NOT_FOUND',
    }

    def __init__(self, *args, **kwargs):
        super(SuccessErrorResponse, self).__init__(*args, **kwargs)
        self._success = as_map(self.get(self.SUCCESS))
        self._errors = as_map(self.get(self.ERRORS))
        self._success_objects = None

    @property
    def success_map(self):
        return dict(self._success)

    @property
    def error_map(self):
        return dict(self._errors)

    def has_success(self):
        return bool(self._success)

    def has_error(self):
        return bool(self._errors)

    def has_success_key(self, key):
        return key in self._success

    def objects_from(self, object_map):
        return [DynamicObject(key, as_map(value)) for key, value in object_map.items()]

    def success_objects(self):
        if self._success_objects is None:
            self._success_objects = self.objects_from(self._success)
        return list(self._success_objects)

    def error_objects(self):
        return self.objects_from(self._errors)


class ResponseValue(object):

    """What a modification did to one object."""

    CREATED = 'created'
    UPDATED = 'updated'
    DELETED = 'deleted'
    MISSING = 'missing'

    modified = (CREATED, UPDATED, DELETED)

    @classmethod
    def from_string(cls, value):
        """Returns the value named by `value`, ignoring case. Anything that
        is not a modification is `MISSING`."""
        if isinstance(value, str):
            for known in cls.modified:
                if value.lower() == known:
                    return known
        return cls.MISSING


class ObjectModificationResponse(SuccessErrorResponse):

    """The response to inserting, updating, or deleting objects, whose
    ``success`` map gives what happened to each object."""

    status_codes = {
        http.client.OK:           'SUCCESS',
        http.client.BAD_REQUEST:  'INVALID_JSON',
        http.client.UNAUTHORIZED: 'MISSING_OR_INVALID_CREDENTIALS',
        http.client.NOT_FOUND:    'APPLICATION_ID_NOT_FOUND',
    }

    def key_response(self, object_id):
        return ResponseValue.from_string(self._success.get(object_id))

    def was_created(self, object_id):
        return self.key_response(object_id) == ResponseValue.CREATED

    def was_updated(self, object_id):
        return self.key_response(object_id) == ResponseValue.UPDATED

    def was_deleted(self, object_id):
        return self.key_response(object_id) == ResponseValue.DELETED

    def was_modified(self, object_id):
        return self.key_response(object_id) != ResponseValue.MISSING

    def object_ids_with(self, value):
        return [object_id for object_id in self._success
            if self.key_response(object_id) == value]

    def created_object_ids(self):
        return self.object_ids_with(ResponseValue.CREATED)

    def updated_object_ids(self):
        return self.object_ids_with(ResponseValue.UPDATED)

    def deleted_object_ids(self):
        return self.object_ids_with(ResponseValue.DELETED)

    def modified_map(self):
        return dict((object_id, self.key_response(object_id))
            for object_id in self._success)


class ObjectLoadResponse(SuccessErrorResponse):

    """The response to loading or searching for objects.

    Each ``success`` entry is decoded into an instance of its registered
    class where there is one (see `decode_object()`).

    """

    COUNT_KEY = 'count'
    NO_COUNT = -1

    def __init__(self, *args, **kwargs):
        super(ObjectLoadResponse, self).__init__(*args, **kwargs)
        self._objects = None

    def object_map(self):
        if self._objects is None:
            self._objects = dict((key, decode_object(key, as_map(contents)))
                for key, contents in self._success.items())
        return self._objects

    def objects(self, cls=None):
        """Returns the loaded objects, only those that are instances of
        `cls` if it is given."""
        objects = list(self.object_map().values())
        if cls is not None:
            objects = [obj for obj in objects if isinstance(obj, cls)]
        return objects

    def object(self, object_id):
        return self.object_map().get(object_id)

    @property
    def count(self):
        """The total number of matches, if the request asked for it with
        `PagingOptions(include_count=True)`, else `NO_COUNT`."""
        count = self.get(self.COUNT_KEY)
        if isinstance(count, int) and not isinstance(count, bool):
            return count
        return self.NO_COUNT

    def distance_for(self, object_id):
        """Returns the `Distance` of an object from the point of a geo
        search run with `SearchOptions`, or `None`."""
        meta = as_map(self.get('meta')).get(object_id)
        geo = as_map(meta).get('geo') if isinstance(meta, dict) else None
        if not isinstance(geo, dict):
            return None
        distance, units = geo.get('distance'), geo.get('units')
        if distance is None or units not in DistanceUnits.all:
            return None
        return Distance(distance, units)


class CreationResponse(ServiceResponse):

    """The response to creating a user."""

    @property
    def object_id(self):
        return self.get(OBJECT_ID_KEY)

    @property
    def object_type(self):
        return self.get(TYPE_KEY)


class LoginResponse(ServiceResponse):

    """The response to a login. `session_token` is `SessionToken.FAILED`
    unless the login succeeded."""

    PROFILE_KEY = 'profile'

    status_codes = {
        http.client.OK:           'LOG_IN_SUCCESS',
        http.client.UNAUTHORIZED: 'MISSING_OR_INVALID_AUTHORIZATION',
        http.client.NOT_FOUND:    'APPLICATION_ID_NOT_FOUND',
    }

    def __init__(self, *args, **kwargs):
        super(LoginResponse, self).__init__(*args, **kwargs)
        if self.was_success():
            self.session_token = SessionToken.from_dict(self.base_map)
        else:
            self.session_token = SessionToken.FAILED

    @property
    def profile(self):
        return dict(as_map(self.get(self.PROFILE_KEY)))

    def user(self, cls=User):
        """Returns the logged in user's profile as an instance of `cls`,
        holding the session token."""
        user = cls.from_dict(self.profile)
        user.session_token = self.session_token
        return user


class LogoutResponse(ServiceResponse):

    status_codes = {
        http.client.OK:           'LOG_OUT_SUCCESS',
        http.client.UNAUTHORIZED: 'MISSING_OR_INVALID_SESSION',
        http.client.NOT_FOUND:    'APPLICATION_ID_NOT_FOUND',
    }


class FileCreationResponse(ServiceResponse):

    status_codes = {
        http.client.OK:           'FILE_REPLACED',
        http.client.CREATED:      'FILE_CREATED',
        http.client.UNAUTHORIZED: 'MISSING_OR_INVALID_CREDENTIALS',
        http.client.NOT_FOUND:    'APPLICATION_ID_NOT_FOUND',
    }

    @property
    def file_id(self):
        return self.get('key')


class FileLoadResponse(ServiceResponse):

    """The response to loading a file. The body is the file itself and is
    not read as JSON."""

    parse_json = False

    status_codes = {
        http.client.OK:           'LOAD_SUCCESS',
        http.client.UNAUTHORIZED: 'MISSING_OR_INVALID_AUTHORIZATION',
        http.client.NOT_FOUND:    'APPLICATION_ID_OR_FILE_NOT_FOUND',
    }

    def __init__(self, body=None, status_code=None, headers=None, file_id=None):
        super(FileLoadResponse, self).__init__(body, status_code, headers)
        self.file_id = file_id

    @property
    def file(self):
        if not self.was_success():
            return None
        return StoredFile(self.file_id, self.content,
            self.content_type or StoredFile.DEFAULT_CONTENT_TYPE)


class ListOfValuesResponse(ServiceResponse):

    """A response whose body is a JSON list."""

    @property
    def values(self):
        if isinstance(self.document, list):
            return list(self.document)
        return []


class PushChannelResponse(ServiceResponse):

    @property
    def channel_name(self):
        name = self.get('name')
        return None if name is None else str(name)

    def list_of(self, key):
        value = self.get(key)
        return list(value) if isinstance(value, list) else []

    @property
    def user_ids(self):
        return self.list_of('user_ids')

    @property
    def device_ids(self):
        return self.list_of('device_ids')


class SocialGraphResponse(ServiceResponse):

    """The response to a query proxied to a social network. The body is
    whatever that network returned."""

    @property
    def response_code(self):
        if 200 <= self.status_code < 300:
            return 'QUERY_SUCCESS'
        if 300 <= self.status_code < 506:
            return 'FAILURE'
        return UNKNOWN
