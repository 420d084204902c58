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

Session tokens and store identifiers.

A `SessionToken` is what a successful login returns; user-scoped requests
send it back in a header. A `StoreIdentifier` says whether an object lives
at application level or belongs to a logged-in user, and so which routes
its requests take.

"""

from datetime import datetime
import logging
import time

import simplejson as json

from cloudobjects.errors import AccessError, ConversionError, CreationError
from cloudobjects.fields import UTC


log = logging.getLogger('cloudobjects.session')

utc = UTC()


class SetOnce(object):

    """A holder for a value that may be set only once.

    Setting the value it already holds again is allowed; setting any other
    value raises `AccessError`.

    """

    def __init__(self, value=None):
        self._value = value

    def is_set(self):
        return self._value is not None

    def set(self, value):
        if self._value is not None and value != self._value:
            raise AccessError('Cannot change %r to %r once it is set'
                % (self._value, value))
        self._value = value
        return value

    def value(self, default=None):
        if self._value is None:
            return default
        return self._value


class SessionToken(object):

    """A login session: an opaque token string and its expiry time.

    The `FAILED` token stands for no session at all, as returned by a failed
    login. It is never valid.

    """

    TOKEN_KEY = 'session_token'
    EXPIRES_KEY = 'expires'
    INVALID_TOKEN = 'invalidToken'
    dateformat = '%a, %d %b %Y %H:%M:%S GMT'

    def __init__(self, token, expires):
        if not token:
            raise CreationError('Cannot create a session token without a token')
        self.token = token
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=utc)
        self.expires = expires

    @classmethod
    def from_dict(cls, data):
        """Builds a token from a login response body, or returns `FAILED`
        if the body does not hold a token and a readable expiry."""
        if not isinstance(data, dict):
            return cls.FAILED
        token = data.get(cls.TOKEN_KEY)
        expires = data.get(cls.EXPIRES_KEY)
        if not token or token == 'null' or not expires:
            return cls.FAILED
        try:
            expires = cls.parse_date(expires)
        except ValueError:
            log.warning('Unreadable session expiry %r', expires)
            return cls.FAILED
        return cls(token, expires)

    @classmethod
    def from_json(cls, text):
        if not text or text.strip() == 'null':
            return cls.FAILED
        try:
            data = json.loads(text)
        except ValueError as exc:
            raise ConversionError('Could not decode session token from %r: %s'
                % (text, exc))
        return cls.from_dict(data)

    @classmethod
    def parse_date(cls, value):
        return datetime(*(time.strptime(value, cls.dateformat))[0:6], tzinfo=utc)

    def format_date(self):
        return self.expires.astimezone(utc).strftime(self.dateformat)

    def is_valid(self):
        if self is SessionToken.FAILED or self.token == self.INVALID_TOKEN:
            return False
        return self.expires > datetime.now(utc)

    def to_dict(self):
        return {self.TOKEN_KEY: self.token, self.EXPIRES_KEY: self.format_date()}

    def to_json(self):
        return json.dumps(self.to_dict())

    def __eq__(self, other):
        if not isinstance(other, SessionToken):
            return NotImplemented
        return (self.token, self.expires) == (other.token, other.expires)

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self):
        return hash(self.token)

    def __repr__(self):
        return '<SessionToken %s expires %s>' % (self.token, self.expires)


SessionToken.FAILED = SessionToken(SessionToken.INVALID_TOKEN,
    datetime.fromtimestamp(0, utc))


class ObjectLevel(object):
    APPLICATION = 'application'
    USER = 'user'
    UNKNOWN = 'unknown'


class StoreIdentifier(object):

    """Where an object is stored: at application level, or for the user
    holding `session_token`.

    Any level but `ObjectLevel.APPLICATION` needs a session token.

    """

    def __init__(self, level=ObjectLevel.APPLICATION, session_token=None):
        if level not in (ObjectLevel.APPLICATION, ObjectLevel.USER, ObjectLevel.UNKNOWN):
            raise CreationError('Unknown object level %r' % (level,))
        if level != ObjectLevel.APPLICATION and session_token is None:
            raise CreationError('A %s level store identifier needs a session token' % level)
        self.level = level
        self.session_token = session_token

    @classmethod
    def for_user(cls, session_token):
        return cls(ObjectLevel.USER, session_token)

    def is_application_level(self):
        return self.level == ObjectLevel.APPLICATION

    def is_user_level(self):
        return self.level == ObjectLevel.USER

    def __eq__(self, other):
        if not isinstance(other, StoreIdentifier):
            return NotImplemented
        return (self.level, self.session_token) == (other.level, other.session_token)

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self):
        return hash((self.level, self.session_token))

    def __repr__(self):
        return '<StoreIdentifier %s>' % self.level


StoreIdentifier.DEFAULT = StoreIdentifier()
