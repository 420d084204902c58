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

Typed objects stored on the backend.

Subclass `CloudObject` to store objects of your own classes. Give the
subclass a ``class_name``, the name the backend files its instances under,
and declare its attributes as fields:

>>> from cloudobjects import fields, objects
>>> class Recipe(objects.CloudObject):
...     class_name = 'Recipe'
...     title      = fields.Field()
...     created    = fields.Datetime()
...

Loaded objects tagged with a registered ``class_name`` come back as
instances of that class (see `cloudobjects.response.ObjectLoadResponse`).

"""

import logging

from cloudobjects import fields
from cloudobjects.dataobject import DataObject
from cloudobjects.dynamic import ACCESS_KEY, OBJECT_ID_KEY, TYPE_KEY
from cloudobjects.dynamic import DynamicObject, ObjectType, generate_unique_object_id
from cloudobjects.errors import CreationError
from cloudobjects.session import SetOnce, StoreIdentifier


log = logging.getLogger('cloudobjects.objects')


def empty_list(obj):
    return []


class CloudObject(DataObject):

    """An object stored on the backend under its `object_id`.

    Each object is stored either at application level or for one user, as
    its store identifier says. The identifier can be set only once: see
    `save_with()`.

    """

    object_id = fields.Field(api_name=OBJECT_ID_KEY)
    access    = fields.List(fields.Field(), api_name=ACCESS_KEY)

    def __init__(self, **kwargs):
        if 'object_id' not in kwargs:
            kwargs['object_id'] = generate_unique_object_id()
        super(CloudObject, self).__init__(**kwargs)
        self._saved_with = SetOnce()

    def save_with(self, identifier):
        """Sets where this object is stored, either a `StoreIdentifier` or a
        logged in `User`.

        Raises `AccessError` if the object was already set to be stored
        somewhere else.

        """
        if isinstance(identifier, User):
            identifier = identifier.store_identifier()
        self._saved_with.set(identifier)

    @property
    def saved_with(self):
        return self._saved_with.value(StoreIdentifier.DEFAULT)

    def has_store_identifier(self):
        """Returns whether `save_with()` was called on this object."""
        return self._saved_with.is_set()

    def is_application_level(self):
        return self.saved_with.is_application_level()

    def is_user_level(self):
        return self.saved_with.is_user_level()

    def grant_access(self, access_list):
        """Shares this object through `access_list` (an `AccessList` or its
        id)."""
        acl_id = getattr(access_list, 'object_id', access_list)
        if self.access is None:
            self.access = []
        if acl_id not in self.access:
            self.access.append(acl_id)

    def as_dynamic(self):
        return DynamicObject(self.object_id, self.to_dict())

    def as_keyed_object(self):
        return self.as_dynamic().as_keyed_object()

    def __repr__(self):
        return '<%s %s>' % (type(self).__name__, self.object_id)


class User(DataObject):

    """A user account.

    The user's `email` and `password` are its login credentials. Everything
    else, including fields declared on subclasses, makes up its profile.
    A user returned by a login also holds the `session_token` it got.

    """

    class_name = 'CMUser'

    PROFILE_KEY = 'profile'
    CREDENTIALS_KEY = 'credentials'

    object_id = fields.Field(api_name=OBJECT_ID_KEY)
    email     = fields.Field()
    services  = fields.List(fields.Field(), api_name='__services__')

    def __init__(self, email=None, password=None, **kwargs):
        super(User, self).__init__(**kwargs)
        if email is not None:
            self.email = email
        self.password = password
        self.session_token = None

    def is_logged_in(self):
        return self.session_token is not None and self.session_token.is_valid()

    def store_identifier(self):
        if self.session_token is None:
            raise CreationError('User %r is not logged in' % (self.email,))
        return StoreIdentifier.for_user(self.session_token)

    def profile(self):
        """Returns the user's profile as a dictionary."""
        data = self.to_dict()
        data.pop('email', None)
        return data

    def credentials(self):
        return {'email': self.email, 'password': self.password or ''}

    def to_transport_dict(self):
        """Returns the body that creates this user's account."""
        return {
            self.CREDENTIALS_KEY: self.credentials(),
            self.PROFILE_KEY: self.profile(),
        }

    def __repr__(self):
        return '<%s %s>' % (type(self).__name__, self.email)


class StoredFile(object):

    """A file's contents and MIME type, filed under `file_id`."""

    DEFAULT_CONTENT_TYPE = 'application/octet-stream'
    IMAGE_PNG_CONTENT_TYPE = 'image/png'

    def __init__(self, file_id=None, contents=None, content_type=None):
        if contents is None:
            raise CreationError('Cannot create a file with no contents')
        if isinstance(contents, str):
            contents = contents.encode('utf-8')
        if file_id is None:
            file_id = generate_unique_object_id()
        self.file_id = file_id
        self.contents = bytes(contents)
        self.content_type = content_type or self.DEFAULT_CONTENT_TYPE
        self._saved_with = SetOnce()

    def save_with(self, identifier):
        if isinstance(identifier, User):
            identifier = identifier.store_identifier()
        self._saved_with.set(identifier)

    @property
    def saved_with(self):
        return self._saved_with.value(StoreIdentifier.DEFAULT)

    def has_store_identifier(self):
        """Returns whether `save_with()` was called on this object."""
        return self._saved_with.is_set()

    def to_dict(self):
        return {
            'key': self.file_id,
            'content_type': self.content_type,
            TYPE_KEY: ObjectType.FILE,
        }

    def __eq__(self, other):
        if not isinstance(other, StoredFile):
            return NotImplemented
        return ((self.file_id, self.content_type, self.contents)
            == (other.file_id, other.content_type, other.contents))

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self):
        return hash((self.file_id, self.content_type))

    def __repr__(self):
        return '<StoredFile %s %s, %d bytes>' % (self.file_id,
            self.content_type, len(self.contents))


class FileMetadata(DataObject):

    """What the backend knows about a stored file, as found by
    `WebService.load_file_metadata()`."""

    object_id    = fields.Field(api_name=OBJECT_ID_KEY)
    object_type  = fields.Constant(ObjectType.FILE, api_name=TYPE_KEY)
    content_type = fields.Field()
    filename     = fields.Field()


class PushTarget(object):

    """A user a push notification goes to, named by email address, user id,
    or username."""

    EMAIL = 'email'
    USER_ID = 'userid'
    USERNAME = 'username'

    def __init__(self, kind, value):
        if kind not in (self.EMAIL, self.USER_ID, self.USERNAME):
            raise CreationError('Unknown push target kind %r' % (kind,))
        self.kind = kind
        self.value = value

    @classmethod
    def email(cls, email):
        return cls(cls.EMAIL, email)

    @classmethod
    def user_id(cls, user_id):
        return cls(cls.USER_ID, user_id)

    @classmethod
    def username(cls, username):
        return cls(cls.USERNAME, username)

    def to_dict(self):
        return {self.kind: self.value}

    def __eq__(self, other):
        if not isinstance(other, PushTarget):
            return NotImplemented
        return (self.kind, self.value) == (other.kind, other.value)

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self):
        return hash((self.kind, self.value))


class PushNotification(object):

    """A push notification message and who it should reach: users, devices,
    or the subscribers of a channel."""

    def __init__(self, message='', targets=None, device_ids=None, channel=None):
        self.message = message
        self.targets = list(targets or ())
        self.device_ids = list(device_ids or ())
        self.channel = channel

    def add_target(self, target):
        self.targets.append(target)
        return self

    def add_user(self, user):
        """Sends the notification to `user`, by user id if it has one and
        otherwise by email address."""
        if user.object_id is not None:
            return self.add_target(PushTarget.user_id(user.object_id))
        return self.add_target(PushTarget.email(user.email))

    def add_device_id(self, device_id):
        self.device_ids.append(device_id)
        return self

    def to_dict(self):
        data = {'text': self.message}
        if self.targets:
            data['users'] = [target.to_dict() for target in self.targets]
        if self.device_ids:
            data['device_ids'] = list(self.device_ids)
        if self.channel is not None:
            data['channel'] = self.channel
        return data


class Channel(object):

    """A named push notification channel and its subscribers."""

    def __init__(self, name, users=None, device_ids=None):
        if not name:
            raise CreationError('A channel needs a name')
        self.name = name
        self.users = list(users or ())
        self.device_ids = list(device_ids or ())

    def add_user(self, user):
        self.users.append(getattr(user, 'object_id', user))
        return self

    def add_device_id(self, device_id):
        self.device_ids.append(device_id)
        return self

    def to_dict(self):
        return {'name': self.name, 'users': list(self.users),
            'device_ids': list(self.device_ids)}

    def __eq__(self, other):
        if not isinstance(other, Channel):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self):
        return hash(self.name)

    def __repr__(self):
        return '<Channel %s>' % self.name


class AccessPermission(object):
    CREATE = 'c'
    READ = 'r'
    UPDATE = 'u'
    DELETE = 'd'

    all = (CREATE, READ, UPDATE, DELETE)


class AccessList(CloudObject):

    """A list of users granted some permissions on the objects shared
    through it.

    An access list belongs to the user who created it, and is always stored
    with that user.

    """

    object_type = fields.Constant(ObjectType.ACCESS_LIST, api_name=TYPE_KEY)
    members     = fields.List(fields.Field(), default=empty_list)
    permissions = fields.List(fields.Field(), default=empty_list)

    def __init__(self, owner=None, permissions=(), **kwargs):
        super(AccessList, self).__init__(**kwargs)
        self.owner = owner
        if owner is not None and owner.session_token is not None:
            self.save_with(owner)
        if permissions:
            self.grant_permissions(*permissions)

    def grant_access_to(self, *users):
        """Grants access to users, given as `User` instances or user ids."""
        for user in users:
            user_id = getattr(user, 'object_id', user)
            if user_id not in self.members:
                self.members.append(user_id)

    def grant_permissions(self, *permissions):
        for permission in permissions:
            if permission not in AccessPermission.all:
                raise CreationError('Unknown access permission %r' % (permission,))
            if permission not in self.permissions:
                self.permissions.append(permission)

    def allows_access_to(self, user):
        if user is None:
            return False
        return getattr(user, 'object_id', user) in self.members

    def grants_permissions(self, *permissions):
        return all(permission in self.permissions for permission in permissions)

    def is_owned_by(self, user):
        return self.owner is not None and self.owner == user
