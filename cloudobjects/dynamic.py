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

Schema-free objects stored on the backend.

A `DynamicObject` is a dictionary of contents filed under one top-level key,
which is the object's id on the backend. It is the shape of every entry in a
response's ``success`` map::

    {"4f2b...": {"__class__": "Recipe", "title": "Soup"}}

Well-known keys inside the contents tag the object with a class name
(``__class__``) or a backend type (``__type__``, such as ``geopoint``).

"""

from copy import deepcopy
import logging
import uuid

import simplejson as json

from cloudobjects import dataobject, fields
from cloudobjects.errors import ConversionError


log = logging.getLogger('cloudobjects.dynamic')

CLASS_KEY = '__class__'
TYPE_KEY = '__type__'
OBJECT_ID_KEY = '__id__'
ACCESS_KEY = '__access__'


def generate_unique_object_id():
    return str(uuid.uuid4())


class ObjectType(object):

    """The backend types an object can be tagged with through ``__type__``."""

    GEO_POINT = 'geopoint'
    FILE = 'file'
    ACCESS_LIST = 'acl'
    NONE = 'none'

    known = (GEO_POINT, FILE, ACCESS_LIST)

    @classmethod
    def from_id(cls, value):
        """Returns the type named `value`, or `NONE` for anything else."""
        if isinstance(value, str) and value.lower() in cls.known:
            return value.lower()
        return cls.NONE


def is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class DynamicObject(object):

    """A key/value object with a single top-level identifying key.

    Values are stored in their JSON form: adding another `DynamicObject`
    stores a copy of its contents, so later changes to either object do not
    show up in the other. Dates and `DataObject` instances are encoded
    through the codecs registered in `cloudobjects.dataobject`.

    """

    def __init__(self, key=None, contents=None):
        """Creates an object filed under `key` (a new UUID if not given)
        holding a copy of the `contents` dictionary."""
        if key is None:
            key = generate_unique_object_id()
        self._key = key
        self._contents = {}
        if contents:
            for name, value in contents.items():
                self.add(name, value)

    @classmethod
    def from_dict(cls, top_level_map):
        """Builds an object from a dictionary with exactly one key, whose
        value is the object's contents."""
        if not isinstance(top_level_map, dict) or len(top_level_map) != 1:
            raise ConversionError('Cannot create a %s from a map without exactly 1 key: %r'
                % (cls.__name__, top_level_map))
        (key, contents), = top_level_map.items()
        if not isinstance(contents, dict):
            raise ConversionError('Value for %r is not an object: %r' % (key, contents))
        return cls.from_contents(key, contents)

    @classmethod
    def from_contents(cls, key, contents):
        """Builds an object of this class filed under `key` from a contents
        dictionary, validating it as the class requires."""
        self = cls.__new__(cls)
        DynamicObject.__init__(self, key, contents)
        self.validate()
        return self

    @classmethod
    def from_json(cls, text):
        try:
            data = json.loads(text)
        except ValueError as exc:
            raise ConversionError('Could not decode %s from %r: %s'
                % (cls.__name__, text, exc))
        return cls.from_dict(data)

    def validate(self):
        """Raises `ConversionError` if the contents are not valid for this
        class. This implementation accepts any contents."""
        pass

    @property
    def key(self):
        return self._key

    @property
    def contents(self):
        """A copy of the object's contents."""
        return deepcopy(self._contents)

    def add(self, key, value):
        if isinstance(value, DynamicObject):
            value = value.contents
        elif isinstance(value, dataobject.DataObject):
            value = value.to_dict()
        else:
            value = dataobject.encode(deepcopy(value))
        self._contents[key] = value
        return self

    def remove(self, key):
        """Removes `key` and returns its value, or `None` if it was not
        set."""
        return self._contents.pop(key, None)

    def has(self, key):
        return key in self._contents

    __contains__ = has

    def get(self, key, default=None):
        return self._contents.get(key, default)

    def get_int(self, key, default=None):
        value = self._contents.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        return default

    def get_float(self, *keys, **kwargs):
        """Returns the first of the given keys that holds a number, as a
        float.

        Returns keyword argument `default` (or `None`) if none do.

        """
        for key in keys:
            value = self._contents.get(key)
            if is_number(value):
                return float(value)
        return kwargs.get('default')

    def get_bool(self, key, default=None):
        value = self._contents.get(key)
        if isinstance(value, bool):
            return value
        return default

    def get_string(self, key, default=None):
        value = self._contents.get(key)
        if isinstance(value, str):
            return value
        return default

    def get_date(self, key, default=None):
        value = self._contents.get(key)
        if value is None:
            return default
        try:
            return fields.Datetime().decode(value)
        except ConversionError:
            log.debug('Value for %r is not a date: %r', key, value)
            return default

    def get_object(self, key, default=None):
        """Returns the object stored under `key` as a `DynamicObject` filed
        under that key."""
        value = self._contents.get(key)
        if not isinstance(value, dict):
            return default
        return DynamicObject(key, value)

    def get_geo_point(self, key, default=None):
        from cloudobjects.geo import GeoPoint
        value = self._contents.get(key)
        if not isinstance(value, dict):
            return default
        try:
            return GeoPoint.from_contents(key, value)
        except ConversionError:
            log.debug('Value for %r is not a geopoint: %r', key, value)
            return default

    def set_class(self, class_name):
        self._contents[CLASS_KEY] = class_name
        return self

    @property
    def class_name(self):
        return self._contents.get(CLASS_KEY)

    def set_type(self, object_type):
        self._contents[TYPE_KEY] = object_type
        return self

    @property
    def object_type(self):
        return ObjectType.from_id(self._contents.get(TYPE_KEY))

    def is_type(self, object_type):
        return self.object_type == object_type

    def to_dict(self):
        return {self._key: self.contents}

    def to_json(self):
        return json.dumps(self.to_dict())

    def contents_json(self):
        return json.dumps(self._contents)

    def as_keyed_object(self):
        """Returns the object as a ``"key": {...}`` JSON fragment, for
        embedding in a larger JSON object."""
        return '%s:%s' % (json.dumps(self._key), self.contents_json())

    def __eq__(self, other):
        if not isinstance(other, DynamicObject):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    __hash__ = None

    def __str__(self):
        return self.to_json()

    def __repr__(self):
        return '<%s %s>' % (type(self).__name__, self.to_json())
