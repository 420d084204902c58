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

Fields are class attributes for `DataObject` subclasses that provide data
coding functionality for your properties.

Each stored object type in `cloudobjects.objects` declares its attributes as
fields, which gives every type an explicit encoding to and decoding from the
JSON dictionaries the backend stores.

"""

import calendar
from datetime import datetime, tzinfo, timedelta

import cloudobjects.dataobject
from cloudobjects.errors import ConversionError


class Property(object):

    """An attribute that can be installed declaratively on a `DataObject` to
    provide data encoding or loading behavior."""

    def install(self, attrname, cls):
        """Signals to the `Property` that it has been installed on the given
        class as an attribute with the given name.

        This implementation does nothing.

        """
        pass


class Field(Property):

    """A property for encoding object attributes as dictionary values and
    decoding dictionary values into object attributes.

    Use a `Field` instance directly for simple `DataObject` attributes that
    can be the same type as their dictionary values: strings, numbers, and
    boolean values. If your attribute data does need converted, use one of
    the `Field` subclasses from this module, or override `decode()` and
    `encode()` in a subclass of your own.

    """

    def __init__(self, api_name=None, default=None):
        """Sets the field's matching deserialization key and default value.

        Optional parameter `api_name` is the key of this field's matching
        value in a dictionary. If not given, the attribute name of the field
        when its class was defined is used.

        Optional parameter `default` is the default value to use when the
        dictionary to decode does not contain a value. `default` can be a
        value or a callable, which is passed the object being decoded.

        """
        self.api_name = api_name
        self.default = default

    def install(self, attrname, cls):
        self.attrname = attrname
        if self.api_name is None:
            self.api_name = attrname
        self.of_cls = cls

    def __get__(self, obj, cls):
        """Returns the field's value on the given object instance, or the
        field's default value if no value for the field is available.

        The value is decoded from the object's API data the first time it is
        asked for, raising any exceptions `decode()` may raise.

        """
        if obj is None:
            return self

        if self.attrname not in obj.__dict__:
            try:
                value = obj.api_data[self.api_name]
            except KeyError:
                if callable(self.default):
                    value = self.default(obj)
                else:
                    value = self.default
            else:
                value = self.decode(value)
            # Store the value so we need decode it only once.
            obj.__dict__[self.attrname] = value

        return obj.__dict__[self.attrname]

    def __set__(self, obj, value):
        obj.__dict__[self.attrname] = value

    def __delete__(self, obj):
        # Delete both the instance and API data, so we'll get a real
        # attribute miss next time and return the field's default.
        obj.__dict__.pop(self.attrname, None)
        obj.api_data.pop(self.api_name, None)

    def decode(self, value):
        """Decodes a dictionary value into a `DataObject` attribute value.

        This implementation returns `value` unchanged.

        """
        return value

    def encode(self, value):
        """Encodes a `DataObject` attribute value into a dictionary value.

        This implementation returns `value` unchanged.

        """
        return value


class Constant(Field):

    """A field for data that always has a certain value for all instances of
    the owning class, such as the ``__type__`` of a stored file."""

    def __init__(self, value, **kwargs):
        super(Constant, self).__init__(**kwargs)
        self.value = value

    def __get__(self, obj, cls):
        if obj is None:
            return self
        return self.value

    def __set__(self, obj, value):
        if value != self.value:
            raise ValueError('Value %r is not expected value %r'
                % (value, self.value))

    def decode(self, value):
        if value != self.value:
            raise ConversionError('Value %r is not expected value %r'
                % (value, self.value))
        return self.value

    def encode(self, value):
        return self.value


class List(Field):

    """A field representing a homogeneous list of data, each element coded
    through another field."""

    def __init__(self, fld, **kwargs):
        super(List, self).__init__(**kwargs)
        self.fld = fld

    def install(self, attrname, cls):
        super(List, self).install(attrname, cls)
        self.fld.install(attrname, cls)

    def decode(self, value):
        if value is None:
            return None
        return [self.fld.decode(v) for v in value]

    def encode(self, value):
        return [self.fld.encode(v) for v in value]


class Dict(List):

    """A field representing a homogeneous mapping of data, each value coded
    through another field."""

    def decode(self, value):
        if value is None:
            return None
        return dict((k, self.fld.decode(v)) for k, v in value.items())

    def encode(self, value):
        return dict((k, self.fld.encode(v)) for k, v in value.items())


class AcceptsStringCls(object):
    """Mixin for fields with a ``cls`` attribute that can either be a
    ``DataObject`` subclass or the string name of one (to allow forward
    references)."""

    def get_cls(self):
        cls = self.__dict__['cls']
        if not callable(cls):
            cls = cloudobjects.dataobject.find_by_name(cls)
        return cls

    def set_cls(self, cls):
        self.__dict__['cls'] = cls

    cls = property(get_cls, set_cls)


class Object(AcceptsStringCls, Field):

    """A field representing a nested `DataObject`."""

    def __init__(self, cls, **kwargs):
        super(Object, self).__init__(**kwargs)
        self.cls = cls

    def decode(self, value):
        if value is None:
            if callable(self.default):
                return self.default()
            return self.default
        if not isinstance(value, dict):
            raise ConversionError('Value %r for %s is not an object'
                % (value, self.cls.__name__))
        return self.cls.from_dict(value)

    def encode(self, value):
        return value.to_dict()


class UTC(tzinfo):
    """UTC"""
    ZERO = timedelta(0)

    def utcoffset(self, dt):
        return UTC.ZERO

    def tzname(self, dt):
        return "UTC"

    def dst(self, dt):
        return UTC.ZERO


class Datetime(Field):

    """A field representing a timestamp.

    The backend stores dates as tagged objects of the form
    ``{"__class__": "datetime", "timestamp": <seconds since the epoch>}``.
    A bare number of seconds is also accepted when decoding.

    """

    class_name = 'datetime'
    utc = UTC()

    def decode(self, value):
        """Decodes a tagged timestamp into a `datetime` with UTC tzinfo."""
        if value is None:
            if callable(self.default):
                return self.default()
            return self.default
        if isinstance(value, dict):
            if value.get('__class__') != self.class_name:
                raise ConversionError('Value %r is not a datetime object' % (value,))
            value = value.get('timestamp')
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConversionError('Value to decode %r is not a valid timestamp' % (value,))
        return datetime.fromtimestamp(value, Datetime.utc)

    def encode(self, value):
        """Encodes a `datetime` into a tagged timestamp object.

        A `datetime` with no time zone is taken to be in UTC.

        """
        if not isinstance(value, datetime):
            raise TypeError('Value to encode %r is not a datetime' % (value,))
        if value.tzinfo is not None:
            value = value.astimezone(Datetime.utc)
        return {
            '__class__': self.class_name,
            'timestamp': calendar.timegm(value.utctimetuple()),
        }

