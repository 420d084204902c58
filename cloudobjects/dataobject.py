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

`DataObject` is a class of object that provides coding between object
attributes and dictionaries.

Conversions are performed with aid of `Field` instances declared on
`DataObject` subclasses. Every subclass that declares a ``class_name`` is
also entered in a lookup table keyed by that name, which is the value the
backend stores under ``__class__``. `decode()` uses that table to turn
tagged dictionaries back into instances of the right class, and `encode()`
turns instances (and other registered types) into plain JSON data.

"""

from copy import deepcopy
from datetime import datetime

import simplejson as json

import cloudobjects.fields
from cloudobjects.errors import ConversionError


classes_by_name = {}
codecs_by_class_name = {}


def find_by_name(name):
    """Finds and returns the DataObject subclass with the given name.

    Parameter `name` should be a bare class name with no module. If there is
    no class by that name, raises `KeyError`.

    """
    return classes_by_name[name]


def register_codec(class_name, python_type, to_json, from_json):
    """Registers an explicit pair of coding functions for values tagged with
    ``__class__`` `class_name` on the backend.

    Parameter `to_json` is called with an instance of `python_type` and
    should return a JSON-compatible dictionary; `from_json` is called with
    such a dictionary and should return the decoded value.

    """
    codecs_by_class_name[class_name] = (python_type, to_json, from_json)


def encode(value):
    """Encodes `value` into JSON-compatible data, using the registered
    codecs for any registered types found in it."""
    if isinstance(value, dict):
        return dict((k, encode(v)) for k, v in value.items())
    if isinstance(value, (list, tuple)):
        return [encode(v) for v in value]
    for python_type, to_json, from_json in codecs_by_class_name.values():
        if isinstance(value, python_type):
            return to_json(value)
    return value


def decode(value):
    """Decodes JSON data, turning any dictionary tagged with a registered
    ``__class__`` into its Python value.

    Dictionaries with an unregistered or missing ``__class__`` are left as
    dictionaries.

    """
    if isinstance(value, list):
        return [decode(v) for v in value]
    if not isinstance(value, dict):
        return value
    codec = codecs_by_class_name.get(value.get('__class__'))
    if codec is not None:
        return codec[2](value)
    return dict((k, decode(v)) for k, v in value.items())


class DataObjectMetaclass(type):
    """Metaclass for `DataObject` classes.

    This metaclass installs all `cloudobjects.fields.Property` instances
    declared as attributes of the new class, makes the new class findable
    through `find_by_name()`, and registers its coding functions when the
    class declares a ``class_name``.

    """

    def __new__(cls, name, bases, attrs):
        fields = {}
        new_fields = {}
        new_properties = {}

        # Inherit all the parent DataObject classes' fields.
        for base in bases:
            if isinstance(base, DataObjectMetaclass):
                fields.update(base.fields)

        for attrname, field in attrs.items():
            if isinstance(field, cloudobjects.fields.Property):
                new_properties[attrname] = field
                if isinstance(field, cloudobjects.fields.Field):
                    new_fields[attrname] = field
            elif attrname in fields:
                # Throw out any parent fields that the subclass defined as
                # something other than a Field.
                del fields[attrname]

        fields.update(new_fields)
        attrs['fields'] = fields
        obj_cls = super(DataObjectMetaclass, cls).__new__(cls, name, bases, attrs)

        for attrname, value in new_properties.items():
            value.install(attrname, obj_cls)

        classes_by_name[name] = obj_cls

        class_name = attrs.get('class_name')
        if class_name is not None:
            register_codec(class_name, obj_cls, obj_cls.to_dict, obj_cls.from_dict)

        return obj_cls


class DataObject(object, metaclass=DataObjectMetaclass):

    """An object that can be decoded from or encoded as a dictionary.

    DataObject subclasses should be declared with their different data
    attributes defined as instances of fields from the `cloudobjects.fields`
    module. For example:

    >>> from cloudobjects import dataobject, fields
    >>> class Recipe(dataobject.DataObject):
    ...     class_name = 'Recipe'
    ...     title      = fields.Field()
    ...     created    = fields.Datetime()
    ...

    Setting ``class_name`` tags encoded instances with ``__class__`` so they
    can be decoded back into the same class.

    """

    class_name = None

    def __init__(self, **kwargs):
        """Initializes a new `DataObject` with the given field values."""
        self.api_data = {}
        self.__dict__.update(kwargs)

    def __eq__(self, other):
        """Returns whether two `DataObject` instances are of the same type and
        contain the same data in all their fields."""
        if type(self) != type(other):
            return False
        for k in self.fields:
            if getattr(self, k) != getattr(other, k):
                return False
        return True

    def __ne__(self, other):
        return not self == other

    __hash__ = object.__hash__

    def to_dict(self):
        """Encodes the DataObject to a dictionary."""
        data = deepcopy(self.api_data)
        for field in self.fields.values():
            value = getattr(self, field.attrname, None)
            if value is not None:
                data[field.api_name] = field.encode(value)
        if self.class_name is not None:
            data['__class__'] = self.class_name
        return data

    @classmethod
    def from_dict(cls, data):
        """Decodes a dictionary into a new `DataObject` instance."""
        self = cls()
        self.update_from_dict(data)
        return self

    def update_from_dict(self, data):
        """Adds the content of a dictionary to this DataObject.

        Use this only when receiving newly updated or partial content for a
        DataObject from the backend. Data that constitutes a new object
        should be turned into another object with `from_dict()`.

        """
        if not isinstance(data, dict):
            raise ConversionError('Cannot update %s from %r'
                % (type(self).__name__, data))
        # Clear any local instance field data
        for k in self.fields:
            self.__dict__.pop(k, None)
        self.api_data = data

    def to_json(self):
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, text):
        try:
            data = json.loads(text)
        except ValueError as exc:
            raise ConversionError('Could not decode %s from %r: %s'
                % (cls.__name__, text, exc))
        return cls.from_dict(data)


_datetime_field = cloudobjects.fields.Datetime()
register_codec(_datetime_field.class_name, datetime,
    _datetime_field.encode, _datetime_field.decode)
