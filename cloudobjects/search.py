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

A small builder for backend search query strings.

Queries are filters in brackets, optionally scoped to nested objects with
dotted names::

    >>> SearchQuery.filter('age').equal(30).and_('name').equal('Bob').search_query()
    '[age = 30, name = "Bob"]'
    >>> (SearchQuery.sub_object('house').filter('location').near(2.5, 3.1)
    ...     .within(300, DistanceUnits.km).search_query())
    'house[location near (2.5, 3.1), 300.0km]'

Comparisons joined with `and_()` render as ``, ``, and those joined with
`or_()` as `` or ``. The backend does not accept both inside one bracket,
but the builder does not stop you from writing that; check your own queries.

"""

from cloudobjects.dynamic import CLASS_KEY
from cloudobjects.geo import Distance, DistanceUnits


def quote(value):
    """Returns `value` in double quotes, escaping backslashes and quotes."""
    return '"%s"' % str(value).replace('\\', '\\\\').replace('"', '\\"')


def literal(value):
    """Renders a comparison operand: strings quoted, booleans as
    ``true``/``false``, and other values (numbers) as they are."""
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, str):
        return quote(value)
    if isinstance(value, (int, float)):
        return str(value)
    raise TypeError('Cannot compare against %r in a search query' % (value,))


class SearchQuery(object):

    """Accumulates one search query string.

    Start a query with one of the class methods `filter()`,
    `filter_class()`, or `sub_object()`. Each step returns an object offering
    only the steps that can follow it; `search_query()` closes the open
    filter and returns the query string.

    """

    def __init__(self):
        self.parts = []
        self.last_property = None

    @classmethod
    def filter(cls, name):
        query = cls()
        query.open_filter()
        return query.property_name(name)

    @classmethod
    def filter_class(cls, class_name):
        """Starts a query matching objects whose ``__class__`` is
        `class_name`, which may also be a `DataObject` subclass."""
        class_name = getattr(class_name, 'class_name', None) or getattr(class_name, '__name__', class_name)
        return cls.filter(CLASS_KEY).equal(class_name)

    @classmethod
    def sub_object(cls, name):
        return SubObject(cls(), name)

    def append(self, text):
        self.parts.append(text)

    def open_filter(self):
        self.append('[')

    def close_filter(self):
        self.append(']')

    def property_name(self, name):
        self.last_property = name
        self.append(name)
        return PropertyName(self)

    def render(self):
        return ''.join(self.parts)


class SubObject(object):

    """A dotted scope into a nested object, before its filter is opened."""

    def __init__(self, query, name):
        self.query = query
        query.append(name)

    def sub_object(self, name):
        self.query.append('.')
        return SubObject(self.query, name)

    def filter(self, name):
        self.query.open_filter()
        return self.query.property_name(name)


class PropertyName(object):

    """The comparisons available on the property just named."""

    def __init__(self, query):
        self.query = query

    def compare(self, operator, value):
        self.query.append(' %s %s' % (operator, literal(value)))
        return CombinableFilterValue(self.query)

    def equal(self, value):
        return self.compare('=', value)

    def not_equal(self, value):
        return self.compare('!=', value)

    def less_than(self, value):
        return self.compare('<', value)

    def less_than_or_equal(self, value):
        return self.compare('<=', value)

    def greater_than(self, value):
        return self.compare('>', value)

    def greater_than_or_equal(self, value):
        return self.compare('>=', value)

    def near(self, longitude, latitude=None):
        """Filters on distance from a point, given either as a `GeoPoint`
        or as a longitude and latitude."""
        if latitude is None:
            point = longitude
            longitude, latitude = point.longitude, point.latitude
        self.query.append(' near (%r, %r)' % (float(longitude), float(latitude)))
        return GeoFilterValue(self.query)


class FilterValue(object):

    """A completed comparison, which can be closed off."""

    def __init__(self, query):
        self.query = query

    def sub_object(self, name):
        self.query.close_filter()
        self.query.append('.')
        return SubObject(self.query, name)

    def search_query(self):
        self.query.close_filter()
        return self.query.render()


class CombinableFilterValue(FilterValue):

    """A completed comparison that can be joined with another.

    `and_()` and `or_()` without a property name compare the same property
    again.

    """

    def combine(self, separator, name):
        self.query.append(separator)
        if name is None:
            name = self.query.last_property
        return self.query.property_name(name)

    def and_(self, name=None):
        return self.combine(', ', name)

    def or_(self, name=None):
        return self.combine(' or ', name)


class GeoFilterValue(FilterValue):

    """A proximity filter, which may be limited to a radius."""

    def within(self, distance, units=None):
        if not isinstance(distance, Distance):
            distance = Distance(distance, units or DistanceUnits.km)
        self.query.append(', %s' % distance)
        return FilterValue(self.query)
