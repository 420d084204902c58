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

Request options that render to URL query fragments.

Each option group renders independently: `PagingOptions` to
``limit=<int>&skip=<int>&count=<bool>``, `SortOptions` to
``sort=<field>:<asc|desc>``, `ServerFunction` to
``f=<name>&result_only=<bool>[&async=true][&params=<json>]``,
`SharedDataOptions` to ``shared=true`` and friends, and `SearchOptions` to
``distance=true&units=<units>``. Every group has a `NONE` instance that
renders as the empty string.

`RequestOptions` combines them into one query string, skipping the empty
ones. All options are immutable and render at most once.

"""

import simplejson as json

from cloudobjects.errors import CreationError
from cloudobjects.urls import encode, format_query_value


class QueryOption(object):

    """Base class for an option group that renders to a query fragment.

    Subclasses implement `render()`; `as_url_string()` calls it the first
    time and remembers the result.

    """

    _url_string = None

    def render(self):
        raise NotImplementedError

    def as_url_string(self):
        if self._url_string is None:
            self._url_string = self.render()
        return self._url_string

    @classmethod
    def from_string(cls, raw):
        """Returns an option of this class that renders exactly as `raw`.

        Nothing about `raw` is checked, so this can express options this
        library does not know about.

        """
        option = cls.__new__(cls)
        option._url_string = raw or ''
        return option

    def __str__(self):
        return self.as_url_string()

    def __repr__(self):
        return '<%s %r>' % (type(self).__name__, self.as_url_string())

    def __eq__(self, other):
        if type(self) != type(other):
            return False
        return self.as_url_string() == other.as_url_string()

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash((type(self).__name__, self.as_url_string()))

    def __bool__(self):
        return bool(self.as_url_string())


class PagingOptions(QueryOption):

    """Options to page through results.

    Use `NO_LIMIT` as the limit to return every result.

    """

    NO_LIMIT = -1
    DEFAULT_LIMIT = 50

    limit = DEFAULT_LIMIT
    skip = 0
    include_count = False

    def __init__(self, limit=DEFAULT_LIMIT, skip=0, include_count=False):
        if limit < self.NO_LIMIT:
            raise CreationError('Paging limit %r is not a valid limit' % (limit,))
        if skip < 0:
            raise CreationError('Cannot skip %r results' % (skip,))
        self.limit = limit
        self.skip = skip
        self.include_count = include_count

    def render(self):
        return 'limit=%d&skip=%d&count=%s' % (self.limit, self.skip,
            format_query_value(self.include_count))


class SortDirection(object):
    ASCENDING = 'asc'
    DESCENDING = 'desc'


class SortOptions(QueryOption):

    """Options to sort results by one or more fields.

    >>> str(SortOptions('name'))
    'sort=name:asc'

    Use `SortOptions.builder()` to sort by several fields in turn.

    """

    fields = ()

    def __init__(self, field=None, direction=SortDirection.ASCENDING, fields=None):
        if fields is None:
            fields = []
        if field is not None:
            fields = [(field, direction)] + list(fields)
        for name, dir_ in fields:
            if not name:
                raise CreationError('Cannot sort on an empty field name')
            if dir_ not in (SortDirection.ASCENDING, SortDirection.DESCENDING):
                raise CreationError('Unknown sort direction %r' % (dir_,))
        self.fields = tuple(fields)

    @classmethod
    def builder(cls):
        return SortOptionsBuilder()

    def render(self):
        return '&'.join('sort=%s:%s' % (name, dir_) for name, dir_ in self.fields)


class SortOptionsBuilder(object):

    def __init__(self):
        self.fields = []

    def add_sort_field(self, field, direction=SortDirection.ASCENDING):
        self.fields.append((field, direction))
        return self

    def build(self):
        return SortOptions(fields=self.fields)


class ServerFunction(QueryOption):

    """Options to run a server-side snippet on the results of a request.

    Parameter `snippet_name` names the snippet and is required. With
    `results_only`, the response holds only the snippet's output. With
    `asynchronous`, the backend responds without waiting for the snippet.
    Any `extra_parameters` are passed to the snippet as a JSON object, sent
    URL-encoded in the `params` query value rather than as raw JSON.

    """

    snippet_name = ''
    results_only = False
    asynchronous = False
    extra_parameters = {}

    def __init__(self, snippet_name, results_only=False, asynchronous=False,
                 extra_parameters=None):
        if not snippet_name:
            raise CreationError('Cannot call a null or empty function')
        self.snippet_name = snippet_name
        self.results_only = results_only
        self.asynchronous = asynchronous
        self.extra_parameters = dict(extra_parameters or {})

    def render(self):
        url = 'f=%s&result_only=%s' % (encode(self.snippet_name),
            format_query_value(self.results_only))
        if self.asynchronous:
            url += '&async=true'
        if self.extra_parameters:
            params = json.dumps(self.extra_parameters, separators=(',', ':'),
                sort_keys=True)
            url += '&params=%s' % encode(params)
        return url


class SharedDataOptions(QueryOption):

    """Options to include objects shared with the user through access lists.

    `shared_only` limits results to shared objects and implies `shared`.

    """

    shared = False
    shared_only = False

    def __init__(self, shared=True, shared_only=False):
        self.shared = shared or shared_only
        self.shared_only = shared_only

    def render(self):
        if self.shared_only:
            return 'shared_only=true'
        return 'shared=%s' % format_query_value(self.shared)


class SearchOptions(QueryOption):

    """Options asking a geo search to report the distance of each result in
    the given units (one of `cloudobjects.geo.DistanceUnits`)."""

    units = None

    def __init__(self, units):
        self.units = units

    def render(self):
        return 'distance=true&units=%s' % self.units


PagingOptions.NONE = PagingOptions.from_string('')
SortOptions.NONE = SortOptions.from_string('')
ServerFunction.NONE = ServerFunction.from_string('')
SharedDataOptions.NONE = SharedDataOptions.from_string('')
SharedDataOptions.SHARED = SharedDataOptions(shared=True)
SharedDataOptions.SHARED_ONLY = SharedDataOptions(shared_only=True)
SharedDataOptions.NOT_SHARED = SharedDataOptions(shared=False)
SearchOptions.NONE = SearchOptions.from_string('')


class RequestOptions(object):

    """The full set of options for one request.

    Members that are not given are their group's `NONE` instance. Rendering
    joins the non-empty fragments with ``&`` in a fixed order: search,
    paging, function, sort, then shared.

    >>> str(RequestOptions(paging=PagingOptions(10, 20), sort=SortOptions('name')))
    'limit=10&skip=20&count=false&sort=name:asc'

    """

    def __init__(self, paging=None, function=None, sort=None, shared=None,
                 search=None):
        self.paging = paging if paging is not None else PagingOptions.NONE
        self.function = function if function is not None else ServerFunction.NONE
        self.sort = sort if sort is not None else SortOptions.NONE
        self.shared = shared if shared is not None else SharedDataOptions.NONE
        self.search = search if search is not None else SearchOptions.NONE
        self._url_string = None

    def _replace(self, **kwargs):
        members = dict(paging=self.paging, function=self.function,
            sort=self.sort, shared=self.shared, search=self.search)
        members.update(kwargs)
        return type(self)(**members)

    def with_paging(self, paging):
        return self._replace(paging=paging)

    def with_function(self, function):
        return self._replace(function=function)

    def with_sort(self, sort):
        return self._replace(sort=sort)

    def with_shared(self, shared):
        return self._replace(shared=shared)

    def with_search(self, search):
        return self._replace(search=search)

    def as_url_string(self):
        if self._url_string is None:
            fragments = [option.as_url_string() for option in
                (self.search, self.paging, self.function, self.sort, self.shared)]
            self._url_string = '&'.join(f for f in fragments if f)
        return self._url_string

    def __str__(self):
        return self.as_url_string()

    def __repr__(self):
        return '<RequestOptions %r>' % self.as_url_string()

    def __eq__(self, other):
        if not isinstance(other, RequestOptions):
            return False
        return self.as_url_string() == other.as_url_string()

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash(self.as_url_string())


RequestOptions.NONE = RequestOptions()
