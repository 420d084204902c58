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

Builders for backend endpoint URLs.

A `URLBuilder` is an immutable value: a base URL, an ordered tuple of path
segments ("actions") and an ordered tuple of query parameters. Every method
that changes one of those returns a new builder, so a builder for a common
route can be shared and specialized freely:

>>> base = ServiceURLBuilder('myapp')
>>> str(base.text().object_ids(['a', 'b']))
'https://api.cloudmine.me/v1/app/myapp/text?keys=a,b'

"""

import copy
from urllib.parse import quote, quote_plus

from cloudobjects.errors import CreationError


DEFAULT_BASE_URL = 'https://api.cloudmine.me'
VERSION = 'v1'
APP = 'app'


def encode(value):
    """URL-encodes `value` for use in a query string, with spaces encoded
    as ``+``."""
    return quote_plus(str(value))


def format_segment(segment):
    """Normalizes a path segment so that it has no leading, trailing, or
    doubled ``/`` separators.

    Returns the empty string if nothing is left.

    """
    parts = [part for part in str(segment).split('/') if part]
    return '/'.join(parts)


def format_query_value(value):
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


class URLBuilder(object):

    """An immutable URL made of a base, path segments, and query parameters.

    Builders are equal when they render to the same string.

    """

    def __init__(self, base_url):
        if base_url is None:
            raise CreationError('Cannot build a URL from a null base URL')
        self.base_url = str(base_url).rstrip('/')
        self.actions = ()
        self.queries = ()
        self._url = None

    def derive(self, actions=None, queries=None):
        """Returns a copy of this builder with the given actions and queries
        in place of its own."""
        other = copy.copy(self)
        if actions is not None:
            other.actions = tuple(actions)
        if queries is not None:
            other.queries = tuple(queries)
        other._url = None
        return other

    def add_action(self, segment):
        """Returns a new builder with `segment` appended to the path.

        Empty segments are ignored.

        """
        segment = format_segment(segment)
        if not segment:
            return self
        return self.derive(actions=self.actions + tuple(segment.split('/')))

    def remove_action(self, segment):
        """Returns a new builder without the first occurrence of `segment` in
        its path. If `segment` is not in the path, returns this builder."""
        parts = tuple(format_segment(segment).split('/'))
        if parts == ('',):
            return self
        width = len(parts)
        for index in range(len(self.actions) - width + 1):
            if self.actions[index:index + width] == parts:
                return self.derive(
                    actions=self.actions[:index] + self.actions[index + width:])
        return self

    def add_query(self, key, value=None):
        """Returns a new builder with an added query parameter.

        With a `value`, adds ``key=value``. Without one, `key` is taken to be
        an already rendered query fragment such as ``limit=5&skip=0``; empty
        fragments are ignored. Neither form encodes its arguments.

        """
        if value is None:
            query = str(key).lstrip('?&')
            if not query:
                return self
        else:
            query = '%s=%s' % (key, format_query_value(value))
        return self.derive(queries=self.queries + (query,))

    def render(self):
        """Returns the URL as a string, never ending in ``/``."""
        if self._url is None:
            url = self.base_url
            for action in self.actions:
                url += '/' + action
            if self.queries:
                url += '?' + '&'.join(self.queries)
            self._url = url
        return self._url

    def as_url_string(self):
        return self.render()

    url = property(render)

    def __str__(self):
        return self.render()

    def __repr__(self):
        return '<%s %s>' % (type(self).__name__, self.render())

    def __eq__(self, other):
        if not isinstance(other, URLBuilder):
            return NotImplemented
        return self.render() == other.render()

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self):
        return hash(self.render())


class ServiceURLBuilder(URLBuilder):

    """A `URLBuilder` rooted at an application on the backend, with helpers
    for each backend route.

    The root renders as ``{base_url}/v1/app/{app_id}``.

    """

    def __init__(self, app_id, base_url=DEFAULT_BASE_URL):
        if not app_id:
            raise CreationError('Cannot build a service URL without an app id')
        super(ServiceURLBuilder, self).__init__(base_url)
        self.app_id = app_id
        self.actions = (VERSION, APP, format_segment(app_id))

    def application_path(self):
        """Returns a builder for the application root, dropping any route
        and query added after it."""
        return self.derive(actions=self.actions[:3], queries=())

    def text(self):
        return self.add_action('text')

    def binary(self, key=None):
        builder = self.add_action('binary')
        if key is not None:
            builder = builder.add_key(key)
        return builder

    def data(self):
        return self.add_action('data')

    def delete_all(self):
        return self.data().add_query('all', True)

    def delete(self, keys):
        return self.data().object_ids(keys)

    def object_ids(self, keys):
        """Adds a ``keys`` query with the given object ids, comma separated.

        `keys` may be a single id or a sequence of ids.

        """
        if isinstance(keys, str):
            keys = [keys]
        if not keys:
            return self
        return self.add_query('keys', ','.join(encode(key) for key in keys))

    def search(self, query, key='q'):
        return self.add_action('search').add_query(key, encode(query))

    def account(self):
        # Account routes live at application level even for user services.
        return self.not_user().add_action('account')

    def user(self):
        return self.add_action('user')

    def not_user(self):
        return self.remove_action('user')

    def create(self):
        return self.add_action('create')

    def login(self):
        return self.add_action('login')

    def logout(self):
        return self.add_action('logout')

    def password(self):
        return self.add_action('password')

    def reset(self):
        return self.add_action('reset')

    def change(self):
        return self.add_action('change')

    def mine(self):
        return self.add_action('mine')

    def access(self):
        return self.add_action('access')

    def push(self):
        return self.add_action('push')

    def channel(self, name=None):
        builder = self.push().add_action('channel')
        if name is not None:
            builder = builder.add_key(name)
        return builder

    def social(self, service, query=None):
        builder = self.add_action('social').add_key(service)
        if query:
            builder = builder.add_action(query)
        return builder

    def add_key(self, key):
        """Adds `key` as a single path segment, percent-encoding anything that
        is not safe in a path (including ``/``)."""
        return self.add_action(quote(str(key), safe=''))

    def options(self, request_options):
        """Adds the rendered query of a `RequestOptions` instance."""
        if request_options is None:
            return self
        return self.add_query(request_options.as_url_string())
