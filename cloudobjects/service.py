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

The entry point for talking to the backend.

Build a `WebService` for your application with `service_for()`:

>>> from cloudobjects import Credentials, service_for
>>> service = service_for(Credentials('my-app-id', 'my-api-key'))
>>> response = service.load_objects(['recipe-1'])
>>> response.was_success()
True

Every operation can run two ways. Called without callbacks, it performs the
request on the calling thread and returns the typed response, raising
`NetworkError` if no response could be obtained. Called with `on_success`
and/or `on_failure` callbacks, it dispatches the request through the
service's transport and returns at once; see `cloudobjects.http` for when
and where the callbacks run.

Operations on a logged in user's data go through a `UserWebService`, which
`WebService.user_service()` returns for the user's session token.

"""

from collections import OrderedDict
import logging
import os
import threading

import simplejson as json

from cloudobjects import headers, response
from cloudobjects.dynamic import OBJECT_ID_KEY, TYPE_KEY, DynamicObject, ObjectType
from cloudobjects.errors import CreationError, InvalidRequestError, NetworkError
from cloudobjects.http import TRANSPORT_ERRORS, SynchronousTransport
from cloudobjects.search import SearchQuery
from cloudobjects.session import SessionToken
from cloudobjects.urls import DEFAULT_BASE_URL, ServiceURLBuilder, encode


log = logging.getLogger('cloudobjects.service')


class Credentials(object):

    """The application id and API key identifying an application to the
    backend, and the backend's base URL."""

    APP_ID_VARIABLE = 'CLOUDOBJECTS_APP_ID'
    API_KEY_VARIABLE = 'CLOUDOBJECTS_API_KEY'
    BASE_URL_VARIABLE = 'CLOUDOBJECTS_BASE_URL'

    def __init__(self, app_id, api_key, base_url=DEFAULT_BASE_URL):
        if not app_id:
            raise CreationError('Credentials need an application id')
        if not api_key:
            raise CreationError('Credentials need an API key')
        if not base_url:
            raise CreationError('Credentials need a base URL')
        self.app_id = app_id
        self.api_key = api_key
        self.base_url = base_url

    @classmethod
    def from_environ(cls, environ=None):
        """Reads credentials from the ``CLOUDOBJECTS_APP_ID``,
        ``CLOUDOBJECTS_API_KEY``, and (optionally) ``CLOUDOBJECTS_BASE_URL``
        environment variables."""
        if environ is None:
            environ = os.environ
        return cls(environ.get(cls.APP_ID_VARIABLE),
            environ.get(cls.API_KEY_VARIABLE),
            environ.get(cls.BASE_URL_VARIABLE) or DEFAULT_BASE_URL)

    def __repr__(self):
        return '<Credentials %s at %s>' % (self.app_id, self.base_url)


class Request(object):

    """A request ready to send, and the response class to read its answer
    with."""

    def __init__(self, method, url, headers, body=None,
                 response_class=response.ServiceResponse, **response_kwargs):
        self.method = method
        self.url = str(url)
        self.headers = headers
        self.body = body
        self.response_class = response_class
        self.response_kwargs = response_kwargs

    def construct(self, raw):
        return self.response_class.from_raw(raw, **self.response_kwargs)

    def __repr__(self):
        return '<Request %s %s>' % (self.method, self.url)


def keyed_objects_json(objects):
    """Renders objects (anything with `as_keyed_object()`) as one JSON
    object keyed by their ids."""
    if hasattr(objects, 'as_keyed_object'):
        objects = [objects]
    return '{%s}' % ','.join(obj.as_keyed_object() for obj in objects)


def ids_of(objects):
    """Returns the ids of objects given as ids, `DynamicObject` instances, or
    objects with an `object_id`, singly or in a sequence."""
    if isinstance(objects, (str, DynamicObject)) or hasattr(objects, 'object_id'):
        objects = [objects]
    ids = []
    for obj in objects:
        if isinstance(obj, DynamicObject):
            ids.append(obj.key)
        else:
            ids.append(getattr(obj, 'object_id', obj))
    return ids


class UserServiceCache(object):

    """The `UserWebService` instances in use, by session token.

    At most `max_size` services are kept; the least recently used is
    dropped first.

    """

    DEFAULT_MAX_SIZE = 64

    def __init__(self, max_size=DEFAULT_MAX_SIZE):
        self.max_size = max_size
        self.services = OrderedDict()
        self.lock = threading.Lock()

    def get(self, session_token, factory):
        """Returns the service for `session_token`, creating it with
        `factory()` if there is none yet."""
        with self.lock:
            service = self.services.get(session_token)
            if service is None:
                service = factory()
                self.services[session_token] = service
                while len(self.services) > self.max_size:
                    self.services.popitem(last=False)
            else:
                self.services.move_to_end(session_token)
            return service

    def invalidate(self, session_token):
        with self.lock:
            self.services.pop(session_token, None)

    def __contains__(self, session_token):
        with self.lock:
            return session_token in self.services

    def __len__(self):
        with self.lock:
            return len(self.services)


class WebService(object):

    """Operations on an application's data on the backend.

    Operations taking `options` accept a `cloudobjects.options.RequestOptions`
    to add paging, sorting, a server function to run, and so on.

    """

    def __init__(self, credentials, transport=None, header_factory=None,
                 user_services=None):
        self.credentials = credentials
        if transport is None:
            transport = SynchronousTransport()
        self.transport = transport
        if header_factory is None:
            header_factory = headers.HeaderFactory(credentials.api_key,
                response_times=transport.response_times)
        self.header_factory = header_factory
        if user_services is None:
            user_services = UserServiceCache()
        self.user_services = user_services
        self.application_urls = ServiceURLBuilder(credentials.app_id, credentials.base_url)
        self.urls = self.application_urls

    def headers(self, content_type=None):
        request_headers = self.header_factory.headers()
        if content_type is not None:
            request_headers['Content-Type'] = content_type
        return request_headers

    def request(self, method, url, response_class=response.ServiceResponse,
                data=None, **response_kwargs):
        """Builds a `Request` for `url`, with `data` encoded as a JSON body
        if given (a string is taken to be JSON already)."""
        if data is None:
            return Request(method, url, self.headers(), None, response_class,
                **response_kwargs)
        if not isinstance(data, str):
            data = json.dumps(data)
        return Request(method, url, self.headers(headers.JSON_CONTENT_TYPE),
            data, response_class, **response_kwargs)

    def dispatch(self, request, on_success=None, on_failure=None):
        """Sends `request`, on the calling thread if no callbacks are given
        or through the transport's `execute()` if they are."""
        if on_success is None and on_failure is None:
            try:
                raw = self.transport.send(request.method, request.url,
                    request.headers, request.body)
            except TRANSPORT_ERRORS as exc:
                log.error('Request %s %s failed: %s', request.method, request.url, exc)
                raise NetworkError('Request %s %s failed: %s'
                    % (request.method, request.url, exc), exc) from exc
            return request.construct(raw)
        return self.transport.execute(request.method, request.url,
            request.headers, request.body, on_success=on_success,
            on_failure=on_failure, constructor=request.construct)

    # Objects

    def load_objects(self, keys=None, options=None, **callbacks):
        """Loads the objects with the given ids, or all objects if `keys` is
        not given."""
        url = self.urls.text()
        if keys is not None:
            url = url.object_ids(ids_of(keys))
        url = url.options(options)
        return self.dispatch(self.request('GET', url, response.ObjectLoadResponse),
            **callbacks)

    def load_object(self, key, options=None, **callbacks):
        return self.load_objects([key], options, **callbacks)

    def load_all_objects(self, options=None, **callbacks):
        return self.load_objects(None, options, **callbacks)

    def search(self, query, options=None, **callbacks):
        """Loads the objects matching a search query, such as one built
        with `cloudobjects.search.SearchQuery`."""
        url = self.urls.search(query).options(options)
        return self.dispatch(self.request('GET', url, response.ObjectLoadResponse),
            **callbacks)

    def load_objects_of_class(self, cls, options=None, **callbacks):
        """Loads every object stored with the given class name, which may
        also be given as a `DataObject` subclass."""
        query = SearchQuery.filter_class(cls).search_query()
        return self.search(query, options, **callbacks)

    def insert(self, objects, options=None, **callbacks):
        """Stores the given objects, replacing any stored under the same
        ids."""
        url = self.urls.text().options(options)
        return self.dispatch(self.request('PUT', url,
            response.ObjectModificationResponse, keyed_objects_json(objects)),
            **callbacks)

    def update(self, objects, options=None, **callbacks):
        """Stores the given objects, merging their contents into any stored
        under the same ids."""
        url = self.urls.text().options(options)
        return self.dispatch(self.request('POST', url,
            response.ObjectModificationResponse, keyed_objects_json(objects)),
            **callbacks)

    def delete(self, keys, options=None, **callbacks):
        """Deletes the objects (or files) with the given ids."""
        url = self.urls.delete(ids_of(keys)).options(options)
        return self.dispatch(self.request('DELETE', url,
            response.ObjectModificationResponse), **callbacks)

    def delete_all(self, **callbacks):
        return self.dispatch(self.request('DELETE', self.urls.delete_all(),
            response.ObjectModificationResponse), **callbacks)

    # Files

    def upload_file(self, stored_file, options=None, **callbacks):
        url = self.urls.binary(stored_file.file_id).options(options)
        request = Request('PUT', url, self.headers(stored_file.content_type),
            stored_file.contents, response.FileCreationResponse)
        return self.dispatch(request, **callbacks)

    def load_file(self, file_id, options=None, **callbacks):
        url = self.urls.binary(file_id).options(options)
        return self.dispatch(self.request('GET', url, response.FileLoadResponse,
            file_id=file_id), **callbacks)

    def load_file_metadata(self, file_id, **callbacks):
        query = (SearchQuery.filter(TYPE_KEY).equal(ObjectType.FILE)
            .and_(OBJECT_ID_KEY).equal(file_id).search_query())
        return self.search(query, **callbacks)

    def delete_file(self, file_id, **callbacks):
        return self.delete([file_id], **callbacks)

    # Accounts

    def account_urls(self):
        return self.urls.account()

    def create_user(self, user, **callbacks):
        url = self.account_urls().create()
        return self.dispatch(self.request('PUT', url, response.CreationResponse,
            user.to_transport_dict()), **callbacks)

    def basic_auth_headers(self, email, password, content_type=None):
        request_headers = self.headers(content_type)
        request_headers['Authorization'] = headers.basic_authorization(email, password)
        return request_headers

    def login(self, user, **callbacks):
        """Logs in `user` with its email and password. The `LoginResponse`
        holds the session token to make a `UserWebService` with."""
        url = self.account_urls().login()
        request = Request('POST', url,
            self.basic_auth_headers(user.email, user.password or ''), None,
            response.LoginResponse)
        return self.dispatch(request, **callbacks)

    def logout(self, session_token, **callbacks):
        """Ends a session. Its `UserWebService` is no longer handed out."""
        self.user_services.invalidate(session_token)
        url = self.account_urls().logout()
        request = Request('POST', url, self.header_factory.user_headers(session_token),
            None, response.LogoutResponse)
        return self.dispatch(request, **callbacks)

    def change_password(self, user, new_password, **callbacks):
        """Changes `user`'s password from its current `password` to
        `new_password`."""
        url = self.account_urls().password().change()
        request = Request('POST', url,
            self.basic_auth_headers(user.email, user.password or '',
                headers.JSON_CONTENT_TYPE),
            json.dumps({'password': new_password}))
        return self.dispatch(request, **callbacks)

    def reset_password_request(self, email, **callbacks):
        """Asks the backend to email a password reset token to `email`."""
        url = self.account_urls().password().reset()
        return self.dispatch(self.request('POST', url, data={'email': email}),
            **callbacks)

    def reset_password_confirmation(self, token, new_password, **callbacks):
        url = self.account_urls().password().reset().add_key(token)
        return self.dispatch(self.request('POST', url,
            data={'password': new_password}), **callbacks)

    def load_all_users(self, options=None, **callbacks):
        url = self.account_urls().options(options)
        return self.dispatch(self.request('GET', url, response.ObjectLoadResponse),
            **callbacks)

    def search_users(self, query, options=None, **callbacks):
        url = self.account_urls().search(query, key='p').options(options)
        return self.dispatch(self.request('GET', url, response.ObjectLoadResponse),
            **callbacks)

    def delete_user(self, user_id, **callbacks):
        url = self.account_urls().add_key(getattr(user_id, 'object_id', user_id))
        return self.dispatch(self.request('DELETE', url), **callbacks)

    # Push notifications

    def send_notification(self, notification, **callbacks):
        return self.dispatch(self.request('POST', self.urls.push(),
            data=notification.to_dict()), **callbacks)

    def create_channel(self, channel, **callbacks):
        return self.dispatch(self.request('POST', self.urls.channel(),
            response.PushChannelResponse, channel.to_dict()), **callbacks)

    def delete_channel(self, channel, **callbacks):
        name = getattr(channel, 'name', channel)
        return self.dispatch(self.request('DELETE', self.urls.channel(name)),
            **callbacks)

    # Users

    def user_service(self, session_token):
        """Returns the `UserWebService` for the user logged in with
        `session_token`, sharing this service's transport."""
        if session_token is None or session_token is SessionToken.FAILED:
            raise CreationError('Cannot make a user service without a valid session token')
        return self.user_services.get(session_token,
            lambda: UserWebService(self.credentials, session_token,
                transport=self.transport, header_factory=self.header_factory,
                user_services=self.user_services))


class UserWebService(WebService):

    """Operations on one logged in user's data.

    Object and file operations reach the user's own store rather than the
    application's. Account routes are shared with `WebService`.

    """

    SUPPORTED_SOCIAL_METHODS = ('GET', 'POST', 'PUT', 'DELETE')

    def __init__(self, credentials, session_token, transport=None,
                 header_factory=None, user_services=None):
        super(UserWebService, self).__init__(credentials, transport,
            header_factory, user_services)
        self.session_token = session_token
        self.urls = self.application_urls.user()

    def headers(self, content_type=None):
        request_headers = self.header_factory.user_headers(self.session_token)
        if content_type is not None:
            request_headers['Content-Type'] = content_type
        return request_headers

    def user_service(self, session_token):
        if session_token == self.session_token:
            return self
        return super(UserWebService, self).user_service(session_token)

    def load_profile(self, **callbacks):
        """Loads the logged in user's profile."""
        url = self.account_urls().mine()
        return self.dispatch(self.request('GET', url, response.ObjectLoadResponse),
            **callbacks)

    def update_profile(self, user, **callbacks):
        return self.dispatch(self.request('PUT', self.account_urls(),
            response.CreationResponse, user.profile()), **callbacks)

    def insert_access_list(self, access_list, **callbacks):
        """Creates or saves an access list owned by this user."""
        return self.dispatch(self.request('POST', self.urls.access(),
            response.CreationResponse, access_list.to_dict()), **callbacks)

    def load_access_lists(self, **callbacks):
        return self.dispatch(self.request('GET', self.urls.access(),
            response.ObjectLoadResponse), **callbacks)

    def social_graph_query(self, service, method, query='', params=None,
                           headers=None, body=None, **callbacks):
        """Proxies a request to the API of a social network the user has
        connected, such as ``'twitter'``.

        Optional `params` and `headers` are dictionaries passed along for
        the backend to add to the proxied request. A `body` is sent only
        with ``POST`` and ``PUT``. Raises `InvalidRequestError` for any
        other method than ``GET``, ``POST``, ``PUT``, or ``DELETE``.

        """
        method = method.upper()
        if method not in self.SUPPORTED_SOCIAL_METHODS:
            raise InvalidRequestError('Unsupported social graph method %r' % method)
        url = self.urls.social(service, query)
        if params is not None:
            url = url.add_query('params', encode(json.dumps(params)))
        if headers is not None:
            url = url.add_query('headers', encode(json.dumps(headers)))
        if method not in ('POST', 'PUT'):
            body = None
        request = Request(method, url, self.headers(), body,
            response.SocialGraphResponse)
        return self.dispatch(request, **callbacks)


def service_for(credentials, transport=None, http=None, header_factory=None):
    """Returns a `WebService` for the application `credentials` identify.

    Optional parameter `transport` is the transport to send requests with;
    by default a `SynchronousTransport` using `http` (an `httplib2.Http`
    compatible user agent, by default a new `httplib2.Http`).

    """
    if transport is None:
        transport = SynchronousTransport(http=http)
    return WebService(credentials, transport, header_factory)
