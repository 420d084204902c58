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

cloudobjects is a client library for a hosted backend-as-a-service: object
storage, user accounts, files, push notifications, and social network
queries, all reached over a JSON REST API.

cloudobjects provides:

* typed responses that never raise while reading the backend's answer, with
  loaded objects decoded into your own `CloudObject` subclasses

* schema-free `DynamicObject` contents for everything else

* a fluent builder for search queries, and request options for paging,
  sorting, and running server functions

* synchronous, thread-per-request, and event loop transports, through
  `httplib2` and `httpx`


Example
=======

    >>> from cloudobjects import CloudObject, Credentials, fields, service_for
    >>> class Recipe(CloudObject):
    ...     class_name = 'Recipe'
    ...     title      = fields.Field()
    ...
    >>> service = service_for(Credentials('my-app-id', 'my-api-key'))
    >>> service.insert(Recipe(object_id='soup', title='Soup')).was_created('soup')
    True
    >>> [r.title for r in service.load_objects_of_class(Recipe).objects()]
    ['Soup']

"""

__version__ = '1.0'
__author__ = 'Six Apart Ltd.'

# dataobject must be imported before fields.
import cloudobjects.dataobject
import cloudobjects.fields as fields
from cloudobjects.dynamic import DynamicObject
from cloudobjects.errors import (CloudObjectsError, ConversionError,
    CreationError, AccessError, InvalidRequestError, NetworkError,
    RequestCancelled)
from cloudobjects.geo import Distance, DistanceUnits, GeoPoint
from cloudobjects.objects import (CloudObject, User, StoredFile,
    PushNotification, PushTarget, Channel, AccessList, AccessPermission)
from cloudobjects.options import (PagingOptions, SortOptions, SortDirection,
    ServerFunction, SharedDataOptions, SearchOptions, RequestOptions)
from cloudobjects.search import SearchQuery
from cloudobjects.service import (Credentials, WebService, UserWebService,
    service_for)
from cloudobjects.session import SessionToken, StoreIdentifier
from cloudobjects.store import Store

__all__ = ('fields', 'DynamicObject', 'CloudObjectsError', 'ConversionError',
    'CreationError', 'AccessError', 'InvalidRequestError', 'NetworkError',
    'RequestCancelled', 'Distance', 'DistanceUnits', 'GeoPoint',
    'CloudObject', 'User', 'StoredFile', 'PushNotification', 'PushTarget',
    'Channel', 'AccessList', 'AccessPermission', 'PagingOptions',
    'SortOptions', 'SortDirection', 'ServerFunction', 'SharedDataOptions',
    'SearchOptions', 'RequestOptions', 'SearchQuery', 'Credentials',
    'WebService', 'UserWebService', 'service_for', 'SessionToken',
    'StoreIdentifier', 'Store')
