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

from datetime import datetime
import socket
import unittest

import httplib2
import mock
import simplejson as json

from cloudobjects import fields, headers
from cloudobjects.dynamic import DynamicObject
from cloudobjects.errors import CreationError, InvalidRequestError, NetworkError
from cloudobjects.objects import (AccessList, AccessPermission, Channel,
    CloudObject, PushNotification, PushTarget, StoredFile, User)
from cloudobjects.options import PagingOptions, RequestOptions
from cloudobjects.response import (FileLoadResponse, LoginResponse,
    ObjectLoadResponse, ObjectModificationResponse, PushChannelResponse,
    ServiceResponse, SocialGraphResponse)
from cloudobjects.service import (Credentials, UserServiceCache,
    UserWebService, service_for)
from cloudobjects.session import SessionToken
from tests import utils


BASE = utils.BASE

APP_HEADERS = {
    'X-CloudMine-ApiKey': utils.API_KEY,
    'X-CloudMine-Agent': headers.AGENT,
    'X-CloudMine-UT': 'device-1',
}

JSON_HEADERS = dict(APP_HEADERS)
JSON_HEADERS['Content-Type'] = 'application/json'

TOKEN = SessionToken('tok', datetime(2099, 1, 1, tzinfo=fields.Datetime.utc))

USER_HEADERS = dict(APP_HEADERS)
USER_HEADERS['X-CloudMine-SessionToken'] = 'tok'


class Dish(CloudObject):
    class_name = 'Dish'
    name = fields.Field()


class ServiceTestCase(unittest.TestCase):

    def call(self, operation, content='{}', *args, **kwargs):
        """Runs `operation` (a method name) on a service answering with
        `content`, and returns the response and the request sent."""
        h = utils.mock_http(BASE, content)
        service = utils.make_service(h)
        response = getattr(service, operation)(*args, **kwargs)
        return response, utils.sent_request(h)

    def assertRequest(self, request, method, uri, body=None, headers=APP_HEADERS):
        self.assertEqual(request['method'], method)
        self.assertEqual(request['uri'], uri)
        self.assertEqual(request['body'], body)
        self.assertEqual(request['headers'], headers)


class TestObjectOperations(ServiceTestCase):

    def test_load_objects(self):
        response, request = self.call('load_objects',
            '{"success": {"a": {"__class__": "Dish", "name": "Soup"}}}', ['a', 'b'])
        self.assertRequest(request, 'GET', BASE + '/text?keys=a,b')
        self.assertTrue(isinstance(response, ObjectLoadResponse))
        self.assertEqual(response.object('a').name, 'Soup')

    def test_load_object(self):
        response, request = self.call('load_object', '{}', 'a b')
        self.assertRequest(request, 'GET', BASE + '/text?keys=a+b')

    def test_load_all_objects(self):
        options = RequestOptions(paging=PagingOptions(5, include_count=True))
        response, request = self.call('load_all_objects', '{"count": 12}', options)
        self.assertRequest(request, 'GET', BASE + '/text?limit=5&skip=0&count=true')
        self.assertEqual(response.count, 12)

    def test_search(self):
        response, request = self.call('search', '{}', '[x = 1]')
        self.assertRequest(request, 'GET', BASE + '/search?q=%5Bx+%3D+1%5D')

    def test_load_objects_of_class(self):
        response, request = self.call('load_objects_of_class', '{}', Dish)
        self.assertRequest(request, 'GET', BASE + '/search?q=%5B__class__+%3D+%22Dish%22%5D')

    def test_insert(self):
        response, request = self.call('insert', '{"success": {"k": "created"}}',
            DynamicObject('k', {'a': 1}))
        self.assertRequest(request, 'PUT', BASE + '/text', '{"k":{"a": 1}}', JSON_HEADERS)
        self.assertTrue(isinstance(response, ObjectModificationResponse))
        self.assertTrue(response.was_created('k'))

    def test_update(self):
        objects = [DynamicObject('k', {'a': 1}), Dish(object_id='d1', name='Stew')]
        response, request = self.call('update', '{"success": {"k": "updated"}}', objects)
        self.assertEqual(request['method'], 'POST')
        self.assertEqual(request['uri'], BASE + '/text')
        self.assertEqual(json.loads(request['body']), {
            'k': {'a': 1},
            'd1': {'__id__': 'd1', '__class__': 'Dish', 'name': 'Stew'},
        })
        self.assertTrue(response.was_updated('k'))

    def test_delete(self):
        response, request = self.call('delete', '{"success": {"a": "deleted"}}',
            ['a', Dish(object_id='b')])
        self.assertRequest(request, 'DELETE', BASE + '/data?keys=a,b')
        self.assertTrue(response.was_deleted('a'))

    def test_delete_all(self):
        response, request = self.call('delete_all', '{"success": {}}')
        self.assertRequest(request, 'DELETE', BASE + '/data?all=true')
        self.assertTrue(response.was_success())


class TestFileOperations(ServiceTestCase):

    def test_upload(self):
        response, request = self.call('upload_file', '{"key": "f1"}',
            StoredFile('f1', b'data', 'text/plain'))
        expected = dict(APP_HEADERS)
        expected['Content-Type'] = 'text/plain'
        self.assertRequest(request, 'PUT', BASE + '/binary/f1', b'data', expected)
        self.assertEqual(response.file_id, 'f1')

    def test_load(self):
        h = utils.mock_http(BASE, {'content-type': 'image/png', 'content': 'PNG'})
        service = utils.make_service(h)
        response = service.load_file('f1')
        self.assertRequest(utils.sent_request(h), 'GET', BASE + '/binary/f1')
        self.assertTrue(isinstance(response, FileLoadResponse))
        self.assertEqual(response.file, StoredFile('f1', b'PNG', 'image/png'))

    def test_metadata(self):
        response, request = self.call('load_file_metadata', '{}', 'f1')
        self.assertRequest(request, 'GET', BASE
            + '/search?q=%5B__type__+%3D+%22file%22%2C+__id__+%3D+%22f1%22%5D')

    def test_delete(self):
        response, request = self.call('delete_file', '{}', 'f1')
        self.assertRequest(request, 'DELETE', BASE + '/data?keys=f1')


class TestAccountOperations(ServiceTestCase):

    def test_create_user(self):
        response, request = self.call('create_user', '{"__id__": "u1", "__type__": "user"}',
            User('a@b.com', 'pw'))
        self.assertEqual(request['method'], 'PUT')
        self.assertEqual(request['uri'], BASE + '/account/create')
        self.assertEqual(request['headers'], JSON_HEADERS)
        body = json.loads(request['body'])
        self.assertEqual(body['credentials'], {'email': 'a@b.com', 'password': 'pw'})
        self.assertEqual(body['profile']['__class__'], 'CMUser')
        self.assertEqual(response.object_id, 'u1')

    def test_login(self):
        content = '''{"session_token": "tok", "expires": "Fri, 01 Jan 2099 00:00:00 GMT",
            "profile": {"__id__": "u1"}}'''
        response, request = self.call('login', content, User('a@b.com', 'pw'))
        expected = dict(APP_HEADERS)
        expected['Authorization'] = 'Basic YUBiLmNvbTpwdw=='
        self.assertRequest(request, 'POST', BASE + '/account/login', None, expected)
        self.assertTrue(isinstance(response, LoginResponse))
        self.assertEqual(response.session_token, TOKEN)
        self.assertEqual(response.user().object_id, 'u1')

    def test_login_failed(self):
        response, request = self.call('login', {'status': 401}, User('a@b.com', 'wrong'))
        self.assertTrue(response.session_token is SessionToken.FAILED)
        self.assertEqual(response.response_code, 'MISSING_OR_INVALID_AUTHORIZATION')

    def test_logout(self):
        h = utils.mock_http(BASE, '{}')
        service = utils.make_service(h)
        user_service = service.user_service(TOKEN)
        self.assertTrue(TOKEN in service.user_services)

        service.logout(TOKEN)

        self.assertRequest(utils.sent_request(h), 'POST', BASE + '/account/logout',
            None, USER_HEADERS)
        self.assertFalse(TOKEN in service.user_services)
        self.assertFalse(service.user_service(TOKEN) is user_service)

    def test_change_password(self):
        response, request = self.call('change_password', '{}', User('a@b.com', 'pw'), 'new')
        expected = dict(JSON_HEADERS)
        expected['Authorization'] = 'Basic YUBiLmNvbTpwdw=='
        self.assertRequest(request, 'POST', BASE + '/account/password/change',
            '{"password": "new"}', expected)

    def test_reset_password(self):
        response, request = self.call('reset_password_request', '{}', 'a@b.com')
        self.assertRequest(request, 'POST', BASE + '/account/password/reset',
            '{"email": "a@b.com"}', JSON_HEADERS)

        response, request = self.call('reset_password_confirmation', '{}', 'emailtok', 'new')
        self.assertRequest(request, 'POST', BASE + '/account/password/reset/emailtok',
            '{"password": "new"}', JSON_HEADERS)

    def test_users(self):
        response, request = self.call('load_all_users', '{}')
        self.assertRequest(request, 'GET', BASE + '/account')
        self.assertTrue(isinstance(response, ObjectLoadResponse))

        response, request = self.call('search_users', '{}', '[name = "x"]')
        self.assertRequest(request, 'GET', BASE + '/account/search?p=%5Bname+%3D+%22x%22%5D')

        response, request = self.call('delete_user', '{}', 'u1')
        self.assertRequest(request, 'DELETE', BASE + '/account/u1')


class TestPushOperations(ServiceTestCase):

    def test_send_notification(self):
        note = PushNotification('Hi', [PushTarget.user_id('u1')])
        response, request = self.call('send_notification', '{}', note)
        self.assertEqual(request['uri'], BASE + '/push')
        self.assertEqual(request['method'], 'POST')
        self.assertEqual(json.loads(request['body']), {'text': 'Hi', 'users': [{'userid': 'u1'}]})

    def test_channels(self):
        response, request = self.call('create_channel',
            '{"name": "news", "user_ids": ["u1"], "device_ids": []}',
            Channel('news', ['u1']))
        self.assertEqual(request['uri'], BASE + '/push/channel')
        self.assertEqual(json.loads(request['body']),
            {'name': 'news', 'users': ['u1'], 'device_ids': []})
        self.assertTrue(isinstance(response, PushChannelResponse))
        self.assertEqual(response.user_ids, ['u1'])

        response, request = self.call('delete_channel', '{}', Channel('news'))
        self.assertRequest(request, 'DELETE', BASE + '/push/channel/news')


class TestUserWebService(unittest.TestCase):

    def make_user_service(self, content='{}'):
        self.http = utils.mock_http(BASE, content)
        return utils.make_service(self.http).user_service(TOKEN)

    def sent(self):
        return utils.sent_request(self.http)

    def test_user_service(self):
        service = utils.make_service(utils.mock_http(BASE, '{}'))
        user_service = service.user_service(TOKEN)
        self.assertTrue(isinstance(user_service, UserWebService))
        self.assertTrue(service.user_service(TOKEN) is user_service)
        self.assertTrue(user_service.user_service(TOKEN) is user_service)
        self.assertTrue(user_service.transport is service.transport)

        self.assertRaises(CreationError, service.user_service, None)
        self.assertRaises(CreationError, service.user_service, SessionToken.FAILED)

    def test_objects(self):
        self.make_user_service().load_objects(['a'])
        request = self.sent()
        self.assertEqual(request['uri'], BASE + '/user/text?keys=a')
        self.assertEqual(request['headers'], USER_HEADERS)

    def test_profile(self):
        self.make_user_service().load_profile()
        self.assertEqual(self.sent()['uri'], BASE + '/account/mine')

        user = User('a@b.com', object_id='u1')
        self.make_user_service().update_profile(user)
        request = self.sent()
        self.assertEqual(request['method'], 'PUT')
        self.assertEqual(request['uri'], BASE + '/account')
        self.assertEqual(json.loads(request['body']), {'__id__': 'u1', '__class__': 'CMUser'})

    def test_access_lists(self):
        acl = AccessList(permissions=[AccessPermission.READ], object_id='acl1')
        acl.grant_access_to('u2')
        self.make_user_service('{"__id__": "acl1"}').insert_access_list(acl)
        request = self.sent()
        self.assertEqual(request['method'], 'POST')
        self.assertEqual(request['uri'], BASE + '/user/access')
        self.assertEqual(json.loads(request['body'])['members'], ['u2'])

        response = self.make_user_service(
            '{"success": {"acl1": {"__type__": "acl", "members": ["u2"]}}}').load_access_lists()
        self.assertEqual(self.sent()['uri'], BASE + '/user/access')
        self.assertTrue(isinstance(response.object('acl1'), AccessList))

    def test_social_graph_query(self):
        response = self.make_user_service('{"statuses": []}').social_graph_query(
            'twitter', 'get', 'statuses/home_timeline', params={'count': 5})
        request = self.sent()
        self.assertEqual(request['method'], 'GET')
        self.assertEqual(request['uri'], BASE
            + '/user/social/twitter/statuses/home_timeline?params=%7B%22count%22%3A+5%7D')
        self.assertEqual(request['body'], None)
        self.assertTrue(isinstance(response, SocialGraphResponse))
        self.assertEqual(response.get('statuses'), [])

    def test_social_graph_body(self):
        self.make_user_service().social_graph_query('twitter', 'POST',
            'statuses/update', headers={'X-Extra': '1'}, body=b'status=hi')
        request = self.sent()
        self.assertEqual(request['uri'], BASE
            + '/user/social/twitter/statuses/update?headers=%7B%22X-Extra%22%3A+%221%22%7D')
        self.assertEqual(request['body'], b'status=hi')

        self.make_user_service().social_graph_query('twitter', 'DELETE', 'x', body=b'no')
        self.assertEqual(self.sent()['body'], None)

    def test_social_graph_bad_method(self):
        service = self.make_user_service()
        self.assertRaises(InvalidRequestError, service.social_graph_query,
            'twitter', 'PATCH', 'x')
        self.assertFalse(self.http.request.called)


class TestDispatch(unittest.TestCase):

    def test_network_error(self):
        h = mock.Mock(spec=httplib2.Http)
        error = socket.error('connection refused')
        h.request.side_effect = error
        service = utils.make_service(h)

        try:
            service.load_all_objects()
        except NetworkError as exc:
            self.assertTrue(exc.cause is error)
            self.assertTrue(exc.__cause__ is error)
        else:
            self.fail('load_all_objects() did not raise NetworkError')

    def test_callbacks(self):
        service = utils.make_service(utils.mock_http(BASE, '{"success": {"k": "created"}}'))
        on_success, on_failure = mock.Mock(), mock.Mock()

        result = service.insert(DynamicObject('k'), on_success=on_success, on_failure=on_failure)

        self.assertEqual(result, None)
        response = on_success.call_args[0][0]
        self.assertTrue(isinstance(response, ObjectModificationResponse))
        self.assertTrue(response.was_created('k'))
        self.assertFalse(on_failure.called)

    def test_callback_failure(self):
        h = mock.Mock(spec=httplib2.Http)
        h.request.side_effect = socket.error('down')
        service = utils.make_service(h)
        on_success, on_failure = mock.Mock(), mock.Mock()

        service.delete_all(on_success=on_success, on_failure=on_failure)

        self.assertFalse(on_success.called)
        self.assertTrue(isinstance(on_failure.call_args[0][0], socket.error))

    def test_response_times_reported(self):
        h = utils.mock_http(BASE, {'content': '{}', 'x-request-id': 'req7'})
        service = utils.make_service(h)
        service.load_all_objects()
        service.load_all_objects()
        device = h.request.call_args[1]['headers']['X-CloudMine-UT']
        self.assertTrue(device.startswith('device-1;req7:'), device)


class TestUserServiceCache(unittest.TestCase):

    def test_lru(self):
        cache = UserServiceCache(max_size=2)
        a = cache.get('a', lambda: 'service a')
        self.assertEqual(cache.get('a', lambda: 'other'), a)
        cache.get('b', lambda: 'service b')
        cache.get('a', lambda: 'other')
        cache.get('c', lambda: 'service c')
        self.assertEqual(len(cache), 2)
        self.assertTrue('a' in cache)
        self.assertFalse('b' in cache, 'least recently used was dropped')

        cache.invalidate('a')
        cache.invalidate('zzz')
        self.assertFalse('a' in cache)


class TestCredentials(unittest.TestCase):

    def test_required(self):
        self.assertRaises(CreationError, Credentials, '', 'key')
        self.assertRaises(CreationError, Credentials, 'app', None)
        self.assertRaises(CreationError, Credentials, 'app', 'key', '')

    def test_from_environ(self):
        credentials = Credentials.from_environ({
            'CLOUDOBJECTS_APP_ID': 'app',
            'CLOUDOBJECTS_API_KEY': 'key',
        })
        self.assertEqual(credentials.app_id, 'app')
        self.assertEqual(credentials.api_key, 'key')
        self.assertEqual(credentials.base_url, 'https://api.cloudmine.me')

        credentials = Credentials.from_environ({
            'CLOUDOBJECTS_APP_ID': 'app',
            'CLOUDOBJECTS_API_KEY': 'key',
            'CLOUDOBJECTS_BASE_URL': 'http://localhost:3001',
        })
        self.assertEqual(credentials.base_url, 'http://localhost:3001')

        self.assertRaises(CreationError, Credentials.from_environ, {})

    def test_service_for(self):
        h = utils.mock_http(BASE, '{}')
        service = service_for(Credentials(utils.APP_ID, utils.API_KEY), http=h,
            header_factory=utils.make_header_factory())
        response = service.load_all_objects()
        self.assertEqual(utils.sent_request(h)['uri'], BASE + '/text')
        self.assertTrue(isinstance(response, ServiceResponse))


if __name__ == '__main__':
    unittest.main()
