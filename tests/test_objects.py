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
import unittest

from cloudobjects import fields
from cloudobjects.errors import AccessError, CreationError
from cloudobjects.objects import (CloudObject, User, StoredFile, PushTarget,
    PushNotification, Channel, AccessList, AccessPermission)
from cloudobjects.session import SessionToken, StoreIdentifier


utc = fields.Datetime.utc


class Bookmark(CloudObject):
    class_name = 'Bookmark'
    url   = fields.Field()
    added = fields.Datetime()


def logged_in_user(email='cook@example.com', object_id='u1'):
    user = User(email, 'secret', object_id=object_id)
    user.session_token = SessionToken('tok-%s' % object_id, datetime(2099, 1, 1, tzinfo=utc))
    return user


class TestCloudObject(unittest.TestCase):

    def test_to_dict(self):
        mark = Bookmark(object_id='b1', url='http://example.com/',
            added=datetime(1970, 1, 2, tzinfo=utc))
        self.assertEqual(mark.to_dict(), {
            '__id__': 'b1',
            '__class__': 'Bookmark',
            'url': 'http://example.com/',
            'added': {'__class__': 'datetime', 'timestamp': 86400},
        })
        self.assertEqual(mark.as_keyed_object()[:6], '"b1":{')

    def test_from_dict(self):
        mark = Bookmark.from_dict({'__id__': 'b2', 'url': 'http://example.org/',
            'added': {'__class__': 'datetime', 'timestamp': 0}})
        self.assertEqual(mark.object_id, 'b2')
        self.assertEqual(mark.added, datetime(1970, 1, 1, tzinfo=utc))

    def test_generated_id(self):
        self.assertTrue(Bookmark().object_id)
        self.assertNotEqual(Bookmark().object_id, Bookmark().object_id)

    def test_save_with(self):
        mark = Bookmark()
        self.assertEqual(mark.saved_with, StoreIdentifier.DEFAULT)
        self.assertTrue(mark.is_application_level())

        user = logged_in_user()
        mark.save_with(user)
        self.assertTrue(mark.is_user_level())
        self.assertEqual(mark.saved_with.session_token, user.session_token)

        mark.save_with(user)
        self.assertRaises(AccessError, mark.save_with, StoreIdentifier.DEFAULT)

    def test_grant_access(self):
        mark = Bookmark(object_id='b3')
        acl = AccessList(object_id='acl1')
        mark.grant_access(acl)
        mark.grant_access('acl1')
        self.assertEqual(mark.to_dict()['__access__'], ['acl1'])


class TestUser(unittest.TestCase):

    def test_transport(self):
        user = User('cook@example.com', 'secret', object_id='u1')
        self.assertEqual(user.to_transport_dict(), {
            'credentials': {'email': 'cook@example.com', 'password': 'secret'},
            'profile': {'__id__': 'u1', '__class__': 'CMUser'},
        })

    def test_logged_in(self):
        user = User('cook@example.com', 'secret')
        self.assertFalse(user.is_logged_in())
        self.assertRaises(CreationError, user.store_identifier)

        user.session_token = SessionToken.FAILED
        self.assertFalse(user.is_logged_in())

        self.assertTrue(logged_in_user().is_logged_in())


class TestStoredFile(unittest.TestCase):

    def test_file(self):
        stored = StoredFile('f1', 'hello')
        self.assertEqual(stored.contents, b'hello')
        self.assertEqual(stored.content_type, StoredFile.DEFAULT_CONTENT_TYPE)
        self.assertEqual(stored.to_dict(), {'key': 'f1',
            'content_type': 'application/octet-stream', '__type__': 'file'})
        self.assertEqual(stored, StoredFile('f1', b'hello'))
        self.assertNotEqual(stored, StoredFile('f1', b'bye'))
        self.assertTrue(StoredFile(contents=b'').file_id)

    def test_no_contents(self):
        self.assertRaises(CreationError, StoredFile, 'f1', None)


class TestPush(unittest.TestCase):

    def test_notification(self):
        note = PushNotification('Dinner is ready')
        note.add_target(PushTarget.email('a@example.com'))
        note.add_user(User('b@example.com', object_id='u2'))
        note.add_target(PushTarget.username('chef'))
        note.add_device_id('d1')
        self.assertEqual(note.to_dict(), {
            'text': 'Dinner is ready',
            'users': [{'email': 'a@example.com'}, {'userid': 'u2'}, {'username': 'chef'}],
            'device_ids': ['d1'],
        })

        note = PushNotification('News', channel='news')
        self.assertEqual(note.to_dict(), {'text': 'News', 'channel': 'news'})

    def test_target_kind(self):
        self.assertRaises(CreationError, PushTarget, 'fax', '555')
        self.assertEqual(PushTarget.user_id('u1'), PushTarget('userid', 'u1'))

    def test_channel(self):
        channel = Channel('news').add_user(User(object_id='u1')).add_user('u2').add_device_id('d1')
        self.assertEqual(channel.to_dict(), {'name': 'news', 'users': ['u1', 'u2'],
            'device_ids': ['d1']})
        self.assertEqual(channel, Channel('news', ['u1', 'u2'], ['d1']))
        self.assertRaises(CreationError, Channel, '')


class TestAccessList(unittest.TestCase):

    def test_grants(self):
        owner = logged_in_user()
        acl = AccessList(owner, [AccessPermission.READ], object_id='acl1')
        acl.grant_access_to('u2', logged_in_user('x@example.com', 'u3'))
        acl.grant_permissions(AccessPermission.UPDATE, AccessPermission.READ)

        self.assertTrue(acl.is_user_level())
        self.assertTrue(acl.is_owned_by(owner))
        self.assertTrue(acl.allows_access_to('u3'))
        self.assertFalse(acl.allows_access_to('u4'))
        self.assertFalse(acl.allows_access_to(None))
        self.assertTrue(acl.grants_permissions(AccessPermission.READ, AccessPermission.UPDATE))
        self.assertFalse(acl.grants_permissions(AccessPermission.DELETE))
        self.assertEqual(acl.to_dict(), {
            '__id__': 'acl1',
            '__type__': 'acl',
            'members': ['u2', 'u3'],
            'permissions': ['r', 'u'],
        })
        self.assertRaises(CreationError, acl.grant_permissions, 'x')


if __name__ == '__main__':
    unittest.main()
