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

Stores route domain objects to the application's or a user's data.

A `Store` pairs a `WebService` with a default `StoreIdentifier`. Objects
saved through it are stored where their own identifier says, which is the
store's identifier unless they were already set to be stored elsewhere:

>>> store = Store.for_user(service, logged_in_user)
>>> store.save(recipe)      # now stored with logged_in_user

"""

import logging

from cloudobjects.errors import CreationError
from cloudobjects.session import StoreIdentifier


log = logging.getLogger('cloudobjects.store')


class Store(object):

    def __init__(self, service, identifier=None):
        if identifier is None:
            identifier = StoreIdentifier.DEFAULT
        self.service = service
        self.identifier = identifier

    @classmethod
    def for_user(cls, service, user):
        return cls(service, user.store_identifier())

    def service_for(self, identifier):
        """Returns the service that reaches objects stored with
        `identifier`."""
        if identifier.is_application_level():
            return self.service
        return self.service.user_service(identifier.session_token)

    @property
    def store_service(self):
        return self.service_for(self.identifier)

    def claim(self, obj):
        """Sets `obj` to be stored with this store's identifier, unless it
        already has one of its own, and returns the identifier it has."""
        if not obj.has_store_identifier() and self.identifier != StoreIdentifier.DEFAULT:
            obj.save_with(self.identifier)
        return obj.saved_with

    def save(self, obj, options=None, **callbacks):
        identifier = self.claim(obj)
        log.debug('Saving %r with %r', obj, identifier)
        return self.service_for(identifier).update([obj], options, **callbacks)

    def save_all(self, objects, options=None, **callbacks):
        """Saves several objects, with one request for each place they are
        stored. Returns the list of results."""
        groups = []
        for obj in objects:
            identifier = self.claim(obj)
            for group_identifier, group in groups:
                if group_identifier == identifier:
                    group.append(obj)
                    break
            else:
                groups.append((identifier, [obj]))
        return [self.service_for(identifier).update(group, options, **callbacks)
            for identifier, group in groups]

    def delete(self, obj, **callbacks):
        return self.service_for(obj.saved_with).delete([obj], **callbacks)

    def load_objects(self, keys=None, options=None, **callbacks):
        return self.store_service.load_objects(keys, options, **callbacks)

    def load_objects_of_class(self, cls, options=None, **callbacks):
        return self.store_service.load_objects_of_class(cls, options, **callbacks)

    def search(self, query, options=None, **callbacks):
        return self.store_service.search(query, options, **callbacks)

    def save_file(self, stored_file, options=None, **callbacks):
        identifier = self.claim(stored_file)
        return self.service_for(identifier).upload_file(stored_file, options, **callbacks)

    def load_file(self, file_id, options=None, **callbacks):
        return self.store_service.load_file(file_id, options, **callbacks)

    def delete_file(self, stored_file, **callbacks):
        return self.service_for(stored_file.saved_with).delete_file(
            stored_file.file_id, **callbacks)

    def save_access_list(self, access_list, **callbacks):
        """Saves an access list with its owner, which must be logged in."""
        identifier = self.claim(access_list)
        if identifier.is_application_level():
            raise CreationError('Access lists are stored with a logged in user')
        return self.service_for(identifier).insert_access_list(access_list, **callbacks)

    def load_access_lists(self, **callbacks):
        return self.store_service.load_access_lists(**callbacks)
