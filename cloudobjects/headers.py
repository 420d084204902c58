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

"""Request headers the backend expects on every call."""

import base64
import logging
import os
import uuid


log = logging.getLogger('cloudobjects.headers')

API_KEY_HEADER = 'X-CloudMine-ApiKey'
AGENT_HEADER = 'X-CloudMine-Agent'
SESSION_TOKEN_HEADER = 'X-CloudMine-SessionToken'
DEVICE_HEADER = 'X-CloudMine-UT'
AGENT = 'cloudobjects 1.0'
DEVICE_ID_DELIMITER = ';'

JSON_CONTENT_TYPE = 'application/json'


class DeviceIdentifier(object):

    """A unique id for this installation, kept in a properties file.

    The file holds ``key=value`` lines; the id is stored under
    ``uniqueId``. It is read the first time the id is asked for, and created
    with a new id if it does not exist or has none.

    """

    UNIQUE_ID_KEY = 'uniqueId'
    PROPERTIES_FILE = 'cmPropertiesUUID'

    def __init__(self, path=None):
        if path is None:
            path = self.PROPERTIES_FILE
        self.path = path
        self._unique_id = None

    @property
    def unique_id(self):
        if self._unique_id is None:
            properties = self.load()
            unique_id = properties.get(self.UNIQUE_ID_KEY)
            if not unique_id:
                unique_id = uuid.uuid4().hex
                properties[self.UNIQUE_ID_KEY] = unique_id
                self.save(properties)
            self._unique_id = unique_id
        return self._unique_id

    def load(self):
        properties = {}
        if not os.path.isfile(self.path):
            return properties
        try:
            with open(self.path) as f:
                for line in f:
                    line = line.strip()
                    if not line or line[0] in '#!' or '=' not in line:
                        continue
                    key, value = line.split('=', 1)
                    properties[key.strip()] = value.strip()
        except IOError as exc:
            log.warning('Could not read device identifier from %s: %s', self.path, exc)
        return properties

    def save(self, properties):
        try:
            with open(self.path, 'w') as f:
                for key, value in properties.items():
                    f.write('%s=%s\n' % (key, value))
        except IOError as exc:
            # The id still works for this process; it just won't persist.
            log.warning('Could not save device identifier to %s: %s', self.path, exc)


class HeaderFactory(object):

    """Builds the headers sent with each request.

    Every request carries the application's API key, the agent name, and the
    device identifier followed by any response time samples waiting in
    `response_times`.

    """

    def __init__(self, api_key, device_identifier=None, response_times=None,
                 agent=AGENT):
        self.api_key = api_key
        if device_identifier is None:
            device_identifier = DeviceIdentifier()
        self.device_identifier = device_identifier
        self.response_times = response_times
        self.agent = agent

    def device_header(self):
        value = self.device_identifier.unique_id
        if self.response_times is not None:
            samples = self.response_times.drain()
            if samples:
                value = value + DEVICE_ID_DELIMITER + samples
        return value

    def headers(self):
        return {
            API_KEY_HEADER: self.api_key,
            AGENT_HEADER: self.agent,
            DEVICE_HEADER: self.device_header(),
        }

    def user_headers(self, session_token):
        headers = self.headers()
        headers[SESSION_TOKEN_HEADER] = session_token.token
        return headers


def basic_authorization(email, password):
    """Returns an HTTP Basic ``Authorization`` header value."""
    credentials = ('%s:%s' % (email, password)).encode('utf-8')
    return 'Basic %s' % base64.b64encode(credentials).decode('ascii')
