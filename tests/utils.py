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

import logging

import httplib2
import mock

from cloudobjects import headers, http
from cloudobjects.service import Credentials, WebService


APP_ID = 'app123'
API_KEY = 'key456'
BASE = 'https://api.cloudmine.me/v1/app/app123'


def make_response(response, url):
    default_response = {
        'status':           200,
        'content-type':     'application/json',
        'content-location': url,
    }

    if isinstance(response, dict):
        response = dict(response)
        content = response.pop('content', '')
        status = response.get('status', 200)
        if 200 <= status < 300:
            response_info = dict(default_response)
            response_info.update(response)
        else:
            # Use only the given headers for errors.
            response_info = dict(response)
    else:
        response_info = dict(default_response)
        content = response

    if isinstance(content, str):
        content = content.encode('utf-8')
    return httplib2.Response(response_info), content


def mock_http(url, resp_or_content):
    """Returns a stand-in for `httplib2.Http` whose `request()` answers with
    the given response, or with the given content and a 200 status."""
    http = mock.Mock(spec=httplib2.Http)
    http.request.return_value = make_response(resp_or_content, url)
    return http


class FixedDeviceIdentifier(object):

    unique_id = 'device-1'


def make_header_factory(response_times=None):
    return headers.HeaderFactory(API_KEY, FixedDeviceIdentifier(),
        response_times=response_times)


def make_service(http_mock):
    transport = http.SynchronousTransport(http=http_mock)
    return WebService(Credentials(APP_ID, API_KEY), transport,
        make_header_factory(transport.response_times))


def sent_request(http_mock):
    """Returns the keyword arguments of the one request made through
    `http_mock`."""
    http_mock.request.assert_called_once_with(uri=mock.ANY, method=mock.ANY,
        body=mock.ANY, headers=mock.ANY)
    return http_mock.request.call_args[1]


def log():
    import sys
    logging.basicConfig(level=logging.DEBUG, stream=sys.stderr, format="%(asctime)s %(levelname)s %(message)s")
