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

Transports that carry requests to the backend.

Every transport offers the same two calls:

* `send()` performs one request on the calling thread and returns a
  `RawResponse`, raising the underlying exception if no response could be
  obtained.

* `execute()` dispatches a request and reports back through callbacks:
  `on_success(response)` whenever a response arrives, whatever its status,
  or `on_failure(error, message)` when none could be obtained. Exactly one
  of the two is called for each request. An exception raised by
  `on_success` is not passed to `on_failure`.

`SynchronousTransport` does all of it on the calling thread with
`httplib2`. `ThreadedTransport` starts a thread per request and retries I/O
errors a few times. `ReactorTransport` runs requests on a shared `asyncio`
loop with `httpx`, and is the one transport whose requests can be cancelled.

"""

import asyncio
from concurrent import futures
import logging
import threading
import time

import httplib2
import httpx

from cloudobjects.errors import RequestCancelled


log = logging.getLogger('cloudobjects.http')

RETRY_REQUEST_COUNT = 4

IO_ERRORS = (OSError, httplib2.HttpLib2Error)

TRANSPORT_ERRORS = IO_ERRORS + (httpx.HTTPError, RequestCancelled, futures.CancelledError)


class RawResponse(object):

    """A transport-neutral HTTP response: a status code, headers (with
    lowercased names), and the body as bytes."""

    def __init__(self, status, headers=None, content=b''):
        self.status = status
        self.headers = dict((k.lower(), v) for k, v in (headers or {}).items())
        if isinstance(content, str):
            content = content.encode('utf-8')
        self.content = content or b''

    @classmethod
    def from_httplib2(cls, response, content):
        headers = dict(response)
        headers.pop('status', None)
        return cls(response.status, headers, content)

    @classmethod
    def from_httpx(cls, response):
        return cls(response.status_code, dict(response.headers), response.content)

    def get(self, header, default=None):
        return self.headers.get(header.lower(), default)

    @property
    def content_type(self):
        return self.get('content-type', '').split(';', 1)[0].strip()

    @property
    def text(self):
        return self.content.decode('utf-8', 'replace')

    def __repr__(self):
        return '<RawResponse %d %s>' % (self.status, self.content_type)


class ResponseTimeStore(object):

    """Collects how long recent requests took, by backend request id, to
    report back to the backend with later requests.

    `drain()` renders the samples as ``id:ms,id:ms`` and forgets them. No
    lock is taken, so a sample recorded while another thread drains may be
    lost.

    """

    REQUEST_ID_HEADER = 'x-request-id'

    def __init__(self):
        self.samples = {}

    def record(self, request_id, milliseconds):
        self.samples[request_id] = int(milliseconds)

    def record_response(self, raw, started):
        request_id = raw.get(self.REQUEST_ID_HEADER)
        if request_id:
            self.record(request_id, (time.time() - started) * 1000)

    def drain(self):
        samples, self.samples = self.samples, {}
        return ','.join('%s:%d' % (request_id, ms)
            for request_id, ms in samples.items())


class Transport(object):

    """Base class for transports.

    Subclasses implement `send_once()`, performing a single request and
    returning a `RawResponse`.

    """

    def __init__(self, response_times=None):
        if response_times is None:
            response_times = ResponseTimeStore()
        self.response_times = response_times

    def send_once(self, method, url, headers, body):
        raise NotImplementedError

    def send(self, method, url, headers=None, body=None):
        """Performs the request on the calling thread and returns its
        `RawResponse`."""
        log.debug('%s %s', method, url)
        started = time.time()
        raw = self.send_once(method, url, headers or {}, body)
        self.response_times.record_response(raw, started)
        log.debug('%s %s returned %d', method, url, raw.status)
        return raw

    def execute(self, method, url, headers=None, body=None, on_success=None,
                on_failure=None, constructor=None):
        raise NotImplementedError

    def deliver(self, raw, on_success, on_failure, constructor):
        """Builds the response for `raw` with `constructor` and hands it to
        `on_success`."""
        try:
            response = constructor(raw) if constructor is not None else raw
        except Exception as exc:
            self.fail(on_failure, exc, 'Could not construct a response from %r' % (raw,))
            return
        if on_success is not None:
            on_success(response)

    def fail(self, on_failure, error, message):
        log.error('%s: %s', message, error)
        if on_failure is not None:
            on_failure(error, message)

    def close(self):
        pass


class SynchronousTransport(Transport):

    """A transport that performs each request on the calling thread.

    Optional parameter `http` is the user agent to use, which should be
    compatible with `httplib2.Http`.

    """

    def __init__(self, http=None, response_times=None):
        super(SynchronousTransport, self).__init__(response_times)
        if http is None:
            http = httplib2.Http()
        self.http = http

    def send_once(self, method, url, headers, body):
        response, content = self.http.request(uri=url, method=method,
            body=body, headers=headers)
        return RawResponse.from_httplib2(response, content)

    def execute(self, method, url, headers=None, body=None, on_success=None,
                on_failure=None, constructor=None):
        try:
            raw = self.send(method, url, headers, body)
        except Exception as exc:
            self.fail(on_failure, exc, 'Request %s %s failed' % (method, url))
            return
        self.deliver(raw, on_success, on_failure, constructor)


def default_retry_predicate(error, attempt):
    """Retries I/O errors until `RETRY_REQUEST_COUNT` attempts were made."""
    return isinstance(error, IO_ERRORS) and attempt < RETRY_REQUEST_COUNT


class ThreadedTransport(Transport):

    """A transport that performs each request on a new thread of its own.

    Requests that fail with an I/O error are tried again for as long as
    `retry_predicate(error, attempt)` says so, by default up to
    `RETRY_REQUEST_COUNT` attempts in all. Any other error fails the request
    at once.

    Each attempt uses a new user agent made by `http_factory`, since
    `httplib2.Http` instances must not be shared between threads.

    """

    def __init__(self, http_factory=httplib2.Http, retry_predicate=None,
                 response_times=None):
        super(ThreadedTransport, self).__init__(response_times)
        self.http_factory = http_factory
        if retry_predicate is None:
            retry_predicate = default_retry_predicate
        self.retry_predicate = retry_predicate

    def send_once(self, method, url, headers, body):
        http = self.http_factory()
        response, content = http.request(uri=url, method=method, body=body,
            headers=headers)
        return RawResponse.from_httplib2(response, content)

    def send(self, method, url, headers=None, body=None):
        attempt = 0
        while True:
            attempt += 1
            try:
                return super(ThreadedTransport, self).send(method, url, headers, body)
            except IO_ERRORS as exc:
                if not self.retry_predicate(exc, attempt):
                    raise
                log.info('Retrying %s %s after failed attempt %d: %s',
                    method, url, attempt, exc)

    def execute(self, method, url, headers=None, body=None, on_success=None,
                on_failure=None, constructor=None):
        thread = threading.Thread(target=self.run,
            args=(method, url, headers, body, on_success, on_failure, constructor))
        thread.daemon = True
        thread.start()
        return thread

    def run(self, method, url, headers, body, on_success, on_failure, constructor):
        try:
            raw = self.send(method, url, headers, body)
        except Exception as exc:
            self.fail(on_failure, exc, 'Request %s %s failed' % (method, url))
            return
        self.deliver(raw, on_success, on_failure, constructor)


class RequestHandle(object):

    """A request in flight on a `ReactorTransport`."""

    def __init__(self, future):
        self.future = future

    def cancel(self):
        """Cancels the request if it has not completed yet. The request's
        failure callback then receives a `RequestCancelled` error.

        Returns whether the request was cancelled.

        """
        return self.future.cancel()

    def done(self):
        return self.future.done()

    def wait(self, timeout=None):
        """Blocks until the request completes or is cancelled, and returns
        whether it did within `timeout` seconds."""
        done, pending = futures.wait([self.future], timeout)
        return not pending


class ReactorTransport(Transport):

    """A transport that runs every request on one shared `asyncio` event
    loop, through one shared `httpx.AsyncClient`.

    The loop runs on a daemon thread started with the transport, and
    callbacks run on that thread. Call `close()` to shut both down.

    """

    def __init__(self, client=None, timeout=30.0, response_times=None):
        super(ReactorTransport, self).__init__(response_times)
        if client is None:
            client = httpx.AsyncClient(timeout=timeout)
        self.client = client
        self.loop = asyncio.new_event_loop()
        self.thread = threading.Thread(target=self.run_loop,
            name='cloudobjects-reactor')
        self.thread.daemon = True
        self.thread.start()

    def run_loop(self):
        asyncio.set_event_loop(self.loop)
        self.loop.run_forever()

    async def request(self, method, url, headers, body):
        log.debug('%s %s', method, url)
        started = time.time()
        response = await self.client.request(method, url, headers=headers,
            content=body)
        raw = RawResponse.from_httpx(response)
        self.response_times.record_response(raw, started)
        log.debug('%s %s returned %d', method, url, raw.status)
        return raw

    def submit(self, method, url, headers, body):
        return asyncio.run_coroutine_threadsafe(
            self.request(method, url, headers or {}, body), self.loop)

    def send(self, method, url, headers=None, body=None):
        return self.submit(method, url, headers, body).result()

    def execute(self, method, url, headers=None, body=None, on_success=None,
                on_failure=None, constructor=None):
        future = self.submit(method, url, headers, body)

        def complete(future):
            if future.cancelled():
                self.fail(on_failure,
                    RequestCancelled('Request %s %s was cancelled' % (method, url)),
                    'Request %s %s was cancelled' % (method, url))
                return
            error = future.exception()
            if error is not None:
                self.fail(on_failure, error, 'Request %s %s failed' % (method, url))
                return
            self.deliver(future.result(), on_success, on_failure, constructor)

        future.add_done_callback(complete)
        return RequestHandle(future)

    def close(self):
        if self.loop.is_closed():
            return
        asyncio.run_coroutine_threadsafe(self.client.aclose(), self.loop).result()
        self.loop.call_soon_threadsafe(self.loop.stop)
        self.thread.join()
        self.loop.close()
