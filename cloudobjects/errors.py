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

Exceptions raised by `cloudobjects`.

Failures the backend reports (a non-2xx status, an ``errors`` map in the
response envelope) are *not* exceptions: they are data on the response
object, and callers check `ServiceResponse.was_success()`. The exceptions
here cover the cases where no usable request could be built, no response
could be obtained, or outside content could not be converted.

"""


class CloudObjectsError(Exception):
    """Base class for all exceptions raised by `cloudobjects`."""
    pass


class CreationError(CloudObjectsError, ValueError):
    """An exception raised when an object is constructed with invalid
    arguments, such as a `ServerFunction` without a snippet name or a
    `URLBuilder` without a base URL.

    These are raised synchronously, before any network activity.

    """
    pass


class ConversionError(CloudObjectsError, ValueError):
    """An exception raised when outside content (usually JSON) does not have
    the shape required to build the requested object."""
    pass


class AccessError(CloudObjectsError):
    """An exception raised when a write-once value, such as the
    `StoreIdentifier` of a stored object, is changed after it was set."""
    pass


class InvalidRequestError(CloudObjectsError):
    """An exception raised when a request cannot be expressed against the
    backend, such as a social graph query with an unsupported HTTP verb."""
    pass


class NetworkError(CloudObjectsError):
    """An exception raised by a synchronous call when the transport could
    not obtain any response.

    The underlying transport exception is available as `cause` (and as the
    exception's ``__cause__``).

    """

    def __init__(self, message, cause=None):
        super(NetworkError, self).__init__(message)
        self.cause = cause


class RequestCancelled(CloudObjectsError):
    """The error passed to a failure callback when a request dispatched
    through a `ReactorTransport` was cancelled before it completed."""
    pass
