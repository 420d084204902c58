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

"""Geographic points and distances for geo-tagged objects and searches."""

from cloudobjects.dynamic import DynamicObject, ObjectType
from cloudobjects.errors import ConversionError, CreationError


class DistanceUnits(object):
    km = 'km'
    mi = 'mi'

    all = (km, mi)


class Distance(object):

    """A measurement in `DistanceUnits`, rendering as e.g. ``5.0km``."""

    DEFAULT_UNITS = DistanceUnits.km

    def __init__(self, measurement, units=DEFAULT_UNITS):
        if units not in DistanceUnits.all:
            raise CreationError("Can't have a distance in units %r" % (units,))
        self.measurement = float(measurement)
        self.units = units

    def __str__(self):
        return '%r%s' % (self.measurement, self.units)

    def __repr__(self):
        return '<Distance %s>' % self

    def __eq__(self, other):
        if not isinstance(other, Distance):
            return NotImplemented
        return (self.measurement, self.units) == (other.measurement, other.units)

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self):
        return hash((self.measurement, self.units))


class GeoPoint(DynamicObject):

    """A `DynamicObject` holding a longitude and latitude.

    Points from older clients may store their coordinates under other names,
    so reading a coordinate checks each of `LATITUDE_KEYS` or
    `LONGITUDE_KEYS` in order and uses the first that holds a number.

    """

    LATITUDE_KEYS = ('latitude', 'lat', 'y')
    LONGITUDE_KEYS = ('longitude', 'lon', 'x')
    LATITUDE_KEY = 'latitude'
    LONGITUDE_KEY = 'longitude'
    GEOPOINT_CLASS = 'CMGeoPoint'

    def __init__(self, longitude, latitude, key=None):
        super(GeoPoint, self).__init__(key)
        self.set_class(self.GEOPOINT_CLASS)
        self.set_type(ObjectType.GEO_POINT)
        self.add(self.LONGITUDE_KEY, float(longitude))
        self.add(self.LATITUDE_KEY, float(latitude))

    def validate(self):
        if not (self.is_type(ObjectType.GEO_POINT)
                and self.latitude is not None
                and self.longitude is not None):
            raise ConversionError('Given non geopoint contents to construct geopoint: %r'
                % (self.contents,))
        self.set_class(self.GEOPOINT_CLASS)

    @property
    def latitude(self):
        return self.get_float(*self.LATITUDE_KEYS)

    @property
    def longitude(self):
        return self.get_float(*self.LONGITUDE_KEYS)

    def location_string(self):
        """Returns ``<longitude>, <latitude>`` as used in search queries."""
        return '%r, %r' % (self.longitude, self.latitude)
