# -*- coding: utf-8 -*-
# Copyright 2015 Red Hat, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
#     Unless required by applicable law or agreed to in writing, software
#     distributed under the License is distributed on an "AS IS" BASIS,
#     WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#     See the License for the specific language governing permissions and
#     limitations under the License.

import datetime

from gcloud_client import datastore
from gcloud_client.db import model


_EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)


class Property(object):
    """Describes a property of an entity.

    Properties are declared as class attributes of a ModelDescription.
    """

    def __init__(self, property_name=None, required=False, indexed=True):
        """Initialize property.

        :param property_name: Name of the property in Datastore.  If None the
                              name of the description attribute is used.
        :type property_name: String
        :param required: Whether a value is enforced when saving models to
                         Datastore and when reading them.
        :type required: bool
        :param indexed: Whether the property is indexed, which is necessary
                        for running queries on it.
        :type indexed: bool
        """
        self.property_name = property_name
        self.required = required
        self.indexed = indexed

    def validate(self, model_db, value):
        return not (self.required and value is None)

    def encode_value(self, model_db, value):
        raise NotImplementedError()

    def decode_primitive_value(self, model_db, value):
        raise NotImplementedError()

    def __repr__(self):
        return '%s(property_name=%r)' % (self.__class__.__name__,
                                         self.property_name)


class PrimitiveProperty(Property):
    """Property whose values are stored in Datastore unchanged."""

    types = ()

    def validate(self, model_db, value):
        return (super(PrimitiveProperty, self).validate(model_db, value) and
                (value is None or self._is_valid_type(value)))

    def _is_valid_type(self, value):
        return isinstance(value, self.types)

    def encode_value(self, model_db, value):
        return value

    def decode_primitive_value(self, model_db, value):
        return value


class BoolProperty(PrimitiveProperty):
    types = bool


class IntProperty(PrimitiveProperty):
    types = int

    def _is_valid_type(self, value):
        return isinstance(value, int) and not isinstance(value, bool)


class DoubleProperty(PrimitiveProperty):
    types = float


class StringProperty(PrimitiveProperty):
    types = str


class ModelKeyProperty(PrimitiveProperty):
    """Reference to another model, stored as a Datastore key."""

    types = model.Key

    def encode_value(self, model_db, value):
        if value is None:
            return None
        return model_db.to_datastore_key(value)

    def decode_primitive_value(self, model_db, value):
        if value is None:
            return None
        return model_db.from_datastore_key(value)


class BlobProperty(PrimitiveProperty):
    """Binary data.  Blobs are never indexed."""

    types = (bytes, bytearray)

    def __init__(self, property_name=None, required=False):
        super(BlobProperty, self).__init__(property_name=property_name,
                                           required=required, indexed=False)

    def encode_value(self, model_db, value):
        if value is None:
            return None
        return datastore.BlobValue(value)

    def decode_primitive_value(self, model_db, value):
        if value is None:
            return None
        return value.bytes


class DateTimeProperty(PrimitiveProperty):
    types = datetime.datetime

    def decode_primitive_value(self, model_db, value):
        # Integer values are microseconds since the epoch
        if isinstance(value, int) and not isinstance(value, bool):
            return _EPOCH + datetime.timedelta(microseconds=value)
        return value


class ListProperty(Property):
    """List of values of the same primitive property type.

    Lists are always required.  An empty list is stored as None and a list
    with one element as the element itself; when reading None becomes an
    empty list and a single value a list with that value.
    """

    def __init__(self, sub_property, property_name=None, indexed=True):
        super(ListProperty, self).__init__(property_name=property_name,
                                           required=True, indexed=indexed)
        self.sub_property = sub_property

    def validate(self, model_db, value):
        if (not super(ListProperty, self).validate(model_db, value) or
                not isinstance(value, list)):
            return False
        return all(self.sub_property.validate(model_db, entry)
                   for entry in value)

    def encode_value(self, model_db, value):
        if not value:
            return None
        if len(value) == 1:
            return self.sub_property.encode_value(model_db, value[0])
        return [self.sub_property.encode_value(model_db, entry)
                for entry in value]

    def decode_primitive_value(self, model_db, value):
        if value is None:
            return []
        if not isinstance(value, list):
            return [self.sub_property.decode_primitive_value(model_db, value)]
        return [self.sub_property.decode_primitive_value(model_db, entry)
                for entry in value]


class StringListProperty(ListProperty):
    def __init__(self, property_name=None, indexed=True):
        super(StringListProperty, self).__init__(
            StringProperty(), property_name=property_name, indexed=indexed)
