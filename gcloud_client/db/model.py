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

"""Model side of the mapping: db keys, partitions and model base classes."""


class Partition(object):
    """Datastore namespace.  None is the default namespace."""

    def __init__(self, namespace=None):
        if namespace == '':
            raise ValueError("'namespace' must not be empty")
        self.namespace = namespace

    @property
    def empty_key(self):
        """Root key of the partition, parent of all top level keys."""
        return Key(None, None, None, partition=self)

    def __eq__(self, other):
        return (isinstance(other, Partition) and
                self.namespace == other.namespace)

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash(self.namespace)

    def __repr__(self):
        return 'Partition(%r)' % self.namespace


class Key(object):
    """Key of a model: a model class and an id under a parent key.

    The chain of parents always ends in the empty key of a partition.
    """

    def __init__(self, parent, type, id, partition=None):
        if parent is None:
            if partition is None:
                raise ValueError('Keys need either a parent or a partition')
        else:
            if type is None:
                raise ValueError("'type' must not be None")
            if id is not None and (isinstance(id, bool) or
                                   not isinstance(id, (int, str))):
                raise ValueError("'id' must be either None, a String or an "
                                 "int")
            partition = parent.partition
        self.parent = parent
        self.type = type
        self.id = id
        self.partition = partition

    @property
    def is_empty(self):
        return self.parent is None

    def append(self, type, id=None):
        """Create a child key of this one."""
        return Key(self, type, id)

    def __eq__(self, other):
        if self is other:
            return True
        if not isinstance(other, Key):
            return False
        if self.is_empty or other.is_empty:
            return (self.is_empty and other.is_empty and
                    self.partition == other.partition)
        return (self.type is other.type and self.id == other.id and
                self.parent == other.parent)

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        if self.is_empty:
            return hash(self.partition)
        return hash((self.type, self.id, self.parent))

    def __repr__(self):
        if self.is_empty:
            return 'Key(%r)' % self.partition
        path = []
        key = self
        while not key.is_empty:
            path.append('%s.%s' % (key.type.__name__, key.id))
            key = key.parent
        return 'Key(%r, %s)' % (key.partition, '/'.join(reversed(path)))


class Model(object):
    """Base class of all models.

    Models must be constructible without arguments.  The value of each
    described field is stored in the attribute with the field's name.
    """

    id = None
    parent_key = None

    @property
    def key(self):
        parent_key = self.parent_key
        if parent_key is None:
            parent_key = Partition().empty_key
        return parent_key.append(type(self), self.id)


class ExpandoModel(Model):
    """Model accepting properties not declared in its description.

    Undeclared properties live in the additional_properties dictionary and
    can also be read as attributes.
    """

    def __init__(self):
        self.additional_properties = {}

    def __getattr__(self, name):
        if name == 'additional_properties':
            raise AttributeError(name)
        try:
            return self.additional_properties[name]
        except KeyError:
            raise AttributeError(name)
