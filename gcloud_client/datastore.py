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

"""Low level Datastore types.

Keys, entities and queries as understood by the Datastore service, and the
Datastore interface implemented by DatastoreImpl and RetryDatastore.
"""

import abc


class Partition(object):
    """Namespace scoping a set of keys.

    The default partition has a namespace of None.
    """

    def __init__(self, namespace=None):
        if namespace == '':
            raise ValueError("'namespace' must not be empty")
        self.namespace = namespace

    def __eq__(self, other):
        return (isinstance(other, Partition) and
                self.namespace == other.namespace)

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash(self.namespace)

    def __repr__(self):
        return 'Partition(%r)' % self.namespace


Partition.DEFAULT = Partition()


class KeyElement(object):
    """One (kind, id) pair of a key path.

    The id is either None (incomplete key), an integer or a string.
    """

    def __init__(self, kind, id=None):
        if kind is None:
            raise ValueError("'kind' must not be None")
        if id is not None and (isinstance(id, bool) or
                               not isinstance(id, (int, str))):
            raise ValueError("'id' must be either None, a String or an int")
        self.kind = kind
        self.id = id

    def __eq__(self, other):
        return (isinstance(other, KeyElement) and self.kind == other.kind and
                self.id == other.id)

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash(self.kind) ^ hash(self.id)

    def __str__(self):
        return '%s.%s' % (self.kind, self.id)

    __repr__ = __str__


class Key(object):
    """A Datastore key: a path of KeyElements inside a Partition.

    Ancestors are the prefixes of the path.
    """

    def __init__(self, elements, partition=None):
        self.elements = list(elements)
        self.partition = Partition.DEFAULT if partition is None else partition

    @classmethod
    def from_parent(cls, kind, id=None, parent=None):
        partition = None
        elements = []
        if parent is not None:
            partition = parent.partition
            elements.extend(parent.elements)
        elements.append(KeyElement(kind, id))
        return cls(elements, partition=partition)

    @property
    def is_complete(self):
        return all(element.id is not None for element in self.elements)

    def __eq__(self, other):
        if self is other:
            return True
        return (isinstance(other, Key) and
                self.partition == other.partition and
                self.elements == other.elements)

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        result = hash(self.partition)
        for element in self.elements:
            result ^= hash(element)
        return result

    def __repr__(self):
        namespace = self.partition.namespace
        namespace = 'None' if namespace is None else "'%s'" % namespace
        return 'Key(namespace=%s, path=[%s])' % (
            namespace, ', '.join(str(e) for e in self.elements))


class Entity(object):
    """A key, its properties and the names of the unindexed properties."""

    def __init__(self, key, properties, unindexed_properties=None):
        self.key = key
        self.properties = properties
        self.unindexed_properties = set(unindexed_properties or ())

    def __eq__(self, other):
        return (isinstance(other, Entity) and self.key == other.key and
                self.properties == other.properties and
                self.unindexed_properties == other.unindexed_properties)

    def __ne__(self, other):
        return not self == other

    __hash__ = None

    def __repr__(self):
        return 'Entity(%r, %r, unindexed_properties=%r)' % (
            self.key, self.properties, sorted(self.unindexed_properties))


class BlobValue(object):
    """Binary property value."""

    def __init__(self, data):
        self.bytes = bytes(data)

    def __eq__(self, other):
        return isinstance(other, BlobValue) and self.bytes == other.bytes

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash(self.bytes)

    def __repr__(self):
        return 'BlobValue(%r)' % self.bytes


class FilterRelation(object):
    def __init__(self, name):
        self.name = name

    def __repr__(self):
        return 'FilterRelation(%r)' % self.name


FilterRelation.LessThan = FilterRelation('<')
FilterRelation.LessThanOrEqual = FilterRelation('<=')
FilterRelation.GreaterThan = FilterRelation('>')
FilterRelation.GreaterThanOrEqual = FilterRelation('>=')
FilterRelation.Equal = FilterRelation('==')
FilterRelation.NotEqual = FilterRelation('!=')
FilterRelation.In = FilterRelation('IN')

FILTER_RELATIONS = dict(
    (relation.name, relation) for relation in (
        FilterRelation.LessThan, FilterRelation.LessThanOrEqual,
        FilterRelation.GreaterThan, FilterRelation.GreaterThanOrEqual,
        FilterRelation.Equal, FilterRelation.NotEqual, FilterRelation.In))


class Filter(object):
    def __init__(self, relation, name, value):
        self.relation = relation
        self.name = name
        self.value = value

    def __repr__(self):
        return 'Filter(%s %s %r)' % (self.name, self.relation.name,
                                     self.value)


class OrderDirection(object):
    def __init__(self, name):
        self.name = name

    def __repr__(self):
        return 'OrderDirection(%r)' % self.name


OrderDirection.Ascending = OrderDirection('Ascending')
OrderDirection.Descending = OrderDirection('Descending')


class Order(object):
    def __init__(self, direction, property_name):
        self.direction = direction
        self.property_name = property_name

    def __repr__(self):
        return 'Order(%s %s)' % (self.property_name, self.direction.name)


class Query(object):
    def __init__(self, kind=None, ancestor_key=None, filters=None,
                 orders=None, offset=None, limit=None):
        self.kind = kind
        self.ancestor_key = ancestor_key
        self.filters = list(filters or ())
        self.orders = list(orders or ())
        self.offset = offset
        self.limit = limit


class CommitResult(object):
    def __init__(self, auto_id_insert_keys):
        self.auto_id_insert_keys = auto_id_insert_keys


class Transaction(object):
    """Handle of a Datastore transaction."""

    def __init__(self, data):
        self.data = data

    def __repr__(self):
        return 'Transaction(%r)' % self.data


class Datastore(metaclass=abc.ABCMeta):
    """Interface to the Datastore service."""

    @abc.abstractmethod
    def allocate_ids(self, keys):
        """Allocate ids for incomplete keys.

        :returns: Complete keys, in the same order.
        :rtype: list of Key
        """

    @abc.abstractmethod
    def begin_transaction(self, cross_entity_group=False):
        """Start a transaction.

        :rtype: Transaction
        """

    @abc.abstractmethod
    def commit(self, inserts=(), auto_id_inserts=(), deletes=(),
               transaction=None):
        """Commit mutations, optionally inside a transaction.

        Can raise TransactionAborted.

        :rtype: CommitResult
        """

    @abc.abstractmethod
    def rollback(self, transaction):
        """Roll back a transaction."""

    @abc.abstractmethod
    def lookup(self, keys, transaction=None):
        """Look up entities by key.

        :returns: One Entity (or None when missing) for each key.
        :rtype: list
        """

    @abc.abstractmethod
    def query(self, query, partition=None, transaction=None):
        """Run a query.

        :returns: First page of matching entities.
        :rtype: gcloud_client.paging.Page
        """
