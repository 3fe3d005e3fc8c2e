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

import logging

from gcloud_client import datastore
from gcloud_client import errors
from gcloud_client.db import model
from gcloud_client.db import model_db as model_db_module


LOG = logging.getLogger(__name__)


class DatastoreDB(object):
    """Model level access to a Datastore."""

    def __init__(self, datastore, model_db=None, default_partition=None):
        """Initialize the db.

        :param datastore: Datastore implementation to use, for example a
                          RetryDatastore wrapping a DatastoreImpl.
        :type datastore: gcloud_client.datastore.Datastore
        :param model_db: Registry of the models.  A new one with only the
                         metadata models will be created if not provided.
        :type model_db: ModelDB
        :param default_partition: Partition used when none is given.
        :type default_partition: Partition
        """
        self.datastore = datastore
        self.model_db = model_db or model_db_module.ModelDB()
        self.default_partition = default_partition or model.Partition()

    @property
    def empty_key(self):
        return self.default_partition.empty_key

    def new_partition(self, namespace):
        return model.Partition(namespace)

    def with_transaction(self, handler):
        """Run handler in a new transaction.

        The handler receives the Transaction and is responsible for
        committing it.  If the handler raises, a transaction still in
        progress is rolled back.

        :returns: The return value of handler.
        """
        transaction = Transaction(
            self, self.datastore.begin_transaction(cross_entity_group=True))
        try:
            return handler(transaction)
        except Exception:
            if transaction.is_active:
                LOG.debug('Rolling back transaction after handler error')
                transaction.rollback()
            raise

    def query(self, model_class, partition=None, ancestor_key=None):
        return Query(self, model_class, partition=partition,
                     ancestor_key=ancestor_key)

    def allocate_ids(self, keys):
        """Allocate ids for incomplete db keys."""
        datastore_keys = [self.model_db.to_datastore_key(k) for k in keys]
        return [self.model_db.from_datastore_key(k)
                for k in self.datastore.allocate_ids(datastore_keys)]

    def commit(self, inserts=(), deletes=()):
        """Insert and delete models outside of a transaction.

        Models with an id of None get an id allocated by Datastore, and models
        without a parent key are placed in the default partition.
        """
        _commit(self, inserts=inserts, deletes=deletes)

    def lookup(self, keys):
        return _lookup(self, keys)

    def lookup_value(self, key, or_else=None):
        return _lookup_value(self, key, or_else)


class Transaction(object):
    """A Datastore transaction at model level.  Usable only once."""

    _STARTED = 'started'
    _ROLLED_BACK = 'rolled back'
    _COMMITTED = 'committed'

    def __init__(self, db, datastore_transaction):
        self.db = db
        self._datastore_transaction = datastore_transaction
        self._state = self._STARTED
        self._inserts = []
        self._deletes = []

    @property
    def is_active(self):
        return self._state == self._STARTED

    def _check_active(self):
        if not self.is_active:
            raise errors.TransactionState(
                'The transaction has already been %s.' % self._state)

    def lookup(self, keys):
        self._check_active()
        return _lookup(self.db, keys, self._datastore_transaction)

    def lookup_value(self, key, or_else=None):
        self._check_active()
        return _lookup_value(self.db, key, or_else,
                             self._datastore_transaction)

    def queue_mutations(self, inserts=(), deletes=()):
        """Queue inserts and deletes to be sent on commit."""
        self._check_active()
        self._inserts.extend(inserts)
        self._deletes.extend(deletes)

    def query(self, model_class, ancestor_key, partition=None):
        """Query inside the transaction.  Requires an ancestor key."""
        self._check_active()
        if ancestor_key is None:
            raise ValueError('Queries inside transactions need an ancestor '
                             'key')
        return Query(self.db, model_class, partition=partition,
                     ancestor_key=ancestor_key, transaction=self)

    def rollback(self):
        self._check_active()
        self._state = self._ROLLED_BACK
        self.db.datastore.rollback(self._datastore_transaction)

    def commit(self):
        """Send the queued mutations.

        :raises: errors.TransactionAborted if there was a conflict.
        """
        self._check_active()
        self._state = self._COMMITTED
        _commit(self.db, self._inserts, self._deletes,
                self._datastore_transaction)


class Query(object):
    """Query on the models of one class.

    Filters and orders refer to field names of the model description:

        query = db.query(Person).filter('age >', 18).order('-name').limit(5)
        for person in query.run():
            ...
    """

    def __init__(self, db, model_class, partition=None, ancestor_key=None,
                 transaction=None):
        self._db = db
        self._description = db.model_db.model_description_for_type(
            model_class)
        self._kind = self._description.kind_name(db.model_db)
        self._partition = partition or db.default_partition
        self._ancestor_key = ancestor_key
        self._transaction = transaction
        self._filters = []
        self._orders = []
        self._offset = None
        self._limit = None
        self._description.finish_query(db.model_db, self)

    def filter(self, filter_string, comparison_object):
        """Add a filter.

        :param filter_string: Field name and relation separated by a space,
                              like 'age >=' or 'name IN'.
        :type filter_string: String
        :param comparison_object: Value to compare with, a list for IN.
        :returns: This query.
        """
        parts = filter_string.split()
        if (len(parts) != 2 or
                parts[1] not in datastore.FILTER_RELATIONS):
            raise ValueError("Invalid filter string '%s'" % filter_string)
        field_name, relation = parts

        model_db = self._db.model_db
        property_name = self._description.field_name_to_property_name(
            model_db, field_name)
        if property_name is None:
            raise ValueError("Unknown field '%s' for kind %s" %
                             (field_name, self._kind))

        if relation == 'IN':
            value = [self._description.encode_field(model_db, field_name, v)
                     for v in comparison_object]
        else:
            value = self._description.encode_field(model_db, field_name,
                                                   comparison_object)
        self._filters.append(datastore.Filter(
            datastore.FILTER_RELATIONS[relation], property_name, value))
        return self

    def order(self, order_string):
        """Add an order.  A leading '-' sorts in descending order."""
        direction = datastore.OrderDirection.Ascending
        field_name = order_string
        if order_string.startswith('-'):
            direction = datastore.OrderDirection.Descending
            field_name = order_string[1:]

        property_name = self._description.field_name_to_property_name(
            self._db.model_db, field_name)
        if property_name is None:
            raise ValueError("Unknown field '%s' for kind %s" %
                             (field_name, self._kind))
        self._orders.append(datastore.Order(direction, property_name))
        return self

    def offset(self, offset):
        self._offset = offset
        return self

    def limit(self, limit):
        self._limit = limit
        return self

    def run(self):
        """Run the query.

        :returns: Generator of models.  Pages of results are requested as
                  the generator is consumed; closing it stops the requests.
        """
        model_db = self._db.model_db
        ancestor_key = None
        if self._ancestor_key is not None:
            ancestor_key = model_db.to_datastore_key(self._ancestor_key)
        query = datastore.Query(kind=self._kind, ancestor_key=ancestor_key,
                                filters=self._filters, orders=self._orders,
                                offset=self._offset, limit=self._limit)
        namespace = self._partition.namespace
        partition = (datastore.Partition(namespace) if namespace
                     else datastore.Partition.DEFAULT)
        transaction = None
        if self._transaction is not None:
            self._transaction._check_active()
            transaction = self._transaction._datastore_transaction

        page = self._db.datastore.query(query, partition=partition,
                                        transaction=transaction)
        while page is not None:
            for entity in page.items:
                yield model_db.from_datastore_entity(entity)
            page = page.next()


def _commit(db, inserts=(), deletes=(), datastore_transaction=None):
    model_db = db.model_db
    entity_inserts = []
    entity_auto_id_inserts = []
    auto_id_models = []

    for model_instance in inserts:
        if model_instance.parent_key is None:
            model_instance.parent_key = db.default_partition.empty_key
        entity = model_db.to_datastore_entity(model_instance)
        if model_instance.id is None:
            auto_id_models.append(model_instance)
            entity_auto_id_inserts.append(entity)
        else:
            entity_inserts.append(entity)

    entity_deletes = [model_db.to_datastore_key(k) for k in deletes]

    result = db.datastore.commit(inserts=entity_inserts,
                                 auto_id_inserts=entity_auto_id_inserts,
                                 deletes=entity_deletes,
                                 transaction=datastore_transaction)

    for model_instance, key in zip(auto_id_models,
                                   result.auto_id_insert_keys):
        model_instance.id = key.elements[-1].id


def _lookup(db, keys, datastore_transaction=None):
    model_db = db.model_db
    datastore_keys = [model_db.to_datastore_key(k) for k in keys]
    entities = db.datastore.lookup(datastore_keys,
                                   transaction=datastore_transaction)
    return [model_db.from_datastore_entity(e) for e in entities]


def _lookup_value(db, key, or_else, datastore_transaction=None):
    result = _lookup(db, [key], datastore_transaction)[0]
    if result is None:
        if or_else is None:
            raise errors.KeyNotFound('Could not find entity with key %r' %
                                     key)
        return or_else()
    return result
