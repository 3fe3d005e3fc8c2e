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

import base64
import datetime
import logging

import requests

from gcloud_client import base
from gcloud_client import common
from gcloud_client import constants
from gcloud_client import datastore
from gcloud_client import errors
from gcloud_client import paging


LOG = logging.getLogger(__name__)


_RELATIONS = {
    '<': 'LESS_THAN',
    '<=': 'LESS_THAN_OR_EQUAL',
    '>': 'GREATER_THAN',
    '>=': 'GREATER_THAN_OR_EQUAL',
    '==': 'EQUAL',
    '!=': 'NOT_EQUAL',
    'IN': 'IN',
}

_DIRECTIONS = {
    'Ascending': 'ASCENDING',
    'Descending': 'DESCENDING',
}


class DatastoreImpl(base.Service, datastore.Datastore):
    """Datastore interface implemented over the Datastore v1 REST API."""

    SCOPES = (constants.SCOPE_DATASTORE, constants.SCOPE_USERINFO_EMAIL)
    URL = constants.DATASTORE_URL

    def _create_exception(self, response):
        return errors.create_datastore_exception(response.status_code,
                                                 response.content)

    def _call(self, method, body):
        url = '%s/projects/%s:%s' % (
            self.api_url, requests.utils.quote(self.project, safe=''), method)
        return self._request(op='POST', url=url, body=body, parse=True).json()

    def allocate_ids(self, keys):
        body = {'keys': [key_to_json(self.project, k) for k in keys]}
        r = self._call('allocateIds', body)
        return [key_from_json(k) for k in r.get('keys', [])]

    def begin_transaction(self, cross_entity_group=False):
        # Every v1 transaction may span several entity groups
        r = self._call('beginTransaction', {})
        LOG.debug('Began transaction %s', r['transaction'])
        return datastore.Transaction(r['transaction'])

    def commit(self, inserts=(), auto_id_inserts=(), deletes=(),
               transaction=None):
        mutations = []
        mutations.extend({'upsert': entity_to_json(self.project, e)}
                         for e in inserts)
        mutations.extend({'insert': entity_to_json(self.project, e)}
                         for e in auto_id_inserts)
        mutations.extend({'delete': key_to_json(self.project, k)}
                         for k in deletes)

        body = {'mutations': mutations}
        if transaction is None:
            body['mode'] = 'NON_TRANSACTIONAL'
        else:
            body['mode'] = 'TRANSACTIONAL'
            body['transaction'] = transaction.data

        LOG.debug('Committing %d inserts, %d auto id inserts and %d deletes',
                  len(inserts), len(auto_id_inserts), len(deletes))
        r = self._call('commit', body)

        results = r.get('mutationResults', [])
        first = len(inserts)
        auto_id_keys = [key_from_json(result['key'])
                        for result in results[first:first +
                                              len(auto_id_inserts)]]
        return datastore.CommitResult(auto_id_keys)

    def rollback(self, transaction):
        LOG.debug('Rolling back transaction %s', transaction.data)
        self._call('rollback', {'transaction': transaction.data})

    def lookup(self, keys, transaction=None):
        keys = list(keys)
        found = {}
        pending = [key_to_json(self.project, k) for k in keys]
        while pending:
            body = {'keys': pending}
            if transaction is not None:
                body['readOptions'] = {'transaction': transaction.data}
            r = self._call('lookup', body)
            for result in r.get('found', []):
                entity = entity_from_json(result['entity'])
                found[entity.key] = entity
            # Deferred keys have to be requested again
            pending = r.get('deferred', [])
        return [found.get(key) for key in keys]

    def query(self, query, partition=None, transaction=None):
        partition = partition or datastore.Partition.DEFAULT

        def fetch(page_size, token):
            return self._run_query(query, partition, transaction, page_size,
                                   token)

        return paging.Page.first(fetch, constants.DEFAULT_PAGE_SIZE)

    def _run_query(self, query, partition, transaction, page_size, token):
        if token is None:
            cursor, limit, offset = None, query.limit, query.offset
        else:
            cursor, limit, offset = token
        if limit is not None and limit <= 0:
            return [], None

        batch_size = page_size if limit is None else min(page_size, limit)
        query_json = query_to_json(self.project, query)
        query_json['limit'] = batch_size
        if offset:
            query_json['offset'] = offset
        else:
            query_json.pop('offset', None)
        if cursor:
            query_json['startCursor'] = cursor

        body = {'partitionId': partition_to_json(self.project, partition),
                'query': query_json}
        if transaction is not None:
            body['readOptions'] = {'transaction': transaction.data}
        batch = self._call('runQuery', body).get('batch', {})

        entities = [entity_from_json(result['entity'])
                    for result in batch.get('entityResults', [])]
        if offset:
            offset = max(0, offset - int(batch.get('skippedResults', 0)))
        if limit is not None:
            limit -= len(entities)

        more = batch.get('moreResults')
        done = (more not in ('NOT_FINISHED', 'MORE_RESULTS_AFTER_LIMIT') or
                (limit is not None and limit <= 0) or
                not batch.get('endCursor'))
        if done:
            return entities, None
        return entities, (batch['endCursor'], limit, offset)


def partition_to_json(project, partition):
    result = {'projectId': project}
    if partition.namespace is not None:
        result['namespaceId'] = partition.namespace
    return result


def key_to_json(project, key):
    path = []
    for element in key.elements:
        item = {'kind': element.kind}
        if isinstance(element.id, int):
            item['id'] = str(element.id)
        elif element.id is not None:
            item['name'] = element.id
        path.append(item)
    return {'partitionId': partition_to_json(project, key.partition),
            'path': path}


def key_from_json(data):
    namespace = data.get('partitionId', {}).get('namespaceId')
    partition = (datastore.Partition(namespace) if namespace
                 else datastore.Partition.DEFAULT)
    elements = []
    for item in data.get('path', []):
        if 'id' in item:
            id = int(item['id'])
        else:
            id = item.get('name')
        elements.append(datastore.KeyElement(item['kind'], id))
    return datastore.Key(elements, partition=partition)


def value_to_json(project, value, indexed=True):
    if value is None:
        result = {'nullValue': None}
    elif isinstance(value, bool):
        result = {'booleanValue': value}
    elif isinstance(value, int):
        result = {'integerValue': str(value)}
    elif isinstance(value, float):
        result = {'doubleValue': value}
    elif isinstance(value, str):
        result = {'stringValue': value}
    elif isinstance(value, datetime.datetime):
        result = {'timestampValue': common.format_rfc3339(value)}
    elif isinstance(value, datastore.Key):
        result = {'keyValue': key_to_json(project, value)}
    elif isinstance(value, datastore.BlobValue):
        result = {'blobValue': base64.b64encode(value.bytes).decode('ascii')}
    elif isinstance(value, (bytes, bytearray)):
        result = {'blobValue': base64.b64encode(value).decode('ascii')}
    elif isinstance(value, (list, tuple)):
        # Index exclusion is set on the elements, never on the array
        return {'arrayValue': {'values': [value_to_json(project, v, indexed)
                                          for v in value]}}
    else:
        raise errors.Error('Unsupported property value type %s' %
                           type(value).__name__)

    if not indexed:
        result['excludeFromIndexes'] = True
    return result


def value_from_json(data):
    if 'nullValue' in data:
        return None
    if 'booleanValue' in data:
        return data['booleanValue']
    if 'integerValue' in data:
        return int(data['integerValue'])
    if 'doubleValue' in data:
        return float(data['doubleValue'])
    if 'stringValue' in data:
        return data['stringValue']
    if 'timestampValue' in data:
        return common.parse_rfc3339(data['timestampValue'])
    if 'keyValue' in data:
        return key_from_json(data['keyValue'])
    if 'blobValue' in data:
        return datastore.BlobValue(base64.b64decode(data['blobValue']))
    if 'arrayValue' in data:
        return [value_from_json(v)
                for v in data['arrayValue'].get('values', [])]
    raise errors.Error('Unsupported value %s' % data)


def _is_unindexed(data):
    if 'arrayValue' in data:
        # Arrays cannot be excluded from indexes themselves, only their
        # elements, so an empty array always reads back as indexed
        values = data['arrayValue'].get('values', [])
        return bool(values) and all(v.get('excludeFromIndexes')
                                    for v in values)
    return bool(data.get('excludeFromIndexes'))


def entity_to_json(project, entity):
    properties = dict(
        (name, value_to_json(project, value,
                             name not in entity.unindexed_properties))
        for name, value in entity.properties.items())
    return {'key': key_to_json(project, entity.key),
            'properties': properties}


def entity_from_json(data):
    properties = {}
    unindexed = set()
    for name, value in data.get('properties', {}).items():
        properties[name] = value_from_json(value)
        if _is_unindexed(value):
            unindexed.add(name)
    return datastore.Entity(key_from_json(data['key']), properties,
                            unindexed_properties=unindexed)


def filter_to_json(project, flt):
    return {'propertyFilter': {
        'property': {'name': flt.name},
        'op': _RELATIONS[flt.relation.name],
        'value': value_to_json(project, flt.value)}}


def query_to_json(project, query):
    result = {}
    if query.kind is not None:
        result['kind'] = [{'name': query.kind}]

    filters = [filter_to_json(project, f) for f in query.filters]
    if query.ancestor_key is not None:
        filters.append({'propertyFilter': {
            'property': {'name': '__key__'},
            'op': 'HAS_ANCESTOR',
            'value': value_to_json(project, query.ancestor_key)}})
    if len(filters) == 1:
        result['filter'] = filters[0]
    elif filters:
        result['filter'] = {'compositeFilter': {'op': 'AND',
                                                'filters': filters}}

    if query.orders:
        result['order'] = [
            {'property': {'name': order.property_name},
             'direction': _DIRECTIONS[order.direction.name]}
            for order in query.orders]
    if query.offset:
        result['offset'] = query.offset
    if query.limit is not None:
        result['limit'] = query.limit
    return result
