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

import requests

from gcloud_client import common
from gcloud_client import datastore
from gcloud_client import errors
from gcloud_client import paging


# Errors that will fail again no matter how many times we retry
NON_RETRYABLE_ERRORS = (errors.TransactionAborted, errors.NeedIndex,
                        errors.QuotaExceeded, errors.PermissionDenied)

# Failures of the service or the transport, anything else is a bug
RETRYABLE_ERRORS = (errors.Http, requests.exceptions.RequestException,
                    IOError)


def _should_retry(exc):
    return (isinstance(exc, RETRYABLE_ERRORS) and
            not isinstance(exc, NON_RETRYABLE_ERRORS))


def _never_retry(exc):
    return False


class RetryDatastore(datastore.Datastore):
    """Datastore decorator retrying failed operations.

    Service and transport failures of the delegate are retried with truncated
    exponential backoff, except for errors that cannot succeed on a retry.
    Commits with auto id inserts outside of a transaction are never retried,
    since the first attempt could have inserted the entities already.
    """

    def __init__(self, delegate, retry_params=None):
        self._delegate = delegate
        self._retry_params = retry_params or common.RetryParams.get_default()

    @property
    def retry_params(self):
        return self._retry_params

    def _retry(self, func, *args, **kwargs):
        return common.call_with_retry(self._retry_params, func, _should_retry,
                                      *args, **kwargs)

    def allocate_ids(self, keys):
        return self._retry(self._delegate.allocate_ids, keys)

    def begin_transaction(self, cross_entity_group=False):
        return self._retry(self._delegate.begin_transaction,
                           cross_entity_group=cross_entity_group)

    def commit(self, inserts=(), auto_id_inserts=(), deletes=(),
               transaction=None):
        should_retry = _should_retry
        if auto_id_inserts and transaction is None:
            should_retry = _never_retry
        return common.call_with_retry(
            self._retry_params, self._delegate.commit, should_retry,
            inserts=inserts, auto_id_inserts=auto_id_inserts, deletes=deletes,
            transaction=transaction)

    def rollback(self, transaction):
        return self._retry(self._delegate.rollback, transaction)

    def lookup(self, keys, transaction=None):
        return self._retry(self._delegate.lookup, keys,
                           transaction=transaction)

    def query(self, query, partition=None, transaction=None):
        page = self._retry(self._delegate.query, query, partition=partition,
                           transaction=transaction)
        return _RetryPage(page, self._retry_params)


class _RetryPage(paging.Page):
    """Page wrapper retrying the requests for the following pages."""

    def __init__(self, page, retry_params):
        self._page = page
        self._retry_params = retry_params
        self.items = page.items

    @property
    def is_last(self):
        return self._page.is_last

    def next(self, page_size=None):
        page = common.call_with_retry(self._retry_params, self._page.next,
                                      _should_retry, page_size)
        if page is None:
            return None
        return _RetryPage(page, self._retry_params)
