#!/usr/bin/env python
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

"""
test_retry_datastore
----------------------------------

Tests RetryDatastore class
"""
import unittest

import mock
import requests

from gcloud_client import common
from gcloud_client import errors
from gcloud_client import paging
from gcloud_client import retry_datastore


@mock.patch('time.sleep')
class TestRetryDatastore(unittest.TestCase):

    def setUp(self):
        self.retries = 3
        self.delegate = mock.Mock()
        self.ds = retry_datastore.RetryDatastore(
            self.delegate, common.RetryParams(self.retries, 0))

    def test_default_retry_params(self, sleep_mock):
        ds = retry_datastore.RetryDatastore(self.delegate)
        self.assertIs(common.RetryParams.get_default(), ds.retry_params)

    def test_no_error(self, sleep_mock):
        self.delegate.lookup.return_value = mock.sentinel.result
        self.assertEqual(mock.sentinel.result,
                         self.ds.lookup(mock.sentinel.keys))
        self.delegate.lookup.assert_called_once_with(mock.sentinel.keys,
                                                     transaction=None)
        self.assertFalse(sleep_mock.called)

    def test_retry_then_succeed(self, sleep_mock):
        self.delegate.allocate_ids.side_effect = [errors.Timeout(),
                                                  errors.InternalError(),
                                                  mock.sentinel.keys]
        self.assertEqual(mock.sentinel.keys,
                         self.ds.allocate_ids(mock.sentinel.incomplete))
        self.assertEqual(3, self.delegate.allocate_ids.call_count)
        self.assertEqual(2, sleep_mock.call_count)

    def test_retries_exhausted(self, sleep_mock):
        self.delegate.begin_transaction.side_effect = errors.Timeout()
        self.assertRaises(errors.Timeout, self.ds.begin_transaction)
        self.assertEqual(self.retries + 1,
                         self.delegate.begin_transaction.call_count)

    def test_non_retryable_errors(self, sleep_mock):
        for exc_class in (errors.TransactionAborted, errors.NeedIndex,
                          errors.QuotaExceeded, errors.PermissionDenied):
            self.delegate.rollback.reset_mock()
            self.delegate.rollback.side_effect = exc_class()
            self.assertRaises(exc_class, self.ds.rollback,
                              mock.sentinel.transaction)
            self.assertEqual(1, self.delegate.rollback.call_count)
        self.assertFalse(sleep_mock.called)

    def test_commit_retried(self, sleep_mock):
        self.delegate.commit.side_effect = [errors.Timeout(),
                                            mock.sentinel.result]
        result = self.ds.commit(inserts=[mock.sentinel.entity],
                                deletes=[mock.sentinel.key])
        self.assertEqual(mock.sentinel.result, result)
        self.assertEqual(2, self.delegate.commit.call_count)
        self.delegate.commit.assert_called_with(
            inserts=[mock.sentinel.entity], auto_id_inserts=(),
            deletes=[mock.sentinel.key], transaction=None)

    def test_commit_auto_id_not_retried(self, sleep_mock):
        self.delegate.commit.side_effect = errors.Timeout()
        self.assertRaises(errors.Timeout, self.ds.commit,
                          auto_id_inserts=[mock.sentinel.entity])
        self.assertEqual(1, self.delegate.commit.call_count)

    def test_commit_auto_id_in_transaction_retried(self, sleep_mock):
        self.delegate.commit.side_effect = [errors.Timeout(),
                                            mock.sentinel.result]
        self.assertEqual(mock.sentinel.result,
                         self.ds.commit(auto_id_inserts=[mock.sentinel.e],
                                        transaction=mock.sentinel.tx))
        self.assertEqual(2, self.delegate.commit.call_count)

    def test_query_pages_retried(self, sleep_mock):
        source = [[1, 2], [3]]

        def fetch(page_size, token):
            index = token or 0
            next_token = index + 1 if index + 1 < len(source) else None
            return source[index], next_token

        fetch_mock = mock.Mock(side_effect=fetch)
        self.delegate.query.side_effect = [
            errors.Timeout(), paging.Page.first(fetch_mock, 2)]

        page = self.ds.query(mock.sentinel.query, partition=mock.sentinel.p)
        self.assertIsInstance(page, paging.Page)
        self.assertEqual([1, 2], list(page))
        self.assertFalse(page.is_last)
        self.delegate.query.assert_called_with(
            mock.sentinel.query, partition=mock.sentinel.p, transaction=None)

        fetch_mock.side_effect = [errors.InternalError(), ([3], None)]
        page = page.next()
        self.assertEqual([3], page.items)
        self.assertTrue(page.is_last)
        self.assertIsNone(page.next())
        self.assertEqual(3, fetch_mock.call_count)

    def test_query_not_retried(self, sleep_mock):
        self.delegate.query.side_effect = errors.NeedIndex()
        self.assertRaises(errors.NeedIndex, self.ds.query,
                          mock.sentinel.query)
        self.assertEqual(1, self.delegate.query.call_count)

    def test_programming_errors_not_retried(self, sleep_mock):
        for exc in (ValueError('bad key'), TypeError(), AttributeError(),
                    errors.Error('Unsupported property value type')):
            self.delegate.lookup.reset_mock()
            self.delegate.lookup.side_effect = exc
            self.assertRaises(type(exc), self.ds.lookup, mock.sentinel.keys)
            self.assertEqual(1, self.delegate.lookup.call_count)
        self.assertFalse(sleep_mock.called)

    def test_connection_errors_retried(self, sleep_mock):
        self.delegate.lookup.side_effect = [
            requests.exceptions.ConnectionError(), mock.sentinel.result]
        self.assertEqual(mock.sentinel.result,
                         self.ds.lookup(mock.sentinel.keys))
        self.assertEqual(2, self.delegate.lookup.call_count)
