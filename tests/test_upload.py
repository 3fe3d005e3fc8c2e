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
test_upload
----------------------------------

Tests MediaUploadSink class
"""
import unittest

import mock

from gcloud_client import constants
from gcloud_client import errors
from gcloud_client import upload


BM = constants.BLOCK_MULTIPLE


class TestMediaUploadSink(unittest.TestCase):

    def setUp(self):
        self.bucket = mock.Mock(_upload_url='http://upload', retry_params=None)
        self.response = mock.Mock(headers={'Location': 'http://session'})
        self.response.json.return_value = {'name': 'obj'}
        self.bucket._request.return_value = self.response
        self.object_json = {'name': 'obj', 'contentType': 'text/plain'}

    def _sink(self, length=None, threshold=10, chunksize=BM):
        return upload.MediaUploadSink(self.bucket, 'obj', self.object_json,
                                      'text/plain', length=length,
                                      predefined_acl='private',
                                      max_normal_upload_length=threshold,
                                      chunksize=chunksize)

    def _calls(self):
        return [c[1] for c in self.bucket._request.call_args_list]

    def test_wrong_chunksize(self):
        self.assertRaises(AssertionError, self._sink, chunksize=BM + 1)

    def test_default_sizes(self):
        sink = upload.MediaUploadSink(self.bucket, 'obj', {}, 'text/plain')
        self.assertEqual(constants.DEFAULT_MAX_NORMAL_UPLOAD_LENGTH,
                         sink.max_normal_upload_length)
        self.assertEqual('buffering', sink.strategy)

    def test_known_length_at_threshold(self):
        sink = self._sink(length=10)
        self.assertEqual('normal', sink.strategy)
        sink.write(b'0123456789')
        self.assertFalse(self.bucket._request.called)

        result = sink.close()
        self.assertEqual(self.bucket._info_from_json.return_value, result)
        self.bucket._info_from_json.assert_called_once_with({'name': 'obj'})

        kwargs = self.bucket._request.call_args[1]
        self.assertEqual('POST', kwargs['op'])
        self.assertEqual('http://upload', kwargs['url'])
        self.assertEqual('multipart', kwargs['uploadType'])
        self.assertEqual('private', kwargs['predefinedAcl'])
        content_type = kwargs['headers']['Content-Type']
        self.assertTrue(content_type.startswith('multipart/related; '
                                                'boundary='))
        boundary = content_type.split('=', 1)[1]
        body = kwargs['data']
        self.assertTrue(body.startswith(('--%s\r\n' % boundary).encode()))
        self.assertTrue(body.endswith(('\r\n--%s--' % boundary).encode()))
        self.assertIn(b'"contentType": "text/plain"', body)
        self.assertIn(b'Content-Type: text/plain\r\n\r\n0123456789\r\n',
                      body)

    def test_known_length_over_threshold(self):
        sink = self._sink(length=11)
        self.assertEqual('resumable', sink.strategy)
        kwargs = self.bucket._request.call_args[1]
        self.assertEqual('resumable', kwargs['uploadType'])
        self.assertEqual('obj', kwargs['name'])
        self.assertEqual(self.object_json, kwargs['body'])
        self.assertEqual({'X-Upload-Content-Type': 'text/plain',
                          'X-Upload-Content-Length': '11'},
                         kwargs['headers'])

        sink.write(b'0123456789a')
        self.assertEqual(1, self.bucket._request.call_count)
        sink.close()
        kwargs = self.bucket._request.call_args[1]
        self.assertEqual('PUT', kwargs['op'])
        self.assertEqual('http://session', kwargs['url'])
        self.assertEqual({'Content-Range': 'bytes 0-10/11'},
                         kwargs['headers'])
        self.assertEqual(b'0123456789a', kwargs['data'])
        self.assertEqual((200, 201), kwargs['ok'])

    def test_unknown_length_small(self):
        sink = self._sink()
        sink.write(b'01234')
        sink.write(b'56789')
        self.assertEqual('buffering', sink.strategy)
        sink.close()
        self.assertEqual(1, self.bucket._request.call_count)
        self.assertEqual('multipart',
                         self.bucket._request.call_args[1]['uploadType'])

    def test_unknown_length_switches_to_resumable(self):
        sink = self._sink()
        sink.write(b'0123456789')
        self.assertFalse(self.bucket._request.called)
        sink.write(b'a')
        self.assertEqual('resumable', sink.strategy)
        self.assertNotIn('X-Upload-Content-Length',
                         self.bucket._request.call_args[1]['headers'])

        sink.close()
        kwargs = self.bucket._request.call_args[1]
        self.assertEqual({'Content-Range': 'bytes 0-10/11'},
                         kwargs['headers'])

    def test_chunks(self):
        sink = self._sink(length=2 * BM + 10)
        sink.write(b'a' * BM)
        sink.write(b'b' * (BM + 10))
        calls = self._calls()
        # Resumable session plus two full chunks
        self.assertEqual(3, len(calls))
        self.assertEqual({'Content-Range': 'bytes 0-%d/*' % (BM - 1)},
                         calls[1]['headers'])
        self.assertEqual((308,), calls[1]['ok'])
        self.assertEqual(b'a' * BM, calls[1]['data'])
        self.assertEqual({'Content-Range': 'bytes %d-%d/*' % (BM,
                                                             2 * BM - 1)},
                         calls[2]['headers'])
        self.assertEqual(b'b' * BM, calls[2]['data'])

        sink.close()
        last = self._calls()[3]
        self.assertEqual({'Content-Range': 'bytes %d-%d/%d' % (
            2 * BM, 2 * BM + 9, 2 * BM + 10)}, last['headers'])
        self.assertEqual(b'b' * 10, last['data'])

    def test_exact_chunks_finalize_empty(self):
        sink = self._sink(length=BM)
        sink.write(b'a' * BM)
        sink.close()
        last = self._calls()[-1]
        self.assertEqual({'Content-Range': 'bytes */%d' % BM},
                         last['headers'])
        self.assertEqual((200, 201), last['ok'])

    def test_write_more_than_length(self):
        sink = self._sink(length=5)
        sink.write(b'01234')
        self.assertRaises(errors.Error, sink.write, b'5')
        self.assertTrue(sink.aborted)
        self.assertFalse(self.bucket._request.called)

    def test_close_with_less_than_length(self):
        sink = self._sink(length=5)
        sink.write(b'0123')
        self.assertRaises(errors.Error, sink.close)
        self.assertTrue(sink.aborted)
        self.assertFalse(self.bucket._request.called)

    def test_abort(self):
        sink = self._sink()
        sink.write(b'data')
        sink.abort()
        self.assertTrue(sink.closed)
        self.assertTrue(sink.aborted)
        self.assertRaises(IOError, sink.write, b'more')
        self.assertIsNone(sink.close())
        self.assertFalse(self.bucket._request.called)

    def test_close_twice(self):
        sink = self._sink()
        sink.write('text')
        first = sink.close()
        self.assertIs(first, sink.close())
        self.assertEqual(1, self.bucket._request.call_count)
        self.assertIn(b'text', self.bucket._request.call_args[1]['data'])

    def test_context_manager(self):
        with self._sink() as sink:
            sink.add(b'data')
        self.assertTrue(sink.closed)
        self.assertFalse(sink.aborted)
        self.assertEqual(1, self.bucket._request.call_count)

    def test_context_manager_error(self):
        try:
            with self._sink() as sink:
                sink.write(b'data')
                raise ValueError()
        except ValueError:
            pass
        self.assertTrue(sink.aborted)
        self.assertFalse(self.bucket._request.called)


class TestBuffer(unittest.TestCase):

    def test_read_across_writes(self):
        buf = upload._Buffer()
        buf.write(b'abc')
        buf.write(b'')
        buf.write(b'defg')
        self.assertEqual(7, len(buf))
        self.assertEqual(b'abcde', bytes(buf.read(5)))
        self.assertEqual(2, len(buf))
        self.assertEqual(b'fg', bytes(buf.read(10)))
        self.assertEqual(0, len(buf))
        self.assertEqual(b'', bytes(buf.read()))

    def test_clear(self):
        buf = upload._Buffer()
        buf.write(b'abc')
        buf.clear()
        self.assertEqual(0, len(buf))
