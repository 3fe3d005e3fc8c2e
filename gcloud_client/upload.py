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

import collections
import json
import logging
import uuid

import requests

from gcloud_client import common
from gcloud_client import constants
from gcloud_client import errors


LOG = logging.getLogger(__name__)


class MediaUploadSink(object):
    """Writer of the content of a new Cloud Storage object.

    Small objects are sent in a single multipart request once the sink is
    closed, and large ones with a resumable upload in chunks that are a
    multiple of BLOCK_MULTIPLE.  When the length of the content is known in
    advance the kind of upload is chosen right away, otherwise data is
    buffered until either the sink is closed or the buffered data exceeds
    max_normal_upload_length, in which case a resumable upload is started and
    the buffered data sent first.

    Instances support context manager behavior: the upload is finished on a
    clean exit and aborted if the block raises.
    """

    _BUFFERING = 'buffering'
    _NORMAL = 'normal'
    _RESUMABLE = 'resumable'

    def __init__(self, bucket, object_name, object_json, content_type,
                 length=None, predefined_acl=None,
                 max_normal_upload_length=None, chunksize=None):
        """Initialize the upload.

        :param bucket: Bucket the object is written to.
        :type bucket: gcloud_client.storage.Bucket
        :param object_name: Name of the object.
        :type object_name: String
        :param object_json: Object resource sent as metadata of the upload.
        :type object_json: dict
        :param content_type: Content-Type of the object data.
        :type content_type: String
        :param length: Length of the content if known in advance.
        :type length: int
        :param predefined_acl: Predefined ACL to apply to the object.
        :type predefined_acl: String
        :param max_normal_upload_length: Largest content sent in a single
                                         request.  Default is
                                         DEFAULT_MAX_NORMAL_UPLOAD_LENGTH.
        :type max_normal_upload_length: int
        :param chunksize: Size in bytes of each resumable upload request.
                          Default is DEFAULT_BLOCK_SIZE.
        :type chunksize: int
        """
        self._chunksize = chunksize or constants.DEFAULT_BLOCK_SIZE
        assert self._chunksize % constants.BLOCK_MULTIPLE == 0, \
            'chunksize must be multiple of %s' % constants.BLOCK_MULTIPLE
        if max_normal_upload_length is None:
            max_normal_upload_length = (
                constants.DEFAULT_MAX_NORMAL_UPLOAD_LENGTH)
        self.max_normal_upload_length = max_normal_upload_length

        self.name = object_name
        self.length = length
        self.size = 0
        self.closed = False
        self.aborted = False
        self._bucket = bucket
        self._retry_params = bucket.retry_params
        self._object_json = object_json
        self._content_type = content_type
        self._predefined_acl = predefined_acl
        self._buffer = _Buffer()
        self._location = None
        self._gcs_offset = 0
        self._result = None

        if length is None:
            self._state = self._BUFFERING
        elif length <= max_normal_upload_length:
            self._state = self._NORMAL
        else:
            self._start_resumable()

    @property
    def strategy(self):
        """Current upload strategy: buffering, normal or resumable."""
        return self._state

    def _check_is_open(self):
        if self.closed:
            raise IOError('Upload of %s is closed' % self.name)

    def write(self, data):
        """Add data to the object.

        Due to buffering, data may not be sent until enough data to send a
        chunk has been written or the sink is closed.

        :param data: Data to write to the object.
        :type data: bytes
        :returns: None
        """
        self._check_is_open()
        if isinstance(data, str):
            data = data.encode()

        self.size += len(data)
        if self.length is not None and self.size > self.length:
            self.abort()
            raise errors.Error('More data written to %s than the declared '
                               'length of %s bytes' % (self.name, self.length))

        self._buffer.write(data)
        if (self._state == self._BUFFERING and
                len(self._buffer) > self.max_normal_upload_length):
            self._start_resumable()

        if self._state == self._RESUMABLE:
            while len(self._buffer) >= self._chunksize:
                data = self._buffer.read(self._chunksize)
                self._send_data(bytes(data), self._gcs_offset)
                self._gcs_offset += len(data)

    add = write

    def close(self):
        """Finish the upload.

        Calling close() more than once is allowed.

        :returns: Information on the created object.
        :rtype: gcloud_client.storage.ObjectInfo
        """
        if self.closed:
            return self._result

        if self.length is not None and self.size != self.length:
            self.abort()
            raise errors.Error('Wrote %s bytes to %s but declared length was '
                               '%s' % (self.size, self.name, self.length))

        if self._state == self._RESUMABLE:
            data = self._send_data(bytes(self._buffer.read()),
                                   self._gcs_offset, finalize=True)
        else:
            data = self._send_normal(bytes(self._buffer.read()))
        self.closed = True
        self._result = self._bucket._info_from_json(data)
        return self._result

    def abort(self):
        """Discard the upload.  No more data will be sent."""
        if not self.closed:
            LOG.debug('Aborting upload of %s after %s bytes', self.name,
                      self.size)
            self.closed = True
            self.aborted = True
            self._buffer.clear()

    def _start_resumable(self):
        LOG.debug('Starting resumable upload of %s (length %s)', self.name,
                  self.length)
        self._location = self._open()
        self._state = self._RESUMABLE

    @common.retry
    def _open(self):
        headers = {'X-Upload-Content-Type': self._content_type}
        if self.length is not None:
            headers['X-Upload-Content-Length'] = str(self.length)
        r = self._bucket._request(op='POST', url=self._bucket._upload_url,
                                  headers=headers, body=self._object_json,
                                  uploadType='resumable', name=self.name,
                                  predefinedAcl=self._predefined_acl)
        return r.headers['Location']

    @common.retry
    def _send_normal(self, data):
        LOG.debug('Uploading %s bytes of %s in a single request', len(data),
                  self.name)
        boundary = uuid.uuid4().hex
        body = b''.join([
            ('--%s\r\n' % boundary).encode(),
            b'Content-Type: application/json; charset=UTF-8\r\n\r\n',
            json.dumps(self._object_json).encode('utf-8'),
            ('\r\n--%s\r\n' % boundary).encode(),
            ('Content-Type: %s\r\n\r\n' % self._content_type).encode(),
            data,
            ('\r\n--%s--' % boundary).encode()])
        headers = {'Content-Type': 'multipart/related; boundary=%s' %
                   boundary}
        r = self._bucket._request(op='POST', url=self._bucket._upload_url,
                                  headers=headers, data=body, parse=True,
                                  uploadType='multipart',
                                  predefinedAcl=self._predefined_acl)
        return r.json()

    @common.retry
    def _send_data(self, data, begin=0, finalize=False):
        if not (data or finalize):
            return None

        if not data:
            size = self.size
            data_range = 'bytes */%s' % size
        else:
            end = begin + len(data) - 1
            size = self.size if finalize else '*'
            data_range = 'bytes %s-%s/%s' % (begin, end, size)

        if size == '*':
            expected = (requests.codes.resume_incomplete,)
        else:
            expected = (requests.codes.ok, requests.codes.created)

        r = self._bucket._request(op='PUT', url=self._location,
                                  headers={'Content-Range': data_range},
                                  data=data, ok=expected, parse=finalize)
        if finalize:
            return r.json()
        return None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        if exc_type is None:
            self.close()
        else:
            self.abort()


class _Buffer(object):
    def __init__(self):
        self._queue = collections.deque()
        self._size = 0

    def __len__(self):
        return self._size

    def clear(self):
        self._queue.clear()
        self._size = 0

    def write(self, data):
        if data:
            self._queue.append(memoryview(data))
            self._size += len(data)

    def read(self, size=None):
        if size is None or size > self._size:
            size = self._size

        result = bytearray(size)
        written = 0
        remaining = size
        while remaining:
            data = self._queue.popleft()
            if len(data) > remaining:
                self._queue.appendleft(data[remaining:])
                data = data[:remaining]
            result[written: written + len(data)] = data
            written += len(data)
            remaining -= len(data)

        self._size -= size
        return result
