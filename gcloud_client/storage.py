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

import requests

from gcloud_client import acl as acl_module
from gcloud_client import base
from gcloud_client import common
from gcloud_client import constants
from gcloud_client import errors
from gcloud_client import paging
from gcloud_client import upload


def split_absolute_name(name):
    """Split an absolute object name gs://bucket/object.

    :returns: Bucket name and object name.
    :rtype: tuple
    :raises: ValueError if the name is not a valid absolute name.
    """
    if not name.startswith(constants.ABSOLUTE_PREFIX):
        raise ValueError("Absolute object name must start with '%s'" %
                         constants.ABSOLUTE_PREFIX)
    bucket_name, _, object_name = (
        name[len(constants.ABSOLUTE_PREFIX):].partition('/'))
    if not bucket_name or not object_name:
        raise ValueError("Invalid absolute object name '%s'" % name)
    return bucket_name, object_name


class BucketInfo(object):
    """Information on a bucket.

    :ivar bucket_name: The name of the bucket.
    :vartype bucket_name: string

    :ivar created: The creation time of the bucket.
    :vartype created: datetime.datetime

    :ivar etag: HTTP 1.1 Entity tag for the bucket.
    :vartype etag: string

    :ivar id: The ID of the bucket.
    :vartype id: string

    :ivar self_link: The link to this bucket.
    :vartype self_link: string
    """

    def __init__(self, bucket_name, created=None, etag=None, id=None,
                 self_link=None):
        self.bucket_name = bucket_name
        self.created = created
        self.etag = etag
        self.id = id
        self.self_link = self_link

    @classmethod
    def from_json(cls, data):
        created = data.get('timeCreated')
        return cls(data['name'],
                   created=common.parse_rfc3339(created) if created else None,
                   etag=data.get('etag'), id=data.get('id'),
                   self_link=data.get('selfLink'))

    def __repr__(self):
        return 'BucketInfo(%r)' % self.bucket_name


class ObjectGeneration(object):
    def __init__(self, object_generation, meta_generation):
        self.object_generation = object_generation
        self.meta_generation = meta_generation

    def __eq__(self, other):
        return (isinstance(other, ObjectGeneration) and
                self.object_generation == other.object_generation and
                self.meta_generation == other.meta_generation)

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash((self.object_generation, self.meta_generation))

    def __repr__(self):
        return 'ObjectGeneration(%r, %r)' % (self.object_generation,
                                             self.meta_generation)


class ObjectMetadata(object):
    """Mutable metadata of an object.

    :ivar custom: User provided metadata, in key/value pairs.
    :vartype custom: dict
    """

    _FIELDS = (('acl', None), ('content_type', 'contentType'),
               ('content_encoding', 'contentEncoding'),
               ('cache_control', 'cacheControl'),
               ('content_disposition', 'contentDisposition'),
               ('content_language', 'contentLanguage'),
               ('custom', 'metadata'))

    def __init__(self, acl=None, content_type=None, content_encoding=None,
                 cache_control=None, content_disposition=None,
                 content_language=None, custom=None):
        self.acl = acl
        self.content_type = content_type
        self.content_encoding = content_encoding
        self.cache_control = cache_control
        self.content_disposition = content_disposition
        self.content_language = content_language
        self.custom = custom

    def replace(self, **kwargs):
        """Create a copy with some values replaced.

        Values of None keep the current value.
        """
        values = dict((name, getattr(self, name)) for name, _ in self._FIELDS)
        for name, value in kwargs.items():
            if name not in values:
                raise TypeError("replace() got an unexpected keyword "
                                "argument '%s'" % name)
            if value is not None:
                values[name] = value
        return ObjectMetadata(**values)

    def to_json(self):
        result = {}
        for name, json_name in self._FIELDS:
            value = getattr(self, name)
            if value is None:
                continue
            if name == 'acl':
                result['acl'] = value.to_json()
            elif name == 'custom':
                result[json_name] = dict(value)
            else:
                result[json_name] = value
        return result

    @classmethod
    def from_json(cls, data):
        kwargs = {}
        for name, json_name in cls._FIELDS:
            if name == 'acl':
                if 'acl' in data:
                    kwargs['acl'] = acl_module.Acl.from_json(data['acl'])
            else:
                kwargs[name] = data.get(json_name)
        return cls(**kwargs)

    def __eq__(self, other):
        return (isinstance(other, ObjectMetadata) and
                self.to_json() == other.to_json())

    def __ne__(self, other):
        return not self == other

    __hash__ = None

    def __repr__(self):
        return 'ObjectMetadata(%r)' % self.to_json()


class ObjectInfo(object):
    """Information on an object.

    :ivar name: The name of the object.
    :vartype name: string

    :ivar length: Content-Length of the data in bytes.
    :vartype length: int

    :ivar updated: The modification time of the object.
    :vartype updated: datetime.datetime

    :ivar etag: HTTP 1.1 Entity tag for the object.
    :vartype etag: string

    :ivar md5_hash: MD5 hash of the data.
    :vartype md5_hash: bytes

    :ivar crc32c_checksum: CRC32c checksum, as described in RFC 4960,
                           Appendix B.
    :vartype crc32c_checksum: int

    :ivar download_link: Media download link.
    :vartype download_link: string

    :ivar generation: Object and metadata generation.
    :vartype generation: ObjectGeneration

    :ivar metadata: Mutable metadata of the object.
    :vartype metadata: ObjectMetadata
    """

    def __init__(self, name, length=None, updated=None, etag=None,
                 md5_hash=None, crc32c_checksum=None, download_link=None,
                 generation=None, metadata=None):
        self.name = name
        self.length = length
        self.updated = updated
        self.etag = etag
        self.md5_hash = md5_hash
        self.crc32c_checksum = crc32c_checksum
        self.download_link = download_link
        self.generation = generation
        self.metadata = metadata or ObjectMetadata()

    @classmethod
    def from_json(cls, data):
        size = data.get('size')
        updated = data.get('updated')
        md5_hash = data.get('md5Hash')
        crc32c = data.get('crc32c')
        if crc32c is not None:
            # Base64 encoded, in big-endian byte order
            crc32c = int.from_bytes(base64.b64decode(crc32c), 'big')
        generation = None
        if 'generation' in data:
            generation = ObjectGeneration(
                int(data['generation']), int(data.get('metageneration', 1)))
        return cls(data['name'],
                   length=int(size) if size is not None else None,
                   updated=common.parse_rfc3339(updated) if updated else None,
                   etag=data.get('etag'),
                   md5_hash=(base64.b64decode(md5_hash) if md5_hash
                             else None),
                   crc32c_checksum=crc32c,
                   download_link=data.get('mediaLink'),
                   generation=generation,
                   metadata=ObjectMetadata.from_json(data))

    def __repr__(self):
        return 'ObjectInfo(%r, length=%r)' % (self.name, self.length)


class BucketEntry(object):
    """Result of listing a bucket: an object or a directory.

    Listing operates like a directory listing, despite the object namespace
    being flat.
    """

    def __init__(self, name, is_object):
        self.name = name
        self.is_object = is_object

    @classmethod
    def object(cls, name):
        return cls(name, True)

    @classmethod
    def directory(cls, name):
        return cls(name, False)

    @property
    def is_directory(self):
        return not self.is_object

    def __eq__(self, other):
        return (isinstance(other, BucketEntry) and self.name == other.name and
                self.is_object == other.is_object)

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash((self.name, self.is_object))

    def __repr__(self):
        return 'BucketEntry(%r, is_object=%s)' % (self.name, self.is_object)


class Storage(base.Service):
    """Access to Cloud Storage buckets."""

    SCOPES = (constants.SCOPE_STORAGE,)
    URL = constants.STORAGE_URL

    def __init__(self, project, credentials=None, session=None,
                 retry_params=None, api_url=None, upload_url=None):
        """Initialize access to Cloud Storage.

        :param upload_url: Alternative root URL for media uploads.
        :type upload_url: String

        See gcloud_client.base.Service for the other arguments.
        """
        super(Storage, self).__init__(project, credentials, session,
                                      retry_params, api_url)
        self.upload_url = upload_url or constants.STORAGE_UPLOAD_URL

    @common.is_complete
    @common.retry
    def create_bucket(self, name, predefined_acl=None, acl=None):
        """Create a bucket.

        :param name: Name of the bucket.
        :type name: String
        :param predefined_acl: One of the PredefinedAcl values.
        :type predefined_acl: String
        :param acl: ACL of the bucket, ignored if predefined_acl is given.
        :type acl: gcloud_client.acl.Acl
        :returns: Information on the new bucket.
        :rtype: BucketInfo
        """
        body = {'name': name}
        if acl is not None and predefined_acl is None:
            body['acl'] = acl.to_json()
        r = self._request(op='POST', url=self._url('b'), body=body,
                          parse=True, project=self.project,
                          predefinedAcl=predefined_acl)
        return BucketInfo.from_json(r.json())

    @common.retry
    def delete_bucket(self, name):
        """Delete an empty bucket."""
        self._request(op='DELETE', url=self._url('b', name),
                      ok=(requests.codes.no_content,))

    def bucket(self, name, default_predefined_object_acl=None,
               default_object_acl=None):
        """Access object operations of a bucket.

        :param name: Name of the bucket.
        :type name: String
        :param default_predefined_object_acl: Predefined ACL for objects
                                              written through the bucket.
        :type default_predefined_object_acl: String
        :param default_object_acl: ACL for objects written through the bucket.
        :type default_object_acl: gcloud_client.acl.Acl
        :rtype: Bucket
        """
        return Bucket(name, project=self.project,
                      credentials=self.credentials, session=self.session,
                      retry_params=self.retry_params, api_url=self.api_url,
                      upload_url=self.upload_url,
                      default_predefined_object_acl=(
                          default_predefined_object_acl),
                      default_object_acl=default_object_acl)

    def bucket_exists(self, name):
        try:
            self._get_bucket(name)
        except errors.NotFound:
            return False
        return True

    def bucket_info(self, name):
        return BucketInfo.from_json(self._get_bucket(name))

    @common.retry
    def _get_bucket(self, name):
        return self._request(url=self._url('b', name), parse=True).json()

    def list_bucket_names(self):
        """Iterate over the names of all buckets of the project."""
        return paging.StreamFromPages(self.page_bucket_names)

    @common.is_complete
    def page_bucket_names(self, page_size=constants.DEFAULT_PAGE_SIZE):
        """Get the first page of bucket names.

        :rtype: gcloud_client.paging.Page
        """
        return paging.Page.first(self._fetch_bucket_names, page_size)

    @common.retry
    def _fetch_bucket_names(self, page_size, page_token):
        r = self._request(url=self._url('b'), parse=True,
                          project=self.project, maxResults=page_size,
                          pageToken=page_token)
        data = r.json()
        names = [item['name'] for item in data.get('items', [])]
        return names, data.get('nextPageToken')

    @common.retry
    def copy_object(self, src, dest):
        """Copy an object.

        :param src: Absolute name of the source object, gs://bucket/object.
        :type src: String
        :param dest: Absolute name of the destination object.
        :type dest: String
        :returns: Information on the new object.
        :rtype: ObjectInfo
        """
        src_bucket, src_name = split_absolute_name(src)
        dest_bucket, dest_name = split_absolute_name(dest)
        r = self._request(op='POST',
                          url=self._url('b', src_bucket, 'o', src_name,
                                        'copyTo', 'b', dest_bucket, 'o',
                                        dest_name),
                          body={}, parse=True)
        return ObjectInfo.from_json(r.json())


class Bucket(base.Service):
    """Access to the objects of a Cloud Storage bucket."""

    SCOPES = (constants.SCOPE_STORAGE,)
    URL = constants.STORAGE_URL
    _required_attributes = ['bucket_name']

    def __init__(self, bucket_name, project=None, credentials=None,
                 session=None, retry_params=None, api_url=None,
                 upload_url=None, default_predefined_object_acl=None,
                 default_object_acl=None, max_normal_upload_length=None,
                 chunksize=None):
        """Initialize a Bucket object.

        :param bucket_name: Name of the bucket to use.
        :type bucket_name: String
        :param default_predefined_object_acl: Predefined ACL for new objects
                                              when none is given.
        :type default_predefined_object_acl: String
        :param default_object_acl: ACL for new objects when none is given.
        :type default_object_acl: gcloud_client.acl.Acl
        :param max_normal_upload_length: Largest object uploaded with a single
                                         request.
        :type max_normal_upload_length: int
        :param chunksize: Size in bytes of the payload to send/receive to/from
                          Cloud Storage.  Default is DEFAULT_BLOCK_SIZE.
        :type chunksize: int

        See gcloud_client.base.Service for the other arguments.
        """
        super(Bucket, self).__init__(project, credentials, session,
                                     retry_params, api_url)
        self.bucket_name = bucket_name
        self.default_predefined_object_acl = default_predefined_object_acl
        self.default_object_acl = default_object_acl
        self.max_normal_upload_length = max_normal_upload_length
        self._chunksize = chunksize or constants.DEFAULT_BLOCK_SIZE
        upload_url = upload_url or constants.STORAGE_UPLOAD_URL
        self._upload_url = '%s/b/%s/o' % (
            upload_url, requests.utils.quote(bucket_name, safe=''))

    def absolute_object_name(self, name):
        return '%s%s/%s' % (constants.ABSOLUTE_PREFIX, self.bucket_name, name)

    def _object_url(self, name):
        return self._url('b', self.bucket_name, 'o', name)

    def _info_from_json(self, data):
        return ObjectInfo.from_json(data)

    @common.is_complete
    def write(self, name, length=None, metadata=None, acl=None,
              predefined_acl=None, content_type=None):
        """Create a new object, replacing any object with the same name.

        Values passed in the specific arguments take precedence over the
        values in metadata.  If no ACL is given the bucket's default object
        ACL is used, and if no content type is given application/octet-stream
        is used.

        :param name: Name of the object.
        :type name: String
        :param length: Length of the data if known in advance.
        :type length: int
        :param metadata: Metadata of the object.
        :type metadata: ObjectMetadata
        :param acl: ACL of the object.
        :type acl: gcloud_client.acl.Acl
        :param predefined_acl: One of the PredefinedAcl values.
        :type predefined_acl: String
        :param content_type: Content-Type of the object data.
        :type content_type: String
        :returns: Sink to write the object content to.  Closing it returns an
                  ObjectInfo.
        :rtype: gcloud_client.upload.MediaUploadSink
        """
        metadata = (metadata or ObjectMetadata()).replace(
            acl=acl, content_type=content_type)
        if metadata.acl is None:
            metadata.acl = self.default_object_acl
        if metadata.content_type is None:
            metadata.content_type = constants.DEFAULT_CONTENT_TYPE
        if predefined_acl is None and metadata.acl is None:
            predefined_acl = self.default_predefined_object_acl

        object_json = metadata.to_json()
        object_json['name'] = name
        return upload.MediaUploadSink(
            self, name, object_json, metadata.content_type, length=length,
            predefined_acl=predefined_acl,
            max_normal_upload_length=self.max_normal_upload_length,
            chunksize=self._chunksize)

    def write_bytes(self, name, data, metadata=None, acl=None,
                    predefined_acl=None, content_type=None):
        """Create a new object with the given content.

        See write for the other arguments.

        :rtype: ObjectInfo
        """
        sink = self.write(name, length=len(data), metadata=metadata, acl=acl,
                          predefined_acl=predefined_acl,
                          content_type=content_type)
        sink.write(data)
        return sink.close()

    def read(self, name, offset=0, length=None):
        """Read the content of an object.

        :param name: Name of the object.
        :type name: String
        :param offset: Position of the first byte to read.
        :type offset: int
        :param length: Number of bytes to read, None reads until the end.
        :type length: int
        :returns: Generator of chunks of bytes.
        """
        if offset < 0 or (length is not None and length < 0):
            raise ValueError('offset and length must not be negative')
        end = None if length is None else offset + length
        position = offset
        while end is None or position < end:
            size = self._chunksize
            if end is not None:
                size = min(size, end - position)
            data, eof = self._get_data(name, size, position)
            if data:
                yield data
            position += len(data)
            if eof or not data:
                break

    @common.retry
    def _get_data(self, name, size, begin=0):
        end = begin + size - 1
        headers = {'Range': 'bytes=%d-%d' % (begin, end)}
        expected = (requests.codes.ok, requests.codes.partial_content,
                    requests.codes.requested_range_not_satisfiable)
        r = self._request(url=self._object_url(name), headers=headers,
                          ok=expected, alt='media')

        if r.status_code == requests.codes.requested_range_not_satisfiable:
            return (b'', True)

        content_range = r.headers.get('Content-Range')
        eof = None
        if content_range:
            try:
                total_size = int(content_range.split('/')[-1])
                eof = total_size <= begin + len(r.content)
            except ValueError:
                pass
        if eof is None:
            eof = len(r.content) < size
        return (r.content, eof)

    @common.retry
    def info(self, name):
        """Get information on an object.

        :rtype: ObjectInfo
        """
        r = self._request(url=self._object_url(name), parse=True)
        return ObjectInfo.from_json(r.json())

    @common.retry
    def delete(self, name):
        self._request(op='DELETE', url=self._object_url(name),
                      ok=(requests.codes.no_content,))

    @common.retry
    def update_metadata(self, name, metadata):
        """Replace the metadata of an object.

        :param metadata: New metadata of the object.
        :type metadata: ObjectMetadata
        :rtype: ObjectInfo
        """
        body = metadata.to_json()
        body['name'] = name
        r = self._request(op='PUT', url=self._object_url(name), body=body,
                          parse=True)
        return ObjectInfo.from_json(r.json())

    def list(self, prefix=None):
        """Iterate over the objects and directories starting with prefix.

        The character '/' separates object names into directory components.

        :returns: Iterator of BucketEntry.
        """
        return paging.StreamFromPages(
            lambda page_size: self.page(prefix, page_size))

    def page(self, prefix=None, page_size=constants.DEFAULT_PAGE_SIZE):
        """Get the first page of a bucket listing.

        :rtype: gcloud_client.paging.Page
        """
        def fetch(page_size, page_token):
            return self._fetch_entries(prefix, page_size, page_token)

        return paging.Page.first(fetch, page_size)

    @common.retry
    def _fetch_entries(self, prefix, page_size, page_token):
        r = self._request(url=self._url('b', self.bucket_name, 'o'),
                          parse=True, prefix=prefix,
                          delimiter=constants.DIRECTORY_DELIMITER,
                          maxResults=page_size, pageToken=page_token)
        data = r.json()
        entries = [BucketEntry.directory(p) for p in data.get('prefixes', [])]
        entries.extend(BucketEntry.object(item['name'])
                       for item in data.get('items', []))
        return entries, data.get('nextPageToken')

    def __repr__(self):
        return 'Bucket(%r)' % self.bucket_name
