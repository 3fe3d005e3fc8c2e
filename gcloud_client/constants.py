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

# OAuth2 scopes

SCOPE_URL = 'https://www.googleapis.com/auth/'

#: Full control over Cloud Storage buckets and objects.
SCOPE_STORAGE = SCOPE_URL + 'devstorage.full_control'

#: Read only access to Cloud Storage.
SCOPE_STORAGE_READER = SCOPE_URL + 'devstorage.read_only'

#: Read and write access to Cloud Storage.
SCOPE_STORAGE_WRITER = SCOPE_URL + 'devstorage.read_write'

#: Cloud Datastore access.
SCOPE_DATASTORE = SCOPE_URL + 'datastore'

#: User email, required by Cloud Datastore.
SCOPE_USERINFO_EMAIL = SCOPE_URL + 'userinfo.email'

#: Cloud Pub/Sub access.
SCOPE_PUBSUB = SCOPE_URL + 'pubsub'

#: Everything on the Cloud Platform.
SCOPE_CLOUD = SCOPE_URL + 'cloud-platform'


# REST endpoints

STORAGE_URL = 'https://storage.googleapis.com/storage/v1'
STORAGE_UPLOAD_URL = 'https://storage.googleapis.com/upload/storage/v1'
DATASTORE_URL = 'https://datastore.googleapis.com/v1'
PUBSUB_URL = 'https://pubsub.googleapis.com/v1'


# Paging

#: Page size used when none is given.
DEFAULT_PAGE_SIZE = 50


# Uploads

#: Resumable upload chunks must be a multiple of this size.
BLOCK_MULTIPLE = 256 * 1024

#: Default size of each resumable upload chunk.
DEFAULT_BLOCK_SIZE = 4 * BLOCK_MULTIPLE

#: Largest payload sent with a single (multipart) upload request.
DEFAULT_MAX_NORMAL_UPLOAD_LENGTH = 1024 * 1024

#: Content type of objects when none is given.
DEFAULT_CONTENT_TYPE = 'application/octet-stream'


# Storage object listing

#: Absolute object names look like gs://bucket/object
ABSOLUTE_PREFIX = 'gs://'

#: Delimiter used to simulate directories when listing objects.
DIRECTORY_DELIMITER = '/'
