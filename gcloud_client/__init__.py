# -*- coding: utf-8 -*-

"""Client Library for Google Cloud Datastore, Storage and Pub/Sub."""

from gcloud_client.common import RetryParams  # noqa
from gcloud_client.credentials import Credentials  # noqa
from gcloud_client.datastore_impl import DatastoreImpl  # noqa
from gcloud_client.paging import Page  # noqa
from gcloud_client.paging import StreamFromPages  # noqa
from gcloud_client.pubsub import PubSub  # noqa
from gcloud_client.retry_datastore import RetryDatastore  # noqa
from gcloud_client.storage import Bucket  # noqa
from gcloud_client.storage import Storage  # noqa
from gcloud_client.upload import MediaUploadSink  # noqa


__author__ = 'Gorka Eguileor'
__email__ = 'gorka@eguileor.com'
__version__ = '0.1.0'
