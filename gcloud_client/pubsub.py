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
import json
import logging

from gcloud_client import base
from gcloud_client import common
from gcloud_client import constants
from gcloud_client import paging


LOG = logging.getLogger(__name__)


class Message(object):
    """Pub/Sub message: binary data with string attributes."""

    def __init__(self, data, attributes=None):
        self._data = bytes(data)
        self.attributes = dict(attributes or {})

    @classmethod
    def with_string(cls, text, attributes=None):
        return cls(text.encode('utf-8'), attributes)

    @classmethod
    def with_bytes(cls, data, attributes=None):
        return cls(data, attributes)

    @property
    def as_string(self):
        return self._data.decode('utf-8')

    @property
    def as_bytes(self):
        return self._data

    def to_json(self):
        result = {'data': base64.b64encode(self._data).decode('ascii')}
        if self.attributes:
            # Attribute values are always strings
            result['attributes'] = dict((k, str(v))
                                        for k, v in self.attributes.items())
        return result

    @classmethod
    def from_json(cls, data):
        return cls(base64.b64decode(data.get('data', '')),
                   data.get('attributes'))

    def __eq__(self, other):
        return (isinstance(other, Message) and self._data == other._data and
                self.attributes == other.attributes)

    def __ne__(self, other):
        return not self == other

    __hash__ = None

    def __repr__(self):
        return 'Message(%r, %r)' % (self._data, self.attributes)


class PullEvent(object):
    """Message pulled from a subscription, pending acknowledgement."""

    def __init__(self, subscription, ack_id, message):
        self.subscription = subscription
        self.ack_id = ack_id
        self.message = message

    def acknowledge(self):
        self.subscription._acknowledge(self.ack_id)


class PushEvent(object):
    """Message delivered by a push subscription to its endpoint."""

    def __init__(self, message, subscription_name, message_id=None):
        self.message = message
        self.subscription_name = subscription_name
        self.message_id = message_id

    @classmethod
    def from_json(cls, body):
        """Decode the JSON body of a push request.

        :param body: Body of the HTTP request.
        :type body: String, bytes or dict
        :rtype: PushEvent
        """
        if isinstance(body, bytes):
            body = body.decode('utf-8')
        if isinstance(body, str):
            body = json.loads(body)
        message = body['message']
        return cls(Message.from_json(message), body['subscription'],
                   message.get('messageId') or message.get('message_id'))


def _split_name(name):
    """Split projects/<project>/<collection>/<name> into project and name."""
    parts = name.split('/')
    if len(parts) == 4 and parts[0] == 'projects':
        return parts[1], parts[3]
    # Subscriptions of deleted topics reference the topic '_deleted-topic_'
    return None, name


class Topic(object):
    def __init__(self, pubsub, name):
        self._pubsub = pubsub
        self.absolute_name = name
        self.project, self.name = _split_name(name)

    def publish(self, message):
        """Publish a message.

        :returns: Id of the published message.
        """
        return self._pubsub._publish(self.absolute_name, message)

    def publish_string(self, text, attributes=None):
        return self.publish(Message.with_string(text, attributes))

    def publish_bytes(self, data, attributes=None):
        return self.publish(Message.with_bytes(data, attributes))

    def delete(self):
        self._pubsub._delete_topic(self.absolute_name)

    def __repr__(self):
        return 'Topic(%r)' % self.absolute_name


class Subscription(object):
    """Subscription to a topic.

    :ivar endpoint: Push endpoint URL, None for pull subscriptions.
    :vartype endpoint: String
    """

    def __init__(self, pubsub, name, topic, endpoint=None):
        self._pubsub = pubsub
        self.absolute_name = name
        self.project, self.name = _split_name(name)
        self.topic = topic
        self.endpoint = endpoint

    @classmethod
    def from_json(cls, pubsub, data):
        endpoint = (data.get('pushConfig') or {}).get('pushEndpoint')
        return cls(pubsub, data['name'], Topic(pubsub, data['topic']),
                   endpoint or None)

    @property
    def is_pull(self):
        return self.endpoint is None

    @property
    def is_push(self):
        return not self.is_pull

    def pull(self, wait=False):
        """Pull one message.

        :param wait: Whether to wait for a message to be available.
        :type wait: bool
        :returns: The pulled message, or None if no message was available.
        :rtype: PullEvent or NoneType
        """
        data = self._pubsub._pull(self.absolute_name, wait)
        received = data.get('receivedMessages')
        if not received:
            return None
        return PullEvent(self, received[0]['ackId'],
                         Message.from_json(received[0]['message']))

    def update_push_configuration(self, endpoint):
        """Change the push endpoint.  None turns it into a pull subscription.
        """
        self._pubsub._modify_push_config(self.absolute_name, endpoint)
        self.endpoint = endpoint

    def _acknowledge(self, ack_id):
        self._pubsub._acknowledge(self.absolute_name, ack_id)

    def delete(self):
        self._pubsub._delete_subscription(self.absolute_name)

    def __repr__(self):
        return 'Subscription(%r)' % self.absolute_name


class PubSub(base.Service):
    """Access to Cloud Pub/Sub topics and subscriptions.

    Topic and subscription names can be relative, like 'my-topic', or
    absolute for the project, like 'projects/my-project/topics/my-topic'.
    """

    SCOPES = (constants.SCOPE_PUBSUB, constants.SCOPE_CLOUD)
    URL = constants.PUBSUB_URL

    def _full_name(self, name, collection):
        prefix = 'projects/%s/%s/' % (self.project, collection)
        if '/' not in name:
            if not name:
                raise ValueError('Illegal %s name. The name cannot be empty' %
                                 collection[:-1])
            return prefix + name
        if not name.startswith(prefix):
            raise ValueError(
                "Illegal %s name. Absolute names for project '%s' must start "
                "with %s" % (collection[:-1], self.project, prefix))
        relative = name[len(prefix):]
        if not relative or '/' in relative:
            raise ValueError('Illegal %s name %s' % (collection[:-1], name))
        return name

    def _full_topic_name(self, name):
        return self._full_name(name, 'topics')

    def _full_subscription_name(self, name):
        return self._full_name(name, 'subscriptions')

    def _resource_url(self, full_name, suffix=''):
        return self._url(*full_name.split('/')) + suffix

    @common.is_complete
    @common.retry
    def create_topic(self, name):
        full_name = self._full_topic_name(name)
        r = self._request(op='PUT', url=self._resource_url(full_name),
                          body={}, parse=True)
        return Topic(self, r.json()['name'])

    @common.is_complete
    def delete_topic(self, name):
        self._delete_topic(self._full_topic_name(name))

    @common.retry
    def _delete_topic(self, full_name):
        self._request(op='DELETE', url=self._resource_url(full_name))

    @common.is_complete
    @common.retry
    def lookup_topic(self, name):
        full_name = self._full_topic_name(name)
        r = self._request(url=self._resource_url(full_name), parse=True)
        return Topic(self, r.json()['name'])

    def list_topics(self):
        """Iterate over all the topics of the project."""
        return paging.StreamFromPages(self.page_topics)

    @common.is_complete
    def page_topics(self, page_size=constants.DEFAULT_PAGE_SIZE):
        return paging.Page.first(self._fetch_topics, page_size)

    @common.retry
    def _fetch_topics(self, page_size, page_token):
        r = self._request(url=self._url('projects', self.project, 'topics'),
                          parse=True, pageSize=page_size,
                          pageToken=page_token)
        data = r.json()
        topics = [Topic(self, t['name']) for t in data.get('topics', [])]
        return topics, data.get('nextPageToken')

    @common.is_complete
    @common.retry
    def create_subscription(self, name, topic, endpoint=None):
        """Create a subscription.

        :param name: Name of the subscription.
        :type name: String
        :param topic: Name of the topic to subscribe to.
        :type topic: String
        :param endpoint: URL messages are pushed to.  If None the subscription
                         is a pull subscription.
        :type endpoint: String
        :rtype: Subscription
        """
        full_name = self._full_subscription_name(name)
        body = {'topic': self._full_topic_name(topic)}
        if endpoint is not None:
            body['pushConfig'] = {'pushEndpoint': endpoint}
        r = self._request(op='PUT', url=self._resource_url(full_name),
                          body=body, parse=True)
        return Subscription.from_json(self, r.json())

    @common.is_complete
    def delete_subscription(self, name):
        self._delete_subscription(self._full_subscription_name(name))

    @common.retry
    def _delete_subscription(self, full_name):
        self._request(op='DELETE', url=self._resource_url(full_name))

    @common.is_complete
    @common.retry
    def lookup_subscription(self, name):
        full_name = self._full_subscription_name(name)
        r = self._request(url=self._resource_url(full_name), parse=True)
        return Subscription.from_json(self, r.json())

    def list_subscriptions(self, topic=None):
        """Iterate over the subscriptions of the project or of a topic."""
        return paging.StreamFromPages(
            lambda page_size: self.page_subscriptions(topic, page_size))

    @common.is_complete
    def page_subscriptions(self, topic=None,
                           page_size=constants.DEFAULT_PAGE_SIZE):
        if topic is not None:
            full_topic = self._full_topic_name(topic)

            def fetch(page_size, page_token):
                return self._fetch_topic_subscriptions(full_topic, page_size,
                                                       page_token)
        else:
            fetch = self._fetch_subscriptions
        return paging.Page.first(fetch, page_size)

    @common.retry
    def _fetch_subscriptions(self, page_size, page_token):
        r = self._request(
            url=self._url('projects', self.project, 'subscriptions'),
            parse=True, pageSize=page_size, pageToken=page_token)
        data = r.json()
        subscriptions = [Subscription.from_json(self, s)
                         for s in data.get('subscriptions', [])]
        return subscriptions, data.get('nextPageToken')

    @common.retry
    def _fetch_topic_subscriptions(self, full_topic, page_size, page_token):
        r = self._request(url=self._resource_url(full_topic,
                                                 '/subscriptions'),
                          parse=True, pageSize=page_size,
                          pageToken=page_token)
        data = r.json()
        # Topic listings only have the names of the subscriptions
        subscriptions = [self.lookup_subscription(name)
                         for name in data.get('subscriptions', [])]
        return subscriptions, data.get('nextPageToken')

    @common.retry
    def _publish(self, full_topic, message):
        r = self._request(op='POST',
                          url=self._resource_url(full_topic, ':publish'),
                          body={'messages': [message.to_json()]}, parse=True)
        return r.json()['messageIds'][0]

    @common.retry
    def _pull(self, full_subscription, wait):
        body = {'returnImmediately': not wait, 'maxMessages': 1}
        r = self._request(op='POST',
                          url=self._resource_url(full_subscription, ':pull'),
                          body=body, parse=True)
        return r.json()

    @common.retry
    def _acknowledge(self, full_subscription, ack_id):
        LOG.debug('Acknowledging message %s of %s', ack_id,
                  full_subscription)
        self._request(op='POST',
                      url=self._resource_url(full_subscription,
                                             ':acknowledge'),
                      body={'ackIds': [ack_id]})

    @common.retry
    def _modify_push_config(self, full_subscription, endpoint):
        push_config = {}
        if endpoint is not None:
            push_config['pushEndpoint'] = endpoint
        self._request(op='POST',
                      url=self._resource_url(full_subscription,
                                             ':modifyPushConfig'),
                      body={'pushConfig': push_config})
