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
from gcloud_client import errors


class Service(object):
    """Base class for the REST services.

    Holds the configuration shared by all services: project id, credentials,
    the HTTP client (a requests.Session) and the retry configuration.
    """

    #: OAuth2 scopes required by the service.
    SCOPES = ()

    #: Root URL of the REST API.
    URL = None

    _required_attributes = ['project']

    def __init__(self, project, credentials=None, session=None,
                 retry_params=None, api_url=None):
        """Base service initialization.

        :param project: Project id as listed in Google's project management
                        https://console.developers.google.com/project.
        :type project: String
        :param credentials: Credentials to use for accessing the service.  Any
                            object with an `authorization` attribute is
                            accepted.  None sends unauthenticated requests.
        :type credentials: Credentials
        :param session: HTTP client used for the requests.  A new
                        requests.Session will be created if not provided.
        :type session: requests.Session
        :param retry_params: retry configuration used for communications.  If
                             not specified RetryParams.get_default() will be
                             used.
        :type retry_params: RetryParams
        :param api_url: Alternative root URL, for example an emulator.
        :type api_url: String
        """
        self.project = project
        self.credentials = credentials
        self._session = session or requests.Session()
        self._retry_params = retry_params or common.RetryParams.get_default()
        self.api_url = api_url or self.URL

    def _url(self, *parts):
        """Build a URL from the root URL and quoted path parts."""
        return '/'.join([self.api_url] +
                        [requests.utils.quote(str(p), safe='') for p in parts])

    def _request(self, op='GET', url=None, headers=None, body=None, data=None,
                 parse=False, ok=(requests.codes.ok,), **params):
        """Request actions on a REST resource.

        :param op: Operation to perform (GET, PUT, POST, HEAD, DELETE).
        :type op: String
        :param url: URL of the resource.
        :type url: String
        :param headers: Headers to send in the request.  Authentication will be
                        added.
        :type headers: dict
        :param body: JSON body to send in the request.
        :type body: dict
        :param data: Raw body to send in the request.
        :type data: bytes
        :param parse: If we want to check that response body is JSON.
        :type parse: bool
        :param ok: Response status codes to consider as OK.
        :type ok: Iterable of integer numbers
        :param params: All params to send as URL params in the request.
        :returns: requests.Response
        """
        headers = {} if not headers else headers.copy()
        if self.credentials is not None:
            headers['Authorization'] = self.credentials.authorization

        params = {k: v for k, v in params.items() if v is not None}
        r = self._session.request(op, url or self.api_url, params=params,
                                  headers=headers, json=body, data=data)

        if r.status_code not in ok:
            raise self._create_exception(r)

        if parse:
            try:
                r.json()
            except Exception:
                raise errors.Error('Response is not JSON: %s' % r.content)

        return r

    def _create_exception(self, response):
        return errors.create_http_exception(response.status_code,
                                            response.content)

    @property
    def retry_params(self):
        """Get retry configuration used by this instance."""
        return self._retry_params

    @retry_params.setter
    def retry_params(self, retry_params):
        """Set retry configuration used by this instance.

        :param retry_params: retry configuration used for communications.  If
                             None is passed retries will be disabled.
        :type retry_params: RetryParams or NoneType
        """
        assert isinstance(retry_params, (type(None), common.RetryParams))
        self._retry_params = retry_params

    @property
    def session(self):
        return self._session
