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

import json

from oauth2client import service_account

from gcloud_client import constants
from gcloud_client import errors


class Credentials(object):
    """Service account credentials used to access Google Cloud services."""

    def __init__(self, key_file_name, email=None,
                 scopes=(constants.SCOPE_CLOUD,)):
        """Initialize credentials used for all service operations.

        Create OAuth 2.0 credentials from a JSON key file or from a P12 key
        file and the service account's email address.

        Key files are obtained in the Google Developers Console, in the
        Credentials page, by adding a Service account key.

        :param key_file_name: Name of the file with the credentials to use.
        :type key_file_name: String
        :param email: Service account's Email address to use with P12 file.
                      When using JSON files this argument will be ignored.
        :type email: String
        :param scopes: OAuth2 scope URLs the credentials should be granted
                       access to, for example Storage.SCOPES + PubSub.SCOPES.
        :type scopes: Iterable of strings
        """
        scopes = list(scopes or ())
        if not scopes:
            raise errors.Credentials('At least one scope is required')
        self.scopes = scopes

        try:
            with open(key_file_name, 'rb') as f:
                key_data = f.read()
        except IOError:
            raise errors.Credentials(
                'Could not read data from private key file %s.' %
                key_file_name)

        try:
            json_data = json.loads(key_data)
        except ValueError:
            json_data = None

        sa_credentials = service_account.ServiceAccountCredentials
        if json_data is not None:
            self._credentials = sa_credentials.from_json_keyfile_dict(
                json_data, scopes=scopes)
        elif not email:
            raise errors.Credentials(
                'Non JSON private key needs email, but it was missing')
        else:
            self._credentials = sa_credentials.from_p12_keyfile(
                email, key_file_name, scopes=scopes)

    @property
    def service_account_email(self):
        return self._credentials.service_account_email

    @property
    def authorization(self):
        """Authorization header value for requests."""
        token_info = self._credentials.get_access_token()
        return 'Bearer ' + token_info.access_token
