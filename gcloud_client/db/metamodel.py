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

"""Models of the Datastore metadata kinds __namespace__ and __kind__."""

from gcloud_client.db import model
from gcloud_client.db import model_description
from gcloud_client.db import properties


class Namespace(model.ExpandoModel):
    @property
    def name(self):
        # The default namespace is reported with id 1
        if self.id == NamespaceDescription.EMPTY_NAMESPACE_ID:
            return None
        return self.id


class Kind(model.Model):
    @property
    def name(self):
        return self.id


class NamespaceDescription(model_description.ExpandoModelDescription):
    EMPTY_NAMESPACE_ID = 1

    id = properties.IntProperty()

    def __init__(self):
        super(NamespaceDescription, self).__init__('__namespace__')


class KindDescription(model_description.ModelDescription):
    id = properties.StringProperty()

    def __init__(self):
        super(KindDescription, self).__init__('__kind__')


MODELS = ((Namespace, NamespaceDescription()),
          (Kind, KindDescription()))
