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

from gcloud_client.db.db import DatastoreDB  # noqa
from gcloud_client.db.db import Query  # noqa
from gcloud_client.db.db import Transaction  # noqa
from gcloud_client.db.model import ExpandoModel  # noqa
from gcloud_client.db.model import Key  # noqa
from gcloud_client.db.model import Model  # noqa
from gcloud_client.db.model import Partition  # noqa
from gcloud_client.db.model_db import ModelDB  # noqa
from gcloud_client.db.model_description import ExpandoModelDescription  # noqa
from gcloud_client.db.model_description import ModelDescription  # noqa
from gcloud_client.db.model_description import PolyModelDescription  # noqa
from gcloud_client.db.properties import BlobProperty  # noqa
from gcloud_client.db.properties import BoolProperty  # noqa
from gcloud_client.db.properties import DateTimeProperty  # noqa
from gcloud_client.db.properties import DoubleProperty  # noqa
from gcloud_client.db.properties import IntProperty  # noqa
from gcloud_client.db.properties import ListProperty  # noqa
from gcloud_client.db.properties import ModelKeyProperty  # noqa
from gcloud_client.db.properties import PrimitiveProperty  # noqa
from gcloud_client.db.properties import Property  # noqa
from gcloud_client.db.properties import StringListProperty  # noqa
from gcloud_client.db.properties import StringProperty  # noqa
