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

import inspect
import logging

from gcloud_client import datastore
from gcloud_client import errors
from gcloud_client.db import metamodel
from gcloud_client.db import model
from gcloud_client.db import model_description
from gcloud_client.db import properties


LOG = logging.getLogger(__name__)

_REQUIRED_PARAMETER_KINDS = (inspect.Parameter.POSITIONAL_ONLY,
                             inspect.Parameter.POSITIONAL_OR_KEYWORD,
                             inspect.Parameter.KEYWORD_ONLY)


class ModelDB(object):
    """Registry of model classes and their descriptions.

    Maps models to Datastore entities and back.  Registries are created
    explicitly and passed around:

        model_db = ModelDB([(Person, PersonDescription())])

        @model_db.kind(UserDescription())
        class User(Person):
            pass

    The Namespace and Kind metadata models are registered unless
    include_metamodel is False.
    """

    def __init__(self, models=(), include_metamodel=True):
        """Initialize the registry.

        :param models: Pairs of model class and description to register.
        :type models: Iterable of tuples
        :param include_metamodel: Whether to register metadata models.
        :type include_metamodel: bool
        """
        self._descriptions = []
        self._description_by_type = {}
        self._model_classes = {}
        self._properties = {}
        self._states = {}
        self._description_by_kind = {}

        if include_metamodel:
            models = list(metamodel.MODELS) + list(models)
        for model_class, description in models:
            self.register(model_class, description)

    def register(self, model_class, description):
        """Register a model class with its description.

        :param model_class: Model class, constructible without arguments.
        :type model_class: Model subclass
        :param description: Schema of the model.  A description class will be
                            instantiated.
        :type description: ModelDescription
        :raises: errors.ModelRegistration
        """
        if isinstance(description, type):
            description = description()

        if not isinstance(description, model_description.ModelDescription):
            raise errors.ModelRegistration(
                'Description of %s is not a ModelDescription' %
                model_class.__name__)
        if not (isinstance(model_class, type) and
                issubclass(model_class, model.Model)):
            raise errors.ModelRegistration('%r is not a Model class' %
                                           model_class)
        if (isinstance(description,
                       model_description.ExpandoModelDescription) and
                not issubclass(model_class, model.ExpandoModel)):
            raise errors.ModelRegistration(
                'Class %s must be an ExpandoModel' % model_class.__name__)
        if model_class in self._description_by_type:
            raise errors.ModelRegistration('Class %s is already registered' %
                                           model_class.__name__)
        _check_default_constructor(model_class)
        props = _properties_from_description(description)

        self._descriptions.append(description)
        self._description_by_type[model_class] = description
        self._model_classes[description] = model_class
        self._properties[description] = props
        try:
            self._initialize()
        except errors.ModelRegistration:
            self._descriptions.pop()
            del self._description_by_type[model_class]
            del self._model_classes[description]
            del self._properties[description]
            self._initialize()
            raise
        LOG.debug('Registered model %s with kind %s', model_class.__name__,
                  description.kind_name(self))

    def kind(self, description):
        """Class decorator registering the decorated model class."""
        def decorator(model_class):
            self.register(model_class, description)
            return model_class
        return decorator

    def _initialize(self):
        # Descriptions' state depends on the whole registry
        self._states = {}
        for description in self._descriptions:
            self._states[description] = description.initialize(self)

        by_kind = {}
        for description in self._descriptions:
            if description.register_kind(self):
                kind = description.kind_name(self)
                if kind in by_kind:
                    raise errors.ModelRegistration(
                        'Cannot have two ModelDescriptions with the same '
                        'kind (%s)' % kind)
                by_kind[kind] = description
        self._description_by_kind = by_kind

    @property
    def model_descriptions(self):
        return list(self._descriptions)

    def properties_for_model(self, description):
        return self._properties[description]

    def model_description_for_type(self, model_class):
        description = self._description_by_type.get(model_class)
        if description is None:
            raise errors.ModelRegistration('Class %s is not registered' %
                                           getattr(model_class, '__name__',
                                                   model_class))
        return description

    def model_class(self, description):
        return self._model_classes[description]

    def description_state(self, description):
        return self._states[description]

    def kind_name(self, model_class):
        return self.model_description_for_type(model_class).kind_name(self)

    def field_name_to_property_name(self, kind, field_name):
        return self._description_for_kind(kind).field_name_to_property_name(
            self, field_name)

    def _description_for_kind(self, kind):
        description = self._description_by_kind.get(kind)
        if description is None:
            raise errors.ModelRegistration(
                'No model class registered for kind %s' % kind)
        return description

    def from_datastore_key(self, datastore_key):
        """Convert a datastore.Key to a db Key."""
        key = model.Partition(datastore_key.partition.namespace).empty_key
        for element in datastore_key.elements:
            description = self._description_for_kind(element.kind)
            key = key.append(self._model_classes[description], element.id)
        return key

    def to_datastore_key(self, key):
        """Convert a db Key to a datastore.Key."""
        elements = []
        current = key
        while not current.is_empty:
            description = self.model_description_for_type(current.type)
            id_property = self._properties[description][
                model_description.ID_FIELDNAME]
            id = current.id
            if id is not None and not id_property.validate(self, id):
                raise errors.PropertyValidation(
                    'Expected an id of type %s but id was of type %s' %
                    (id_property.types.__name__, type(id).__name__),
                    property_name=model_description.ID_FIELDNAME,
                    kind=description.kind_name(self))
            elements.append(datastore.KeyElement(description.kind_name(self),
                                                 id))
            current = current.parent

        namespace = current.partition.namespace
        partition = (datastore.Partition(namespace) if namespace
                     else datastore.Partition.DEFAULT)
        return datastore.Key(list(reversed(elements)), partition=partition)

    def to_datastore_entity(self, model_instance):
        """Convert a model to a datastore.Entity.

        :raises: errors.PropertyValidation
        """
        description = self.model_description_for_type(type(model_instance))
        return description.encode_model(self, model_instance)

    def from_datastore_entity(self, entity):
        """Convert a datastore.Entity to a model instance.

        :raises: errors.PropertyValidation, errors.ModelRegistration
        """
        if entity is None:
            return None
        key = self.from_datastore_key(entity.key)
        description = self._description_for_kind(entity.key.elements[-1].kind)
        return description.decode_entity(self, key, entity)


def _check_default_constructor(model_class):
    try:
        signature = inspect.signature(model_class)
    except (TypeError, ValueError):
        return
    for parameter in signature.parameters.values():
        if (parameter.kind in _REQUIRED_PARAMETER_KINDS and
                parameter.default is inspect.Parameter.empty):
            raise errors.ModelRegistration(
                'Class %s does not have a default constructor.' %
                model_class.__name__)


def _properties_from_description(description):
    """Collect the Property attributes of the description class hierarchy."""
    props = {}
    property_names = set()
    for klass in type(description).__mro__:
        for field_name, value in vars(klass).items():
            if field_name.startswith('_') or not isinstance(
                    value, properties.Property):
                continue
            if field_name in props:
                raise errors.ModelRegistration(
                    'Cannot have two Property objects describing the same '
                    'Model property name (%s) in a ModelDescription class '
                    'hierarchy.' % field_name)
            property_name = value.property_name or field_name
            if property_name in property_names:
                raise errors.ModelRegistration(
                    'Cannot have two Property objects mapping to the same '
                    'datastore property name (%s).' % property_name)
            props[field_name] = value
            property_names.add(property_name)

    id_property = props.get(model_description.ID_FIELDNAME)
    if not isinstance(id_property, (properties.IntProperty,
                                    properties.StringProperty)):
        raise errors.ModelRegistration(
            'You need to have an id property and it has to be either an '
            'IntProperty or a StringProperty.')
    if id_property.property_name is not None:
        raise errors.ModelRegistration(
            'You can not have a new name for the id property.')
    return props
