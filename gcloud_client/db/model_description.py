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

from gcloud_client import datastore
from gcloud_client import errors
from gcloud_client.db import properties


ID_FIELDNAME = 'id'

# Synthetic property holding the class path of polymorphic models
CLASS_PROPERTY = properties.StringListProperty(property_name='class')


class ModelDescription(object):
    """Schema of a model class.

    Fields are declared as Property class attributes, for example:

        class PersonDescription(ModelDescription):
            id = IntProperty()
            name = StringProperty(required=True)
            age = IntProperty(property_name='years')

    Attributes are collected from the whole class hierarchy of the
    description.  Names starting with an underscore are reserved and ignored.
    The kind defaults to the name of the model class.
    """

    def __init__(self, kind=None):
        self._kind = kind

    def initialize(self, model_db):
        """Compute the state the description needs from the registry."""
        property_to_field = {}
        field_to_property = {}
        indexed = set()
        unindexed = set()

        for field_name, prop in model_db.properties_for_model(self).items():
            if field_name == ID_FIELDNAME:
                continue
            property_name = prop.property_name or field_name
            property_to_field[property_name] = field_name
            field_to_property[field_name] = property_name
            if prop.indexed:
                indexed.add(property_name)
            else:
                unindexed.add(property_name)

        return {'property_to_field': property_to_field,
                'field_to_property': field_to_property,
                'indexed': indexed,
                'unindexed': unindexed}

    def register_kind(self, model_db):
        return True

    def kind_name(self, model_db):
        return self._kind or model_db.model_class(self).__name__

    def encode_model(self, model_db, model):
        state = model_db.description_state(self)
        key = model_db.to_datastore_key(model.key)
        props = {}
        for field_name, prop in model_db.properties_for_model(self).items():
            if field_name == ID_FIELDNAME:
                continue
            value = getattr(model, field_name, None)
            if not prop.validate(model_db, value):
                raise errors.PropertyValidation(
                    'Property validation failed for property %s while trying '
                    'to serialize entity of kind %s.' %
                    (field_name, type(model).__name__),
                    property_name=field_name, kind=type(model).__name__)
            props[prop.property_name or field_name] = prop.encode_value(
                model_db, value)
        return datastore.Entity(key, props,
                                unindexed_properties=state['unindexed'])

    def decode_entity(self, model_db, key, entity):
        if entity is None:
            return None
        model = model_db.model_class(self)()
        model.id = key.id
        model.parent_key = key.parent
        for field_name, prop in model_db.properties_for_model(self).items():
            self._decode_property(model_db, entity, model, field_name, prop)
        return model

    def _decode_property(self, model_db, entity, model, field_name, prop):
        if field_name == ID_FIELDNAME:
            return
        property_name = self.field_name_to_property_name(model_db,
                                                         field_name)
        value = prop.decode_primitive_value(
            model_db, entity.properties.get(property_name))
        if not prop.validate(model_db, value):
            kind = entity.key.elements[-1].kind
            raise errors.PropertyValidation(
                'Property validation failed while trying to deserialize '
                'entity of kind %s (property name: %s).' % (kind,
                                                            property_name),
                property_name=field_name, kind=kind)
        setattr(model, field_name, value)

    def finish_query(self, model_db, query):
        return query

    def field_name_to_property_name(self, model_db, field_name):
        state = model_db.description_state(self)
        return state['field_to_property'].get(field_name)

    def property_name_to_field_name(self, model_db, property_name):
        state = model_db.description_state(self)
        return state['property_to_field'].get(property_name)

    def encode_field(self, model_db, field_name, value):
        """Encode a value of a field for use in query filters."""
        prop = model_db.properties_for_model(self).get(field_name)
        if prop is None:
            return None
        # Filters on list properties compare against single elements
        if (isinstance(prop, properties.ListProperty) and
                not isinstance(value, list)):
            prop = prop.sub_property
        return prop.encode_value(model_db, value)


class PolyModelDescription(ModelDescription):
    """Description of a polymorphic model hierarchy stored in one kind.

    Each description class in the hierarchy names its model class with
    poly_model_name (the name of the description class by default).  The
    kind is the name of the root of the hierarchy, and every entity stores
    the path of names from the root to its concrete class in the synthetic
    'class' list property.
    """

    poly_model_name = None

    def initialize(self, model_db):
        state = super(PolyModelDescription, self).initialize(model_db)
        state['poly_classes'] = self._compute_poly_classes()
        # Map of class path to description, shared by the whole hierarchy
        state['descriptions_by_class_path'] = dict(
            (_class_path_string(description._compute_poly_classes()),
             description)
            for description in model_db.model_descriptions
            if isinstance(description, PolyModelDescription))
        return state

    def _compute_poly_classes(self):
        classes = []
        for klass in type(self).__mro__:
            if klass is PolyModelDescription:
                break
            if issubclass(klass, PolyModelDescription):
                classes.append(klass.__dict__.get('poly_model_name') or
                               klass.__name__)
        return list(reversed(classes))

    def poly_classes(self, model_db):
        return model_db.description_state(self)['poly_classes']

    def register_kind(self, model_db):
        # Only the root of the hierarchy registers the kind
        return len(self.poly_classes(model_db)) == 1

    def kind_name(self, model_db):
        return self.poly_classes(model_db)[0]

    def encode_model(self, model_db, model):
        entity = super(PolyModelDescription, self).encode_model(model_db,
                                                                model)
        entity.properties[CLASS_PROPERTY.property_name] = (
            CLASS_PROPERTY.encode_value(model_db,
                                        self.poly_classes(model_db)))
        return entity

    def decode_entity(self, model_db, key, entity):
        if entity is None:
            return None
        state = model_db.description_state(self)
        classes = CLASS_PROPERTY.decode_primitive_value(
            model_db, entity.properties.get(CLASS_PROPERTY.property_name))
        leaf = state['descriptions_by_class_path'].get(
            _class_path_string(classes))
        if leaf is None:
            raise errors.ModelRegistration(
                'Could not get ModelDescription for %s' % ' '.join(classes))
        return ModelDescription.decode_entity(leaf, model_db, key, entity)

    def finish_query(self, model_db, query):
        classes = self.poly_classes(model_db)
        if len(classes) > 1:
            query.filter('class IN', [classes[-1]])
        return query

    def field_name_to_property_name(self, model_db, field_name):
        if field_name == CLASS_PROPERTY.property_name:
            return field_name
        return super(PolyModelDescription, self).field_name_to_property_name(
            model_db, field_name)

    def encode_field(self, model_db, field_name, value):
        if field_name == CLASS_PROPERTY.property_name:
            return value
        return super(PolyModelDescription, self).encode_field(
            model_db, field_name, value)


def _class_path_string(classes):
    # Class names never contain new lines
    return '\n'.join(classes)


class ExpandoModelDescription(ModelDescription):
    """Description of ExpandoModel classes.

    Additional properties are stored as they are, and always indexed.  Those
    whose names clash with a described field or property name are skipped
    both when writing and when reading.
    """

    def initialize(self, model_db):
        state = super(ExpandoModelDescription, self).initialize(model_db)
        state['used_names'] = (set(state['field_to_property']) |
                               set(state['property_to_field']))
        return state

    def encode_model(self, model_db, model):
        used_names = model_db.description_state(self)['used_names']
        entity = super(ExpandoModelDescription, self).encode_model(model_db,
                                                                   model)
        for name, value in model.additional_properties.items():
            if name not in used_names:
                entity.properties[name] = value
        return entity

    def decode_entity(self, model_db, key, entity):
        if entity is None:
            return None
        used_names = model_db.description_state(self)['used_names']
        model = super(ExpandoModelDescription, self).decode_entity(
            model_db, key, entity)
        for name, value in entity.properties.items():
            if name not in used_names:
                model.additional_properties[name] = value
        return model

    def field_name_to_property_name(self, model_db, field_name):
        property_name = super(ExpandoModelDescription,
                              self).field_name_to_property_name(model_db,
                                                                field_name)
        return field_name if property_name is None else property_name

    def property_name_to_field_name(self, model_db, property_name):
        field_name = super(ExpandoModelDescription,
                           self).property_name_to_field_name(model_db,
                                                             property_name)
        return property_name if field_name is None else field_name

    def encode_field(self, model_db, field_name, value):
        encoded = super(ExpandoModelDescription, self).encode_field(
            model_db, field_name, value)
        return value if encoded is None else encoded
