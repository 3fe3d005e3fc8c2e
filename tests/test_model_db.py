#!/usr/bin/env python
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

"""
test_model_db
----------------------------------

Tests ModelDB registry and the mapping of models to entities
"""
import datetime
import unittest

from gcloud_client import common
from gcloud_client import datastore
from gcloud_client import errors
from gcloud_client.db import metamodel
from gcloud_client.db import model
from gcloud_client.db import model_db
from gcloud_client.db import model_description
from gcloud_client.db import properties


class Person(model.Model):
    pass


class PersonDescription(model_description.ModelDescription):
    id = properties.IntProperty()
    name = properties.StringProperty(required=True)
    age = properties.IntProperty(property_name='years')
    photo = properties.BlobProperty()
    friends = properties.ListProperty(properties.ModelKeyProperty())


class Animal(model.Model):
    pass


class AnimalDescription(model_description.PolyModelDescription):
    poly_model_name = 'Animal'
    id = properties.IntProperty()
    name = properties.StringProperty()


class Dog(Animal):
    pass


class DogDescription(AnimalDescription):
    poly_model_name = 'Dog'
    bark = properties.StringProperty()


class Event(model.Model):
    pass


class EventDescription(model_description.ModelDescription):
    id = properties.StringProperty()
    start = properties.DateTimeProperty()
    labels = properties.StringListProperty()


class Document(model.ExpandoModel):
    pass


class DocumentDescription(model_description.ExpandoModelDescription):
    id = properties.StringProperty()
    title = properties.StringProperty(property_name='t')


def ds_key(*path, **kwargs):
    elements = [datastore.KeyElement(path[i], path[i + 1])
                for i in range(0, len(path), 2)]
    return datastore.Key(elements, partition=kwargs.get('partition'))


class TestRegistration(unittest.TestCase):

    def test_kind_names(self):
        db = model_db.ModelDB([(Person, PersonDescription)])
        self.assertEqual('Person', db.kind_name(Person))
        self.assertEqual('__namespace__', db.kind_name(metamodel.Namespace))
        self.assertEqual('__kind__', db.kind_name(metamodel.Kind))

    def test_explicit_kind(self):
        db = model_db.ModelDB([(Person, PersonDescription('People'))])
        self.assertEqual('People', db.kind_name(Person))

    def test_without_metamodel(self):
        db = model_db.ModelDB(include_metamodel=False)
        self.assertEqual([], db.model_descriptions)
        self.assertRaises(errors.ModelRegistration, db.kind_name,
                          metamodel.Namespace)

    def test_kind_decorator(self):
        db = model_db.ModelDB()

        @db.kind(PersonDescription())
        class Employee(model.Model):
            pass

        self.assertEqual('Employee', db.kind_name(Employee))
        self.assertIsInstance(db.model_description_for_type(Employee),
                              PersonDescription)

    def test_unregistered(self):
        db = model_db.ModelDB()
        self.assertRaises(errors.ModelRegistration,
                          db.model_description_for_type, Person)

    def test_not_a_model(self):
        db = model_db.ModelDB()
        self.assertRaises(errors.ModelRegistration, db.register, object,
                          PersonDescription())

    def test_not_a_description(self):
        db = model_db.ModelDB()
        self.assertRaises(errors.ModelRegistration, db.register, Person,
                          object())

    def test_expando_needs_expando_model(self):
        db = model_db.ModelDB()
        self.assertRaises(errors.ModelRegistration, db.register, Person,
                          DocumentDescription())

    def test_twice(self):
        db = model_db.ModelDB([(Person, PersonDescription())])
        self.assertRaises(errors.ModelRegistration, db.register, Person,
                          PersonDescription('Other'))

    def test_no_default_constructor(self):
        class NeedsArgs(model.Model):
            def __init__(self, value):
                self.value = value

        db = model_db.ModelDB()
        self.assertRaises(errors.ModelRegistration, db.register, NeedsArgs,
                          PersonDescription())

    def test_optional_constructor_arguments(self):
        class OptionalArgs(model.Model):
            def __init__(self, value=None, *args, **kwargs):
                self.value = value

        db = model_db.ModelDB()
        db.register(OptionalArgs, PersonDescription())

    def test_missing_id(self):
        class NoIdDescription(model_description.ModelDescription):
            name = properties.StringProperty()

        db = model_db.ModelDB()
        self.assertRaises(errors.ModelRegistration, db.register, Person,
                          NoIdDescription())

    def test_wrong_id_type(self):
        class DoubleIdDescription(model_description.ModelDescription):
            id = properties.DoubleProperty()

        db = model_db.ModelDB()
        self.assertRaises(errors.ModelRegistration, db.register, Person,
                          DoubleIdDescription())

    def test_renamed_id(self):
        class RenamedIdDescription(model_description.ModelDescription):
            id = properties.IntProperty(property_name='identifier')

        db = model_db.ModelDB()
        self.assertRaises(errors.ModelRegistration, db.register, Person,
                          RenamedIdDescription())

    def test_duplicate_property_name(self):
        class ClashDescription(model_description.ModelDescription):
            id = properties.IntProperty()
            a = properties.StringProperty(property_name='value')
            b = properties.StringProperty(property_name='value')

        db = model_db.ModelDB()
        self.assertRaises(errors.ModelRegistration, db.register, Person,
                          ClashDescription())

    def test_redefined_field(self):
        class RedefinedDescription(PersonDescription):
            name = properties.StringProperty()

        db = model_db.ModelDB()
        self.assertRaises(errors.ModelRegistration, db.register, Person,
                          RedefinedDescription())

    def test_reserved_names_ignored(self):
        class PrivateDescription(PersonDescription):
            _secret = properties.StringProperty()

        db = model_db.ModelDB([(Person, PrivateDescription())])
        description = db.model_description_for_type(Person)
        self.assertNotIn('_secret', db.properties_for_model(description))

    def test_inherited_fields(self):
        db = model_db.ModelDB([(Person, PersonDescription())])
        description = db.model_description_for_type(Person)
        self.assertEqual({'id', 'name', 'age', 'photo', 'friends'},
                         set(db.properties_for_model(description)))

    def test_duplicate_kind_rolls_back(self):
        class Other(model.Model):
            pass

        db = model_db.ModelDB([(Person, PersonDescription('Shared'))])
        self.assertRaises(errors.ModelRegistration, db.register, Other,
                          PersonDescription('Shared'))
        self.assertRaises(errors.ModelRegistration,
                          db.model_description_for_type, Other)
        self.assertEqual('Shared', db.kind_name(Person))
        # The registry is still usable
        db.register(Other, PersonDescription('Other'))
        self.assertEqual('Other', db.kind_name(Other))


class TestKeys(unittest.TestCase):

    def setUp(self):
        self.db = model_db.ModelDB([(Person, PersonDescription()),
                                    (Document, DocumentDescription())])

    def test_to_datastore_key(self):
        parent = model.Partition().empty_key.append(Person, 1)
        key = parent.append(Document, 'doc')
        self.assertEqual(ds_key('Person', 1, 'Document', 'doc'),
                         self.db.to_datastore_key(key))

    def test_to_datastore_key_namespace(self):
        key = model.Partition('ns').empty_key.append(Person, 1)
        result = self.db.to_datastore_key(key)
        self.assertEqual(datastore.Partition('ns'), result.partition)

    def test_to_datastore_key_incomplete(self):
        key = model.Partition().empty_key.append(Person)
        self.assertFalse(self.db.to_datastore_key(key).is_complete)

    def test_to_datastore_key_wrong_id_type(self):
        key = model.Partition().empty_key.append(Person, 'name')
        self.assertRaises(errors.PropertyValidation,
                          self.db.to_datastore_key, key)
        key = model.Partition().empty_key.append(Document, 1)
        self.assertRaises(errors.PropertyValidation,
                          self.db.to_datastore_key, key)

    def test_to_datastore_key_unregistered(self):
        key = model.Partition().empty_key.append(Animal, 1)
        self.assertRaises(errors.ModelRegistration, self.db.to_datastore_key,
                          key)

    def test_from_datastore_key(self):
        result = self.db.from_datastore_key(
            ds_key('Person', 1, 'Document', 'doc',
                   partition=datastore.Partition('ns')))
        expected = model.Partition('ns').empty_key.append(
            Person, 1).append(Document, 'doc')
        self.assertEqual(expected, result)

    def test_from_datastore_key_unknown_kind(self):
        self.assertRaises(errors.ModelRegistration,
                          self.db.from_datastore_key, ds_key('Unknown', 1))


class TestModelMapping(unittest.TestCase):

    def setUp(self):
        self.db = model_db.ModelDB([(Person, PersonDescription())])

    def _person(self):
        person = Person()
        person.id = 1
        person.name = 'Marta'
        person.age = 32
        person.photo = b'\x89PNG'
        person.friends = [model.Partition().empty_key.append(Person, 2)]
        return person

    def test_to_entity(self):
        entity = self.db.to_datastore_entity(self._person())
        self.assertEqual(ds_key('Person', 1), entity.key)
        self.assertEqual({'name': 'Marta', 'years': 32,
                          'photo': datastore.BlobValue(b'\x89PNG'),
                          'friends': ds_key('Person', 2)},
                         entity.properties)
        self.assertEqual({'photo'}, entity.unindexed_properties)

    def test_round_trip(self):
        person = self.db.from_datastore_entity(
            self.db.to_datastore_entity(self._person()))
        self.assertIsInstance(person, Person)
        self.assertEqual(1, person.id)
        self.assertEqual(model.Partition().empty_key, person.parent_key)
        self.assertEqual('Marta', person.name)
        self.assertEqual(32, person.age)
        self.assertEqual(b'\x89PNG', person.photo)
        self.assertEqual([model.Partition().empty_key.append(Person, 2)],
                         person.friends)

    def test_missing_required(self):
        person = self._person()
        person.name = None
        self.assertRaises(errors.PropertyValidation,
                          self.db.to_datastore_entity, person)

    def test_wrong_type(self):
        person = self._person()
        person.age = '32'
        try:
            self.db.to_datastore_entity(person)
        except errors.PropertyValidation as exc:
            self.assertEqual('age', exc.property_name)
        else:
            self.fail('PropertyValidation not raised')

    def test_list_missing(self):
        person = self._person()
        del person.friends
        self.assertRaises(errors.PropertyValidation,
                          self.db.to_datastore_entity, person)

    def test_decode_missing_required(self):
        entity = datastore.Entity(ds_key('Person', 1), {'years': 3})
        self.assertRaises(errors.PropertyValidation,
                          self.db.from_datastore_entity, entity)

    def test_decode_wrong_type(self):
        entity = datastore.Entity(ds_key('Person', 1),
                                  {'name': 'Marta', 'years': 'old'})
        self.assertRaises(errors.PropertyValidation,
                          self.db.from_datastore_entity, entity)

    def test_decode_none(self):
        self.assertIsNone(self.db.from_datastore_entity(None))

    def test_decode_unknown_properties_ignored(self):
        entity = datastore.Entity(ds_key('Person', 1),
                                  {'name': 'Marta', 'other': 1})
        person = self.db.from_datastore_entity(entity)
        self.assertEqual([], person.friends)
        self.assertFalse(hasattr(person, 'other'))

    def test_field_name_to_property_name(self):
        self.assertEqual('years',
                         self.db.field_name_to_property_name('Person', 'age'))
        self.assertIsNone(self.db.field_name_to_property_name('Person',
                                                              'unknown'))


class TestPolyModel(unittest.TestCase):

    def setUp(self):
        self.db = model_db.ModelDB([(Animal, AnimalDescription()),
                                    (Dog, DogDescription())])

    def test_kind_of_hierarchy(self):
        self.assertEqual('Animal', self.db.kind_name(Animal))
        self.assertEqual('Animal', self.db.kind_name(Dog))

    def test_encode_root(self):
        animal = Animal()
        animal.id = 1
        animal.name = 'generic'
        entity = self.db.to_datastore_entity(animal)
        self.assertEqual(ds_key('Animal', 1), entity.key)
        self.assertEqual({'name': 'generic', 'class': 'Animal'},
                         entity.properties)

    def test_encode_leaf(self):
        dog = Dog()
        dog.id = 2
        dog.name = 'Rex'
        dog.bark = 'woof'
        entity = self.db.to_datastore_entity(dog)
        self.assertEqual(ds_key('Animal', 2), entity.key)
        self.assertEqual({'name': 'Rex', 'bark': 'woof',
                          'class': ['Animal', 'Dog']}, entity.properties)

    def test_decode_dispatches_on_class(self):
        entity = datastore.Entity(ds_key('Animal', 2),
                                  {'name': 'Rex', 'bark': 'woof',
                                   'class': ['Animal', 'Dog']})
        dog = self.db.from_datastore_entity(entity)
        self.assertIs(Dog, type(dog))
        self.assertEqual('woof', dog.bark)
        self.assertEqual(2, dog.id)

        entity = datastore.Entity(ds_key('Animal', 1),
                                  {'name': 'generic', 'class': 'Animal'})
        self.assertIs(Animal, type(self.db.from_datastore_entity(entity)))

    def test_decode_unknown_class(self):
        entity = datastore.Entity(ds_key('Animal', 2),
                                  {'class': ['Animal', 'Cat']})
        self.assertRaises(errors.ModelRegistration,
                          self.db.from_datastore_entity, entity)

    def test_poly_model_name_defaults_to_class_name(self):
        class RootDescription(model_description.PolyModelDescription):
            id = properties.IntProperty()

        class LeafDescription(RootDescription):
            pass

        class Root(model.Model):
            pass

        class Leaf(Root):
            pass

        db = model_db.ModelDB([(Root, RootDescription()),
                               (Leaf, LeafDescription())])
        self.assertEqual('RootDescription', db.kind_name(Leaf))
        self.assertEqual(['RootDescription', 'LeafDescription'],
                         db.model_description_for_type(Leaf).poly_classes(db))

    def test_two_roots_same_name(self):
        class OtherAnimal(model.Model):
            pass

        self.assertRaises(errors.ModelRegistration, self.db.register,
                          OtherAnimal, AnimalDescription())


class TestExpandoModel(unittest.TestCase):

    def setUp(self):
        self.db = model_db.ModelDB([(Document, DocumentDescription())])

    def test_encode_additional_properties(self):
        doc = Document()
        doc.id = 'doc'
        doc.title = 'Title'
        doc.additional_properties.update({'pages': 3, 'title': 'skipped',
                                          't': 'skipped'})
        entity = self.db.to_datastore_entity(doc)
        self.assertEqual({'t': 'Title', 'pages': 3}, entity.properties)

    def test_decode_additional_properties(self):
        entity = datastore.Entity(ds_key('Document', 'doc'),
                                  {'t': 'Title', 'pages': 3,
                                   'title': 'skipped'})
        doc = self.db.from_datastore_entity(entity)
        self.assertEqual('Title', doc.title)
        self.assertEqual({'pages': 3}, doc.additional_properties)
        self.assertEqual(3, doc.pages)
        self.assertRaises(AttributeError, getattr, doc, 'missing')

    def test_field_names_fall_back(self):
        self.assertEqual('t', self.db.field_name_to_property_name(
            'Document', 'title'))
        self.assertEqual('pages', self.db.field_name_to_property_name(
            'Document', 'pages'))


class TestMetamodel(unittest.TestCase):

    def setUp(self):
        self.db = model_db.ModelDB()

    def test_namespace(self):
        entity = datastore.Entity(ds_key('__namespace__', 1), {})
        namespace = self.db.from_datastore_entity(entity)
        self.assertIsInstance(namespace, metamodel.Namespace)
        self.assertIsNone(namespace.name)

    def test_kind(self):
        entity = datastore.Entity(ds_key('__kind__', 'Person'), {})
        kind = self.db.from_datastore_entity(entity)
        self.assertIsInstance(kind, metamodel.Kind)
        self.assertEqual('Person', kind.name)


class TestEntityRoundTrip(unittest.TestCase):
    """Decoding an entity and encoding the model gives the same entity."""

    def setUp(self):
        self.db = model_db.ModelDB([(Person, PersonDescription()),
                                    (Animal, AnimalDescription()),
                                    (Dog, DogDescription()),
                                    (Event, EventDescription()),
                                    (Document, DocumentDescription())])

    def assertRoundTrip(self, entity):
        self.assertEqual(entity, self.db.to_datastore_entity(
            self.db.from_datastore_entity(entity)))

    def test_plain(self):
        self.assertRoundTrip(datastore.Entity(
            ds_key('Person', 1),
            {'name': 'Marta', 'years': 32,
             'photo': datastore.BlobValue(b'\x89PNG'),
             'friends': [ds_key('Person', 2), ds_key('Person', 3)]},
            unindexed_properties=['photo']))

    def test_namespace(self):
        partition = datastore.Partition('ns')
        self.assertRoundTrip(datastore.Entity(
            ds_key('Person', 1, partition=partition),
            {'name': 'Marta', 'years': None, 'photo': None,
             'friends': ds_key('Person', 2, partition=partition)},
            unindexed_properties=['photo']))

    def test_poly_leaf(self):
        self.assertRoundTrip(datastore.Entity(
            ds_key('Animal', 2),
            {'name': 'Rex', 'bark': 'woof', 'class': ['Animal', 'Dog']}))

    def test_poly_root(self):
        self.assertRoundTrip(datastore.Entity(
            ds_key('Animal', 1), {'name': 'generic', 'class': 'Animal'}))

    def test_datetime_and_string_list(self):
        start = datetime.datetime(2015, 10, 5, 13, 4, 5, 123456,
                                  tzinfo=common.UTC)
        self.assertRoundTrip(datastore.Entity(
            ds_key('Event', 'launch'),
            {'start': start, 'labels': ['a', 'b', 'c']}))

    def test_expando(self):
        self.assertRoundTrip(datastore.Entity(
            ds_key('Document', 'doc'),
            {'t': 'Title', 'pages': 3, 'authors': ['Ana', 'Jon']}))
