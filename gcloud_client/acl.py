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

"""Cloud Storage access control lists."""


class PredefinedAcl(object):
    """Predefined ACLs for buckets and objects."""

    #: Project team owners get OWNER access, and allAuthenticatedUsers get
    #: READER access.
    AUTHENTICATED_READ = 'authenticatedRead'

    #: Project team owners get OWNER access.
    PRIVATE = 'private'

    #: Project team members get access according to their roles.
    PROJECT_PRIVATE = 'projectPrivate'

    #: Project team owners get OWNER access, and allUsers get READER access.
    PUBLIC_READ = 'publicRead'

    #: Project team owners get OWNER access, and allUsers get WRITER access.
    #: Only valid for buckets.
    PUBLIC_READ_WRITE = 'publicReadWrite'

    #: Object owner gets OWNER access, and project team owners get OWNER
    #: access.  Only valid for objects.
    BUCKET_OWNER_FULL_CONTROL = 'bucketOwnerFullControl'

    #: Object owner gets OWNER access, and project team owners get READER
    #: access.  Only valid for objects.
    BUCKET_OWNER_READ = 'bucketOwnerRead'


class AclPermission(object):
    """Permission granted by an ACL entry.  Values are Storage roles."""

    READ = 'READER'
    WRITE = 'WRITER'
    FULL_CONTROL = 'OWNER'


class AclScope(object):
    """Who an ACL entry applies to.

    :ivar id: Email, domain, project team or opaque entity id of the scope.
    """

    _prefix = None

    def __init__(self, id):
        self.id = id

    @property
    def storage_entity(self):
        """The entity string used by the Storage API."""
        return self._prefix + self.id

    def __eq__(self, other):
        return (type(self) is type(other) and
                self.storage_entity == other.storage_entity)

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash(self.storage_entity)

    def __repr__(self):
        return '%s(%r)' % (self.__class__.__name__, self.id)


class AccountScope(AclScope):
    """Google account identified by its email."""
    _prefix = 'user-'


class GroupScope(AclScope):
    """Google group identified by its email."""
    _prefix = 'group-'


class DomainScope(AclScope):
    """Google Apps domain."""
    _prefix = 'domain-'


class ProjectScope(AclScope):
    """Project team role, for example 'owners-123456789'."""
    _prefix = 'project-'


class OpaqueScope(AclScope):
    """Entity string not matching any other scope."""
    _prefix = ''


class _SingletonScope(AclScope):
    _entity = None

    def __init__(self):
        super(_SingletonScope, self).__init__(None)

    @property
    def storage_entity(self):
        return self._entity

    def __repr__(self):
        return '%s()' % self.__class__.__name__


class AllAuthenticatedScope(_SingletonScope):
    _entity = 'allAuthenticatedUsers'


class AllUsersScope(_SingletonScope):
    _entity = 'allUsers'


_PREFIXED_SCOPES = (AccountScope, GroupScope, DomainScope, ProjectScope)
_SINGLETON_SCOPES = (AllAuthenticatedScope, AllUsersScope)


def scope_from_entity(entity):
    """Build the scope for a Storage API entity string."""
    for scope_class in _SINGLETON_SCOPES:
        if entity == scope_class._entity:
            return scope_class()
    for scope_class in _PREFIXED_SCOPES:
        if entity.startswith(scope_class._prefix):
            return scope_class(entity[len(scope_class._prefix):])
    return OpaqueScope(entity)


class AclEntry(object):
    def __init__(self, scope, permission):
        self.scope = scope
        self.permission = permission

    def to_json(self):
        return {'entity': self.scope.storage_entity, 'role': self.permission}

    @classmethod
    def from_json(cls, data):
        return cls(scope_from_entity(data['entity']), data['role'])

    def __eq__(self, other):
        return (isinstance(other, AclEntry) and self.scope == other.scope and
                self.permission == other.permission)

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash((self.scope, self.permission))

    def __repr__(self):
        return 'AclEntry(%r, %r)' % (self.scope, self.permission)


class Acl(object):
    """Access control list: an ordered list of AclEntry."""

    def __init__(self, entries):
        self.entries = list(entries)

    def to_json(self):
        return [entry.to_json() for entry in self.entries]

    @classmethod
    def from_json(cls, data):
        return cls(AclEntry.from_json(entry) for entry in data or ())

    def __eq__(self, other):
        return isinstance(other, Acl) and self.entries == other.entries

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash(tuple(self.entries))

    def __repr__(self):
        return 'Acl(%r)' % self.entries
