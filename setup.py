#!/usr/bin/env python
# -*- coding: utf-8 -*-


from setuptools import setup


with open('README.rst') as readme_file:
    readme = readme_file.read()

with open('HISTORY.rst') as history_file:
    history = history_file.read().replace('.. :changelog:', '')

requirements = [
    'oauth2client',
    'requests[security]'
]

test_requirements = [
    'flake8',
    'tox',
    'coverage',
    'mock',
    'pytest',
]


setup(
    name='gcloud-client',
    version='0.1.0',
    description="Google Cloud Datastore, Storage and Pub/Sub Python client",
    long_description=readme + '\n\n' + history,
    author="Gorka Eguileor",
    author_email='gorka@eguileor.com',
    url='https://github.com/Akrog/gcloud-client',
    packages=[
        'gcloud_client',
        'gcloud_client.db',
    ],
    package_dir={'gcloud_client': 'gcloud_client', },
    include_package_data=True,
    install_requires=requirements,
    extras_require={'test': test_requirements},
    license="Apache License 2.0",
    zip_safe=False,
    keywords='gcloud-client datastore storage pubsub',
    classifiers=[
        'Development Status :: 2 - Pre-Alpha',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: Apache Software License',
        'Natural Language :: English',
        'Programming Language :: Python :: 3',
    ],
    test_suite='tests',
    tests_require=test_requirements
)
