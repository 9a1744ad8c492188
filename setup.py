#!/usr/bin/env python3

# python setup.py sdist --format=zip,gztar

import sys
import importlib.util

from setuptools import setup

MIN_PYTHON_VERSION = "3.8.0"
_min_python_version_tuple = tuple(map(int, (MIN_PYTHON_VERSION.split("."))))


if sys.version_info[:3] < _min_python_version_tuple:
    sys.exit("Error: identity-wizard requires Python version >= %s..." % MIN_PYTHON_VERSION)

with open('contrib/requirements/requirements.txt') as f:
    requirements = f.read().splitlines()

with open('contrib/requirements/requirements-crypto.txt') as f:
    requirements_crypto = f.read().splitlines()

with open('contrib/requirements/requirements-test.txt') as f:
    requirements_test = f.read().splitlines()

# load version.py; needlessly complicated alternative to "imp.load_source":
version_spec = importlib.util.spec_from_file_location('version', 'identity_wizard/version.py')
version_module = version = importlib.util.module_from_spec(version_spec)
version_spec.loader.exec_module(version_module)

extras_require = {
    # AES backend. pycryptodomex works as well.
    'crypto': requirements_crypto,
    'tests': requirements_test,
}
# 'full' extra that tries to grab everything an enduser would need
extras_require['full'] = [pkg for sublist in
                          (extras_require['crypto'],)
                          for pkg in sublist]


setup(
    name="identity-wizard",
    version=version.IDENTITY_WIZARD_VERSION,
    python_requires='>={}'.format(MIN_PYTHON_VERSION),
    # an AES backend is mandatory; cryptography is the default one
    install_requires=requirements + requirements_crypto,
    extras_require=extras_require,
    packages=['identity_wizard', 'identity_wizard.gui'],
    package_dir={
        'identity_wizard': 'identity_wizard'
    },
    package_data={
        'identity_wizard': ['locale/*/LC_MESSAGES/*.mo'],
    },
    include_package_data=True,
    scripts=['run_identity_wizard'],
    description="Onboarding wizard for a self-sovereign identity keychain",
    author="The identity-wizard developers",
    license="MIT Licence",
    long_description="""Onboarding wizard for a self-sovereign identity keychain""",
)
