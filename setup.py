#! /usr/bin/env python
"""
setup.py for lllcell
"""

# System imports
import io
from os import path
from setuptools import setup, find_packages

PACKAGES = find_packages(exclude=['tests*'])

# versioning

THIS_DIRECTORY = path.abspath(path.dirname(__file__))

VERSION_INFO = {}
with io.open(path.join(THIS_DIRECTORY, 'lllcell', 'version.py')) as f:
    exec(f.read(), VERSION_INFO)
VERSION = VERSION_INFO['__version__']

with io.open(path.join(THIS_DIRECTORY, 'README.md')) as f:
    LONG_DESCRIPTION = f.read()

INFO = {
        'name': 'lllcell',
        'description': 'LLL basis reduction and minimum-image distances '
                       'for periodic crystal cells.',
        'packages': PACKAGES,
        'include_package_data': True,
        'python_requires': '>=3.10',
        'install_requires': ['numpy', 'numba', 'ase', 'pymatgen'],
        'extras_require': {'test': ['pytest']},
        'version': VERSION,
        'license': 'MIT',
        'long_description': LONG_DESCRIPTION,
        'long_description_content_type': 'text/markdown',
        'classifiers': ['Development Status :: 4 - Beta',
                        'Intended Audience :: Science/Research',
                        'License :: OSI Approved :: MIT License',
                        'Natural Language :: English',
                        'Operating System :: OS Independent',
                        'Programming Language :: Python :: 3.10',
                        'Topic :: Scientific/Engineering',
                        'Topic :: Scientific/Engineering :: Physics']
        }

####################################################################
# this is where setup starts
####################################################################


def setup_package():
    """
    Runs package setup
    """
    setup(**INFO)


if __name__ == '__main__':
    setup_package()
