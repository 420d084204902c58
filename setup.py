#!/usr/bin/env python
from setuptools import setup
setup(
    name='cloudobjects',
    version='1.0',
    description='a client for a hosted object storage and user account backend',
    author='Six Apart Ltd.',
    author_email='python@sixapart.com',

    packages=['cloudobjects'],
    provides=['cloudobjects'],
    python_requires='>=3.7',
    install_requires=[
        'simplejson>=2.0.0',
        'httplib2>=0.4.0',
        'httpx>=0.23',
    ],
    extras_require={
        'test': ['mock', 'pytest'],
    },
)
