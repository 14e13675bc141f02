""" Installation script for the pgdesc package.
"""

from setuptools import setup, find_packages
import re
import io

__version__ = re.search(
    r'__version__\s*=\s*[\'"]([^\'"]*)[\'"]',
    io.open('pgdesc/core/__init__.py', encoding='utf_8_sig').read()
    ).group(1)


def get_readme_contents():
    with io.open('README.md') as readme_file:
        return readme_file.read()


setup(
    name='pgdesc',
    description='Metadata-driven PostgreSQL table models, SQL synthesis and catalog introspection.',
    long_description=get_readme_contents(),
    long_description_content_type='text/markdown',
    version=__version__,
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={
        'pgdesc.core': ['schemas/*.schema.json']
    },
    python_requires='>=3.10, <4',
    entry_points={
        'console_scripts': [
            'pgdesc-catalog-cli = pgdesc.core.catalog_cli:main'
        ]
    },
    install_requires=[
        'packaging',
        'portalocker>=1.2.1',
        'jsonschema>=3.1',
        'SQLAlchemy>=2.0',
        'python-dateutil'
    ],
    extras_require={
        'postgres': ['psycopg[binary]>=3.1'],
        'test': ['pytest']
    },
    license='Apache 2.0',
    classifiers=[
        'Intended Audience :: Developers',
        'License :: OSI Approved :: Apache Software License',
        'Operating System :: POSIX',
        'Operating System :: MacOS :: MacOS X',
        'Operating System :: Microsoft :: Windows',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: Database'
    ]
)
