from setuptools import setup

setup(
    name='libirc',
    version='0.1.0',
    packages=[
        'libirc',
        'libirc.utils'
    ],
    python_requires='>=3.10',
    install_requires=[],
    extras_require={
        'docs': 'sphinx_rtd_theme',    # the Sphinx theme we use
        'tests': ['pytest', 'pytest-asyncio'],  # collect and run tests
        'coverage': 'pytest-cov'       # get test case coverage
    },
    entry_points={
        'console_scripts': [
            'libirc = libirc.utils.run:main'
        ]
    },

    keywords='irc client library python3 asyncio',
    description='A small IRC client engine that tracks registration, channels, topics and members.',
    license='BSD',

    zip_safe=True,
    test_suite='tests'
)
