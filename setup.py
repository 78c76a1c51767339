#!/usr/bin/env python3

import os
import setuptools
import codechecker_dynamic_parser

curr_dir = os.path.dirname(os.path.realpath(__file__))

description = """
CodeChecker Dynamic Parser converts the output of compilers and other tools
into issues by using user defined regular expressions and mapping expressions.
A parser can be validated against an example text before it is used on real
logs.
"""


def get_requirements(req_file_name):
    """ Get install requirements. """
    with open(os.path.join(curr_dir, req_file_name), 'r',
              encoding='utf-8') as f:
        return [s for s in [line.split('#', 1)[0].strip(' \t\n')
                            for line in f] if s]


setuptools.setup(
    name="codechecker-dynamic-parser",
    version=codechecker_dynamic_parser.__version__,
    author='CodeChecker Team (Ericsson)',
    description="Parse log outputs by user defined regular expressions",
    long_description=description,
    long_description_content_type="text/markdown",
    url="https://github.com/Ericsson/CodeChecker",
    keywords=['codechecker', 'log-parser', 'warnings', 'static-analysis'],
    license='LICENSE.txt',
    packages=setuptools.find_packages(
        include=['codechecker_dynamic_parser*']),
    classifiers=[
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Operating System :: MacOS",
        "Operating System :: POSIX",
        "Programming Language :: Python :: 3"
    ],
    python_requires='>=3.9',
    install_requires=get_requirements('requirements.txt'),
    extras_require={
        'test': get_requirements('requirements_test.txt')
    },
    entry_points={
        'console_scripts': [
            'dynamic-parser = codechecker_dynamic_parser.cli:main'
        ]
    },
)
