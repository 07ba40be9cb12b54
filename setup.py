#!/usr/bin/env python

from setuptools import setup

setup(
    name="simple-elastic",
    version="1.0.0",
    description="Lightweight Elasticsearch client with a streaming JSON flattening decoder",
    packages=["simple_elastic"],
    include_package_data=True,
    zip_safe=False,
    python_requires=">=3.11",
    keywords=["elasticsearch", "json", "client"],
    classifiers=[
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Topic :: Database :: Front-Ends",
    ],
    install_requires=[
        "requests",
        "ijson>=3.1",
        "pydantic>=2",
        "pydantic-core",
        "pydantic-settings>=2.7",
        "python-dotenv",
        "class-doc",
    ],
    extras_require={
        'dev': [
            'pytest',
            'mypy',
            'flake8',
            'responses',
        ]
    },
    entry_points={
        'console_scripts': [
            'simple-elastic = simple_elastic.__main__:main'
        ]
    },
)
