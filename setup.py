#!/usr/bin/env python

from setuptools import setup

setup(
    name="pipedrive-api",
    version="0.1.0",
    description="OAuth client for the pipedrive v1 REST API",
    python_requires=">=3.8",
    install_requires=[
        "backoff>=2.2.1",
        "requests>=2.27",
        "singer-python>=6.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7",
        ],
    },
    entry_points="""
          [console_scripts]
          pipedrive-api=pipedrive_api:main
      """,
    packages=["pipedrive_api"],
)
