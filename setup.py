import os

from setuptools import find_packages, setup

dpath = os.path.dirname(os.path.realpath(__file__))
with open(os.path.join(dpath, "README.md"), "r") as f:
    long_description = f.read()


setup(
    name="placementcell",
    version="0.1",
    description="Data-access layer and CLI for an academic placement office",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="MIT",
    entry_points={"console_scripts": ["placementcell = placementcell.cli:cli"]},
    packages=find_packages(exclude=["tests"]),
    python_requires=">=3.7",
    install_requires=[
        "attrs >= 21.1.0",
        "click >= 8.0.0",
        "sqliteparser >= 0.2.5",
        "tabulate >= 0.8.9",
    ],
    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: SQL",
        "License :: OSI Approved :: MIT License",
        "Natural Language :: English",
        "Topic :: Database",
    ],
)
