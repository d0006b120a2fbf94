import os
from setuptools import setup

def get_version():
    v = "0.0.0"
    with open('rootclock/__init__.py') as ifile:
        for line in ifile:
            if line[:7]=='version':
                v = line.split('=')[-1].strip()[1:-1]
                break
    return v

with open("README.md", "r") as fh:
    long_description = fh.read()

setup(
        name = "phylo-rootclock",
        version = get_version(),
        description = ("Temporal rooting and least-squares dating of phylogenies"),
        long_description = long_description,
        long_description_content_type="text/markdown",
        license = "MIT",
        keywords = "Time-stamped phylogenies, root-to-tip regression, molecular clock, virus evolution",
        packages=['rootclock'],
        install_requires = [
            'biopython>=1.66',
            'numpy>=1.10.4',
            'pandas>=0.17.1',
            'scipy>=0.16.1',
            'matplotlib>=2.0'
        ],
        extras_require = {
            'test':['pytest'],
        },
        classifiers=[
            "Development Status :: 3 - Alpha",
            "Topic :: Scientific/Engineering :: Bio-Informatics",
            "License :: OSI Approved :: MIT License",
            "Programming Language :: Python :: 3"
            ],
        scripts=['bin/rootclock']
    )
