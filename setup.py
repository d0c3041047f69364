import setuptools
import os
import re

name = 'cobra_io'
dirname = os.path.dirname(__file__)


def read_requirements(path):
    """ Read the requirements listed in a requirements file """
    with open(os.path.join(dirname, path), 'r') as file:
        return [line.strip() for line in file if line.strip() and not line.strip().startswith('#')]


# get package metadata
with open(os.path.join(dirname, name, '_version.py'), 'r') as file:
    version = re.search(r"__version__ = '([^']+)'", file.read()).group(1)
with open(os.path.join(dirname, 'README.md'), 'r') as file:
    long_description = file.read()

# install package
setuptools.setup(
    name=name,
    version=version,
    description="Reading and writing constraint-based metabolic models in multiple file formats",
    long_description=long_description,
    long_description_content_type='text/markdown',
    url="https://github.com/KarrLab/" + name,
    download_url='https://github.com/KarrLab/' + name,
    author="Jonathan Karr",
    author_email="jonrkarr@gmail.com",
    license="MIT",
    keywords='constraint-based modeling flux balance analysis SBML COBRA systems biology',
    packages=setuptools.find_packages(exclude=['tests', 'tests.*']),
    package_data={
        name: [
            'config/core.default.cfg',
            'config/core.schema.cfg',
        ],
    },
    install_requires=read_requirements('requirements.txt'),
    extras_require={
        'tests': read_requirements('tests/requirements.txt'),
    },
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Science/Research',
        'License :: OSI Approved :: MIT License',
        'Topic :: Scientific/Engineering :: Bio-Informatics',
    ],
    entry_points={
        'console_scripts': [
            'cobra-io = cobra_io.__main__:main',
        ],
    },
)
