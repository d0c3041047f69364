""" Configuration

:Author: Jonathan Karr <jonrkarr@gmail.com>
:Date: 2019-06-03
:Copyright: 2019, Karr Lab
:License: MIT
"""

import os
from pathlib import Path
import wc_utils.config


def get_package_root(file_in_package):
    """ Get root directory of a package

    Args:
        file_in_package (:obj:`str`): pathname of a file in a package

    Returns:
        :obj:`str`: pathname of root of package
    """
    path = Path(file_in_package)
    # go up directory hierarchy from path and get first directory that does not contain '__init__.py'
    dir = path.parent
    found_package = False
    while True:
        if not dir.joinpath('__init__.py').is_file():
            break
        # exit at / root
        if dir == dir.parent:
            break
        found_package = True
        dir = dir.parent
    if found_package:
        return str(dir)


def get_resource_filename(*args):
    """ Get pathname of resource file

    Args:
        args (:obj:`list`): pathname components of resource file

    Returns:
        :obj:`str`: pathname of resource file
    """
    package_root = get_package_root(__file__)
    return os.path.join(package_root, *args)


def get_config(extra=None):
    """ Get configuration

    Args:
        extra (:obj:`dict`, optional): additional configuration to override

    Returns:
        :obj:`configobj.ConfigObj`: nested dictionary with the configuration settings loaded from the configuration source(s).
    """
    paths = wc_utils.config.ConfigPaths(
        default=get_resource_filename('cobra_io', 'config/core.default.cfg'),
        schema=get_resource_filename('cobra_io', 'config/core.schema.cfg'),
        user=(
            'cobra_io.cfg',
            os.path.expanduser('~/.cobra/cobra_io.cfg'),
        ),
    )

    config = wc_utils.config.ConfigManager(paths).get_config(extra=extra)
    validate_config(config)
    return config


def validate_config(config):
    """ Validate configuration

    * Check that the default lower flux bound is less than or equal to the default upper bound
    * Check that the thresholds for normalizing SBML ids are in (0, 1]

    Args:
        config (:obj:`configobj.ConfigObj`): nested dictionary with the configuration settings

    Raises:
        :obj:`ValueError`: if the default bounds are inconsistent or a threshold is out of range
    """
    lower = config['cobra_io']['bounds']['lower']
    upper = config['cobra_io']['bounds']['upper']
    if lower > upper:
        raise ValueError(("default lower flux bound must be less than or equal to "
                          "the default upper bound:\n"
                          "  lower={}\n"
                          "  upper={}").format(lower, upper))

    for key in ('prefix_threshold', 'suffix_threshold'):
        threshold = config['cobra_io']['sbml'][key]
        if threshold <= 0. or threshold > 1.:
            raise ValueError('{} must be greater than 0 and less than or equal to 1, not {}'.format(key, threshold))
