""" Reading and writing models to/from files.

Supported formats:

=================  ==========================  ===================  ======  =====
Format             Extensions                  Aliases              Read    Write
=================  ==========================  ===================  ======  =====
matlab-struct      .mat                        mat                  yes     yes
sbml               .xml, .sbml                 xml                  yes     yes
simpheny           .sto                        sto                  yes     no
excel              .xls, .xlsx                 xls, xlsx            yes     yes
text               --                          txt                  no      yes
=================  ==========================  ===================  ======  =====

The format of a file is given by an explicit, case-insensitive token or alias, or inferred
from the extension of the file. If no path is given, an optional path resolver (e.g., a file
dialog) is asked for one.

:Author: Jonathan Karr <karr@mssm.edu>
:Date: 2019-06-03
:Copyright: 2019, Karr Lab
:License: MIT
"""

from cobra_io import core
from cobra_io.excel import ExcelReader, ExcelWriter
from cobra_io.matlab import MatlabReader, MatlabWriter
from cobra_io.sbml.io import SbmlReader, SbmlWriter
from cobra_io.simpheny import SimphenyReader, MEMBERS as SIMPHENY_MEMBERS
from cobra_io.text import TextWriter
from wc_utils.util.string import indent_forest
import cobra_io.config.core
import os

READ = 'read'
WRITE = 'write'


class Codec(object):
    """ Translation between a file format and models

    Codecs which cannot read or write their format set :obj:`decode` or :obj:`encode` to :obj:`None`.

    Attributes:
        token (:obj:`str`): name of the format
    """
    token = None
    decode = None
    encode = None

    def can_decode(self):
        """ Determine whether the codec can read models

        Returns:
            :obj:`bool`: :obj:`True` if the codec can read models
        """
        return self.decode is not None

    def can_encode(self):
        """ Determine whether the codec can write models

        Returns:
            :obj:`bool`: :obj:`True` if the codec can write models
        """
        return self.encode is not None

    def exists(self, path):
        """ Determine whether a source exists

        Args:
            path (:obj:`str`): path

        Returns:
            :obj:`bool`: :obj:`True` if the source exists
        """
        return os.path.isfile(path)


class MatlabCodec(Codec):
    token = 'matlab-struct'

    def decode(self, source, config):
        return MatlabReader().run(source)

    def encode(self, model, destination, config):
        MatlabWriter(variable_name=config['matlab']['variable_name']).run(model, destination)


class SbmlCodec(Codec):
    token = 'sbml'

    def decode(self, source, config):
        return SbmlReader(prefix_threshold=config['sbml']['prefix_threshold'],
                          suffix_threshold=config['sbml']['suffix_threshold'],
                          default_lower_bound=config['bounds']['lower'],
                          default_upper_bound=config['bounds']['upper']).run(source)

    def encode(self, model, destination, config):
        SbmlWriter(prefix_threshold=config['sbml']['prefix_threshold'],
                   suffix_threshold=config['sbml']['suffix_threshold'],
                   default_lower_bound=config['bounds']['lower'],
                   default_upper_bound=config['bounds']['upper']).run(model, destination)


class SimphenyCodec(Codec):
    token = 'simpheny'

    def decode(self, source, config):
        return SimphenyReader().run(source)

    def exists(self, path):
        """ Determine whether any member of a bundle exists; missing members are reported by the reader """
        base, ext = os.path.splitext(path)
        if ext.lower() not in SIMPHENY_MEMBERS:
            base = path
        return any(os.path.isfile(base + member) or os.path.isfile(base + member.upper())
                   for member in SIMPHENY_MEMBERS)


class ExcelCodec(Codec):
    token = 'excel'

    def decode(self, source, config):
        return ExcelReader(reaction_sheet=config['excel']['reaction_sheet'],
                           metabolite_sheet=config['excel']['metabolite_sheet'],
                           default_lower_bound=config['bounds']['lower'],
                           default_upper_bound=config['bounds']['upper']).run(source)

    def encode(self, model, destination, config):
        ExcelWriter(reaction_sheet=config['excel']['reaction_sheet'],
                    metabolite_sheet=config['excel']['metabolite_sheet']).run(model, destination)


class TextCodec(Codec):
    token = 'text'

    def encode(self, model, destination, config):
        TextWriter().run(model, destination)


CODECS = {codec.token: codec for codec in (MatlabCodec(), SbmlCodec(), SimphenyCodec(), ExcelCodec(), TextCodec())}
# :obj:`dict`: dictionary that maps format tokens to codecs

ALIASES = {
    'mat': MatlabCodec.token,
    'xml': SbmlCodec.token,
    'sto': SimphenyCodec.token,
    'xls': ExcelCodec.token,
    'xlsx': ExcelCodec.token,
    'txt': TextCodec.token,
}
# :obj:`dict`: dictionary that maps alternative names of formats to tokens

EXTENSIONS = {
    '.mat': MatlabCodec.token,
    '.xml': SbmlCodec.token,
    '.sbml': SbmlCodec.token,
    '.sto': SimphenyCodec.token,
    '.xls': ExcelCodec.token,
    '.xlsx': ExcelCodec.token,
}
# :obj:`dict`: dictionary that maps file extensions to tokens; `.txt` is deliberately not mapped


def get_codec(format):
    """ Get the codec of a format token or alias

    Args:
        format (:obj:`str`): format token or alias (case-insensitive)

    Returns:
        :obj:`Codec`: codec

    Raises:
        :obj:`core.UnknownFormat`: if the token is not known
    """
    token = format.lower()
    token = ALIASES.get(token, token)
    codec = CODECS.get(token, None)
    if codec is None:
        raise core.UnknownFormat('Format "{}" is not known. The known formats are:\n  {}'.format(
            format, '\n  '.join(sorted(CODECS.keys()))))
    return codec


def get_name(path_or_handle):
    """ Get the path of a file from its path or from the name of its handle

    Args:
        path_or_handle (:obj:`str` or file-like): path or handle

    Returns:
        :obj:`str`: path, or :obj:`None` if the handle has no name
    """
    if isinstance(path_or_handle, str):
        return path_or_handle
    name = getattr(path_or_handle, 'name', None)
    if isinstance(name, str):
        return name
    return None


def infer_codec(path_or_handle):
    """ Infer the codec of a file from its extension

    Args:
        path_or_handle (:obj:`str` or file-like): path or handle

    Returns:
        :obj:`Codec`: codec

    Raises:
        :obj:`core.UnknownFormat`: if the extension is not mapped to a format
    """
    name = get_name(path_or_handle)
    ext = os.path.splitext(name)[1].lower() if name else ''
    token = EXTENSIONS.get(ext, None)
    if token is None:
        raise core.UnknownFormat('The format of "{}" cannot be inferred from its extension. '
                                 'Supported extensions:\n  {}'.format(name, '\n  '.join(sorted(EXTENSIONS.keys()))))
    return CODECS[token]


def get_config(config=None):
    """ Get the `cobra_io` section of the configuration

    Args:
        config (:obj:`dict`, optional): configuration; if :obj:`None`, load the configuration from its sources

    Returns:
        :obj:`dict`: configuration
    """
    if config is None:
        config = cobra_io.config.core.get_config()
    return config.get('cobra_io', config)


def run_codec(codec, func, *args):
    """ Run a codec, and report errors which are not part of the taxonomy of `cobra_io` errors as
    :obj:`core.MalformedInput`

    Args:
        codec (:obj:`Codec`): codec
        func (:obj:`callable`): method of the codec
        args (:obj:`list`): arguments

    Returns:
        :obj:`object`: return value of `func`

    Raises:
        :obj:`core.CobraIoError`: if the codec fails
    """
    try:
        return func(*args)
    except core.CobraIoError:
        raise
    except FileNotFoundError as error:
        raise core.FileNotFound(str(error)) from error
    except Exception as error:
        raise core.MalformedInput(codec.token, '{}: {}'.format(error.__class__.__name__, str(error))) from error


class Reader(object):
    """ Read models from files

    Attributes:
        path_resolver (:obj:`callable`): function which returns the path of a source when none is given,
            called with the purpose (`read`) and the format token, or :obj:`None`
        config (:obj:`dict`): configuration
    """

    def __init__(self, path_resolver=None, config=None):
        """
        Args:
            path_resolver (:obj:`callable`, optional): function which returns the path of a source when none is given
            config (:obj:`dict`, optional): configuration
        """
        self.path_resolver = path_resolver
        self.config = get_config(config)

    def run(self, source=None, format=None, validate=None):
        """ Read a model from a file

        Args:
            source (:obj:`str` or file-like, optional): path or handle of the file
            format (:obj:`str`, optional): format token; if :obj:`None`, infer the format from the extension
                of the source
            validate (:obj:`bool`, optional): if :obj:`True`, validate the model

        Returns:
            :obj:`core.Model`: model

        Raises:
            :obj:`core.UnknownFormat`: if the format is unknown or cannot be inferred
            :obj:`core.UnsupportedFormat`: if the format cannot be read
            :obj:`core.FileNotFound`: if the source does not exist
            :obj:`core.MalformedInput`: if the source cannot be parsed
        """
        codec = get_codec(format) if format else None
        if codec and not codec.can_decode():
            raise core.UnsupportedFormat('Models cannot be read from the "{}" format'.format(codec.token))

        if source is None and self.path_resolver:
            source = self.path_resolver(READ, codec.token if codec else None)
        if source is None:
            raise core.UnknownFormat('A source must be given to read a model')

        if codec is None:
            codec = infer_codec(source)
            if not codec.can_decode():
                raise core.UnsupportedFormat('Models cannot be read from the "{}" format'.format(codec.token))

        if isinstance(source, str) and not codec.exists(source):
            replacement = self.path_resolver(READ, codec.token) if self.path_resolver else None
            if replacement is None or not codec.exists(replacement):
                raise core.FileNotFound('{} does not exist'.format(source))
            source = replacement

        model = run_codec(codec, codec.decode, source, self.config)

        if validate is None:
            validate = self.config['io']['validate']
        if validate:
            error = core.Validator().run(model, get_related=True)
            if error:
                raise core.SchemaViolation(codec.token, indent_forest(['The model is invalid:', [error]]))

        return model


class Writer(object):
    """ Write models to files

    Attributes:
        path_resolver (:obj:`callable`): function which returns the path of a destination when none is given,
            called with the purpose (`write`) and the format token, or :obj:`None`
        default_format (:obj:`str`): format of destinations without extensions
        config (:obj:`dict`): configuration
    """

    def __init__(self, path_resolver=None, default_format=None, config=None):
        """
        Args:
            path_resolver (:obj:`callable`, optional): function which returns the path of a destination when none
                is given
            default_format (:obj:`str`, optional): format of destinations without extensions; if :obj:`None`, use
                the configured default format
            config (:obj:`dict`, optional): configuration
        """
        self.path_resolver = path_resolver
        self.config = get_config(config)
        self.default_format = default_format or self.config['io']['default_format']

    def run(self, model, format=None, destination=None):
        """ Write a model to a file

        Args:
            model (:obj:`core.Model`): model
            format (:obj:`str`, optional): format token; if :obj:`None`, infer the format from the extension of
                the destination
            destination (:obj:`str` or file-like, optional): path or handle of the file

        Raises:
            :obj:`core.UnknownFormat`: if the format is unknown or cannot be inferred
            :obj:`core.UnsupportedFormat`: if the format cannot be written
            :obj:`core.DestinationRequired`: if no destination is given or resolved
            :obj:`core.SchemaViolation`: if the model is invalid
        """
        codec = get_codec(format) if format else None
        if codec and not codec.can_encode():
            raise core.UnsupportedFormat('Models cannot be written to the "{}" format'.format(codec.token))

        if destination is None and self.path_resolver:
            destination = self.path_resolver(WRITE, codec.token if codec else None)
        if destination is None:
            raise core.DestinationRequired('A destination must be given to write a model')

        if codec is None:
            name = get_name(destination)
            if name is None or not os.path.splitext(name)[1]:
                codec = get_codec(self.default_format)
            else:
                codec = infer_codec(destination)
            if not codec.can_encode():
                raise core.UnsupportedFormat('Models cannot be written to the "{}" format'.format(codec.token))

        existed = isinstance(destination, str) and os.path.exists(destination)
        try:
            run_codec(codec, codec.encode, model, destination, self.config)
        except core.CobraIoError:
            # don't leave partially written files behind
            if isinstance(destination, str) and not existed and os.path.isfile(destination):
                os.remove(destination)
            raise


def read(source=None, format=None, path_resolver=None, config=None):
    """ Read a model from a file

    Args:
        source (:obj:`str` or file-like, optional): path or handle of the file
        format (:obj:`str`, optional): format token; if :obj:`None`, infer the format from the extension of the source
        path_resolver (:obj:`callable`, optional): function which returns the path of a source when none is given
        config (:obj:`dict`, optional): configuration

    Returns:
        :obj:`core.Model`: model
    """
    return Reader(path_resolver=path_resolver, config=config).run(source, format=format)


def write(model, format=None, destination=None, path_resolver=None, default_format=None, config=None):
    """ Write a model to a file

    Args:
        model (:obj:`core.Model`): model
        format (:obj:`str`, optional): format token; if :obj:`None`, infer the format from the extension of
            the destination
        destination (:obj:`str` or file-like, optional): path or handle of the file
        path_resolver (:obj:`callable`, optional): function which returns the path of a destination when none is given
        default_format (:obj:`str`, optional): format of destinations without extensions
        config (:obj:`dict`, optional): configuration
    """
    Writer(path_resolver=path_resolver, default_format=default_format, config=config).run(
        model, format=format, destination=destination)


def convert(source, destination, in_format=None, out_format=None, config=None):
    """ Convert a model from one format to another

    Args:
        source (:obj:`str` or file-like): path or handle of the source
        destination (:obj:`str` or file-like): path or handle of the destination
        in_format (:obj:`str`, optional): format of the source
        out_format (:obj:`str`, optional): format of the destination
        config (:obj:`dict`, optional): configuration
    """
    model = read(source, format=in_format, config=config)
    write(model, format=out_format, destination=destination, config=config)
