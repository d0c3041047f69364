from ._version import __version__
# :obj:`str`: version

# API
from .core import (Model, Compartment, Metabolite, Gene, Reaction, ReactionParticipant, Annotation,
                   Validator, CobraIoWarning,
                   CobraIoError, UnknownFormat, UnsupportedFormat, FileNotFound, DestinationRequired,
                   MalformedInput, SchemaViolation, UnsupportedSbmlVersion, IncompleteBundle,
                   MissingSheet, MissingColumn)
from .io import Reader, Writer, read, write, convert
