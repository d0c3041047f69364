""" Command line programs for reading, writing, and converting constraint-based models

:Author: Jonathan Karr <karr@mssm.edu>
:Date: 2019-06-03
:Copyright: 2019, Karr Lab
:License: MIT
"""

from cobra_io.core import CobraIoError, SchemaViolation
from cobra_io.io import Reader, convert
from cobra_io.util import get_model_summary
import cement
import cobra_io


class BaseController(cement.Controller):
    """ Base controller for command line application """

    class Meta:
        label = 'base'
        description = "Command line utilities for reading, writing, and converting constraint-based models"
        help = "Command line utilities for reading, writing, and converting constraint-based models"
        arguments = [
            (['-v', '--version'], dict(action='version', version=cobra_io.__version__)),
        ]

    @cement.ex(hide=True)
    def _default(self):
        self._parser.print_help()


class ConvertController(cement.Controller):
    """ Convert a model to another format """

    class Meta:
        label = 'convert'
        description = 'Convert a model to another format'
        help = 'Convert a model to another format'
        stacked_on = 'base'
        stacked_type = 'nested'
        arguments = [
            (['source'], dict(type=str, help='Path to model')),
            (['dest'], dict(type=str, help='Path to save the converted model')),
            (['--in-format'], dict(dest='in_format', type=str, default=None,
                                   help='Format of the model; by default, inferred from its extension')),
            (['--out-format'], dict(dest='out_format', type=str, default=None,
                                    help='Format of the converted model; by default, inferred from its extension')),
        ]

    @cement.ex(hide=True)
    def _default(self):
        args = self.app.pargs
        try:
            convert(args.source, args.dest, in_format=args.in_format, out_format=args.out_format)
        except CobraIoError as exception:
            raise SystemExit('Model could not be converted: ' + str(exception))
        print('Model converted to {}'.format(args.dest))


class ValidateController(cement.Controller):
    """ Validate model and display errors """

    class Meta:
        label = 'validate'
        description = 'Validate model and display errors'
        help = 'Validate model and display errors'
        stacked_on = 'base'
        stacked_type = 'nested'
        arguments = [
            (['path'], dict(type=str, help='Path to model')),
            (['--format'], dict(type=str, default=None,
                                help='Format of the model; by default, inferred from its extension')),
        ]

    @cement.ex(hide=True)
    def _default(self):
        args = self.app.pargs
        try:
            Reader().run(args.path, format=args.format, validate=True)
            print('Model is valid')
        except SchemaViolation as exception:
            raise SystemExit('Model is invalid: ' + str(exception))
        except CobraIoError as exception:
            raise SystemExit('Model could not be read: ' + str(exception))


class SummaryController(cement.Controller):
    """ Display a summary of a model """

    class Meta:
        label = 'summary'
        description = 'Display a summary of a model'
        help = 'Display a summary of a model'
        stacked_on = 'base'
        stacked_type = 'nested'
        arguments = [
            (['path'], dict(type=str, help='Path to model')),
            (['--format'], dict(type=str, default=None,
                                help='Format of the model; by default, inferred from its extension')),
        ]

    @cement.ex(hide=True)
    def _default(self):
        args = self.app.pargs
        try:
            model = Reader().run(args.path, format=args.format)
        except CobraIoError as exception:
            raise SystemExit('Model could not be read: ' + str(exception))
        print(get_model_summary(model))


class App(cement.App):
    """ Command line application """
    class Meta:
        label = 'cobra-io'
        base_controller = 'base'
        handlers = [
            BaseController,
            ConvertController,
            ValidateController,
            SummaryController,
        ]


def main():
    with App() as app:
        app.run()
