""" Tests of command line program

:Author: Jonathan Karr <karr@mssm.edu>
:Date: 2019-06-03
:Copyright: 2019, Karr Lab
:License: MIT
"""

from capturer import CaptureOutput
from cobra_io import __main__
from cobra_io.core import Model
from cobra_io.io import Reader, Writer
from cobra_io import matlab
from os import path
from shutil import rmtree
from tempfile import mkdtemp
import cobra_io
import mock
import numpy
import scipy.io
import unittest

FIXTURE_DIRNAME = path.join(path.dirname(__file__), 'fixtures', 'simpheny')


class TestCli(unittest.TestCase):

    def setUp(self):
        self.tempdir = mkdtemp()

    def tearDown(self):
        rmtree(self.tempdir)

    def test_get_version(self):
        with CaptureOutput(relay=False) as capturer:
            with __main__.App(argv=['-v']) as app:
                with self.assertRaises(SystemExit):
                    app.run()
                self.assertEqual(capturer.get_text(), cobra_io.__version__)

        with CaptureOutput(relay=False) as capturer:
            with __main__.App(argv=['--version']) as app:
                with self.assertRaises(SystemExit):
                    app.run()
                self.assertEqual(capturer.get_text(), cobra_io.__version__)

    def test_convert(self):
        in_path = path.join(FIXTURE_DIRNAME, 'model.sto')
        out_path = path.join(self.tempdir, 'model.xml')
        with CaptureOutput(relay=False) as capturer:
            with __main__.App(argv=['convert', in_path, out_path]) as app:
                app.run()
            self.assertEqual(capturer.get_text(), 'Model converted to {}'.format(out_path))

        model = Reader().run(out_path)
        self.assertEqual([rxn.id for rxn in model.reactions], ['GLCt', 'HEX1', 'BIOMASS'])

        out_path_2 = path.join(self.tempdir, 'model.out')
        with CaptureOutput(relay=False):
            with __main__.App(argv=['convert', out_path, out_path_2, '--in-format', 'sbml',
                                    '--out-format', 'text']) as app:
                app.run()
        with open(out_path_2, 'r') as file:
            self.assertEqual(file.readline(), 'GLCt\tglc-D[e] <=> glc-D[c]\tb1101 or b2417\n')

    def test_convert_exception(self):
        in_path = path.join(FIXTURE_DIRNAME, 'model.sto')
        out_path = path.join(self.tempdir, 'model.sto')
        with self.assertRaisesRegex(SystemExit, '^Model could not be converted: '):
            with __main__.App(argv=['convert', in_path, out_path]) as app:
                app.run()

    def test_validate(self):
        filename = path.join(self.tempdir, 'model.mat')
        model = Model(id='model')
        comp = model.compartments.create(id='c')
        met = model.metabolites.create(id='atp[c]', compartment=comp)
        rxn = model.reactions.create(id='ATPM', objective_coefficient=1.)
        rxn.set_stoichiometry({met: -1.})
        Writer().run(model, destination=filename)

        with CaptureOutput(relay=False) as capturer:
            with __main__.App(argv=['validate', filename]) as app:
                app.run()
            self.assertEqual(capturer.get_text(), 'Model is valid')

        with CaptureOutput(relay=False) as capturer:
            with __main__.App(argv=['validate', path.join(FIXTURE_DIRNAME, 'model'), '--format', 'simpheny']) as app:
                app.run()
            self.assertEqual(capturer.get_text(), 'Model is valid')

    def test_validate_exception(self):
        filename = path.join(self.tempdir, 'model.mat')
        scipy.io.savemat(filename, {'model': {
            'mets': matlab.to_cell(['a']),
            'rxns': matlab.to_cell(['R1']),
            'S': numpy.array([[1.]]),
            'lb': numpy.array([[10.]]),
            'ub': numpy.array([[0.]]),
        }})
        with self.assertRaisesRegex(SystemExit, '^Model is invalid: '):
            with __main__.App(argv=['validate', filename]) as app:
                app.run()

        with self.assertRaisesRegex(SystemExit, '^Model could not be read: '):
            with __main__.App(argv=['validate', path.join(self.tempdir, 'missing.mat')]) as app:
                app.run()

    def test_summary(self):
        with CaptureOutput(relay=False) as capturer:
            with __main__.App(argv=['summary', path.join(FIXTURE_DIRNAME, 'model.sto')]) as app:
                app.run()
            self.assertEqual(capturer.get_text(), '\n'.join([
                'Model model with:',
                '2 compartments',
                '6 metabolites',
                '0 boundary metabolites',
                '4 genes',
                '3 reactions',
                '1 reversible reactions',
                '1 objective reactions (max)',
            ]))

        with self.assertRaisesRegex(SystemExit, '^Model could not be read: '):
            with __main__.App(argv=['summary', path.join(self.tempdir, 'model.txt')]) as app:
                app.run()

    def test_raw_cli(self):
        with mock.patch('sys.argv', ['cobra-io', '--help']):
            with CaptureOutput(relay=False):
                with self.assertRaises(SystemExit):
                    __main__.main()

        with mock.patch('sys.argv', ['cobra-io']):
            with CaptureOutput(relay=False) as capturer:
                __main__.main()
                self.assertRegex(capturer.get_text(), 'usage: cobra-io')
