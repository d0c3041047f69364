""" Tests of text export

:Author: Jonathan Karr <karr@mssm.edu>
:Date: 2019-06-03
:Copyright: 2019, Karr Lab
:License: MIT
"""

from cobra_io.core import Model
from cobra_io.text import TextWriter
import io
import os
import shutil
import tempfile
import unittest


class TextWriterTestCase(unittest.TestCase):

    def setUp(self):
        self.dirname = tempfile.mkdtemp()

        self.model = model = Model(id='model')
        c = model.compartments.create(id='c')
        a = model.metabolites.create(id='a[c]', name='A', compartment=c, formula='C2', charge=-1.)
        b = model.metabolites.create(id='b[c]', compartment=c)
        model.genes.create(id='g1')
        model.genes.create(id='g2')
        rxn_1 = model.reactions.create(id='R1', name='reaction 1', lower_bound=-1000., upper_bound=1000.,
                                       gene_rule='(g1 AND g2)  OR g1', subsystem='transport')
        rxn_1.set_stoichiometry({a: -2., b: 1.})
        rxn_1.add_annotation('ec-code', '1.1.1.1')
        rxn_2 = model.reactions.create(id='R2', lower_bound=0., upper_bound=10.)
        rxn_2.set_stoichiometry({b: -1.})

    def tearDown(self):
        shutil.rmtree(self.dirname)

    def test_export(self):
        self.assertEqual(TextWriter().export(self.model),
                         'R1\t2 a[c] <=> b[c]\t(g1 and g2) or g1\n'
                         'R2\tb[c] ->\t\n')

    def test_run(self):
        filename = os.path.join(self.dirname, 'model.txt')
        TextWriter().run(self.model, filename)
        with open(filename, 'r') as file:
            lines = file.read().split('\n')
        self.assertEqual(lines[0].split('\t'), ['R1', '2 a[c] <=> b[c]', '(g1 and g2) or g1'])
        self.assertEqual(len(lines), 3)

        # names, bounds, and annotations are not exported
        with open(filename, 'r') as file:
            text = file.read()
        self.assertNotIn('reaction 1', text)
        self.assertNotIn('1.1.1.1', text)
        self.assertNotIn('transport', text)

    def test_run_handles(self):
        text_handle = io.StringIO()
        TextWriter().run(self.model, text_handle)
        self.assertTrue(text_handle.getvalue().startswith('R1\t'))

        binary_handle = io.BytesIO()
        TextWriter().run(self.model, binary_handle)
        self.assertTrue(binary_handle.getvalue().startswith(b'R1\t'))
