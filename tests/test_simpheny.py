""" Tests of reading SimPheny bundles

:Author: Jonathan Karr <karr@mssm.edu>
:Date: 2019-06-03
:Copyright: 2019, Karr Lab
:License: MIT
"""

from cobra_io.core import IncompleteBundle, MalformedInput, MissingColumn, SchemaViolation, Validator
from cobra_io.simpheny import SimphenyReader
import math
import os
import shutil
import tempfile
import unittest


class SimphenyReaderTestCase(unittest.TestCase):

    FIXTURE_DIRNAME = os.path.join(os.path.dirname(__file__), 'fixtures', 'simpheny')

    def setUp(self):
        self.dirname = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.dirname)

    def copy_bundle(self, extensions=('.rxn', '.cmp', '.sto', '.gpr')):
        for ext in extensions:
            shutil.copyfile(os.path.join(self.FIXTURE_DIRNAME, 'model' + ext),
                            os.path.join(self.dirname, 'model' + ext))
        return os.path.join(self.dirname, 'model')

    def test_run(self):
        model = SimphenyReader().run(os.path.join(self.FIXTURE_DIRNAME, 'model.sto'))
        self.assertEqual(Validator().run(model), None)

        self.assertEqual(model.id, 'model')
        self.assertEqual(model.get_compartment_names(), {'e': 'Extracellular', 'c': 'Cytosol'})
        self.assertEqual([met.id for met in model.metabolites],
                         ['glc-D[e]', 'glc-D[c]', 'atp[c]', 'adp[c]', 'g6p[c]', 'h[c]'])
        self.assertEqual([rxn.id for rxn in model.reactions], ['GLCt', 'HEX1', 'BIOMASS'])
        self.assertEqual([gene.id for gene in model.genes], ['b1101', 'b2417', 'b2388', 'b1854'])

        atp = model.metabolites.get_one(id='atp[c]')
        self.assertEqual(atp.name, 'ATP')
        self.assertEqual(atp.formula, 'C10H12N5O13P3')
        self.assertEqual(atp.charge, -4.)
        self.assertEqual(atp.compartment.id, 'c')

        hex1 = model.reactions.get_one(id='HEX1')
        self.assertEqual(hex1.name, 'hexokinase')
        self.assertEqual(hex1.lower_bound, 0.)
        self.assertEqual(hex1.upper_bound, 1000.)
        self.assertEqual(hex1.subsystem, 'Glycolysis')
        self.assertEqual(hex1.gene_rule, '(b2388 and b1854) or b2388')
        self.assertEqual(hex1.get_stoichiometry(), {
            'glc-D[c]': -1., 'atp[c]': -1., 'adp[c]': 1., 'g6p[c]': 1., 'h[c]': 1.,
        })

        glct = model.reactions.get_one(id='GLCt')
        self.assertEqual(glct.lower_bound, -10.)
        self.assertEqual(glct.gene_rule, 'b1101 or b2417')

        biomass = model.reactions.get_one(id='BIOMASS')
        self.assertEqual(biomass.subsystem, '')
        self.assertEqual(biomass.get_stoichiometry(), {'atp[c]': -0.5, 'g6p[c]': -1.})
        self.assertEqual(model.get_objective(), {'BIOMASS': 1.})

    def test_any_member(self):
        for ext in ('', '.rxn', '.cmp', '.gpr'):
            model = SimphenyReader().run(os.path.join(self.FIXTURE_DIRNAME, 'model' + ext))
            self.assertEqual(len(model.reactions), 3)

        with open(os.path.join(self.FIXTURE_DIRNAME, 'model.sto'), 'r') as file:
            model = SimphenyReader().run(file)
        self.assertEqual(len(model.reactions), 3)

    def test_without_gene_associations(self):
        base = self.copy_bundle(('.rxn', '.cmp', '.sto'))
        model = SimphenyReader().run(base + '.sto')
        self.assertEqual(len(model.reactions), 3)
        self.assertEqual(len(model.genes), 0)
        for rxn in model.reactions:
            self.assertEqual(rxn.gene_rule, '')

    def test_incomplete_bundle(self):
        base = self.copy_bundle(('.rxn', '.sto', '.gpr'))
        with self.assertRaisesRegex(IncompleteBundle, 'model.cmp'):
            SimphenyReader().run(base + '.sto')

        with self.assertRaises(IncompleteBundle):
            SimphenyReader().run(object())

    def test_missing_column(self):
        base = self.copy_bundle()
        with open(base + '.rxn', 'w') as file:
            file.write('ABBREVIATION\tNAME\tLOWER BOUND\tUPPER BOUND\nGLCt\tglucose transport\t-10\t10\n')
        with self.assertRaisesRegex(MissingColumn, 'OBJECTIVE'):
            SimphenyReader().run(base)

    def test_undefined_compound(self):
        base = self.copy_bundle()
        with open(base + '.sto', 'a') as file:
            file.write('nadh[c]\t0\t0\t1\n')
        with self.assertRaisesRegex(SchemaViolation, 'nadh'):
            SimphenyReader().run(base)

    def test_undefined_reaction(self):
        base = self.copy_bundle()
        with open(base + '.gpr', 'a') as file:
            file.write('PGI\tb4025\n')
        with self.assertRaisesRegex(SchemaViolation, 'PGI'):
            SimphenyReader().run(base)

    def test_invalid_number(self):
        base = self.copy_bundle()
        with open(base + '.sto', 'a') as file:
            file.write('h[c]\tx\t0\t0\n')
        with self.assertRaisesRegex(MalformedInput, 'not a number'):
            SimphenyReader().run(base)

    def test_empty_charge(self):
        base = self.copy_bundle()
        with open(base + '.cmp', 'a') as file:
            file.write('nadh[c]\tNADH\t\t\tc\tCytosol\n')
        model = SimphenyReader().run(base)
        self.assertTrue(math.isnan(model.metabolites.get_one(id='nadh[c]').charge))
