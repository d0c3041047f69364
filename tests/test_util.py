""" Tests of utilities

:Author: Jonathan Karr <karr@mssm.edu>
:Date: 2019-06-03
:Copyright: 2019, Karr Lab
:License: MIT
"""

from cobra_io import util
from cobra_io.core import Model
import unittest


class UtilTestCase(unittest.TestCase):

    def setUp(self):
        self.model = model = Model(id='model')
        c = model.compartments.create(id='c')
        self.h2o = model.metabolites.create(id='h2o[c]', compartment=c)
        self.o2 = model.metabolites.create(id='o2[c]', compartment=c, boundary=True)
        self.h2o2 = model.metabolites.create(id='h2o2[c]', compartment=c)
        self.rxn = model.reactions.create(id='CAT', lower_bound=0., upper_bound=1000., objective_coefficient=1.)
        self.rxn.set_stoichiometry({self.h2o2: -2., self.h2o: 2., self.o2: 1.})

    def test_get_model_size(self):
        self.assertEqual(util.get_model_size(self.model), {
            'compartments': 1,
            'metabolites': 3,
            'genes': 0,
            'reactions': 1,
        })

    def test_get_model_summary(self):
        summary = util.get_model_summary(self.model)
        self.assertIn('Model model with:', summary)
        self.assertIn('1 compartments', summary)
        self.assertIn('3 metabolites', summary)
        self.assertIn('0 genes', summary)
        self.assertIn('1 reactions', summary)
        self.assertIn('1 boundary metabolites', summary)
        self.assertIn('0 reversible reactions', summary)
        self.assertIn('1 objective reactions (max)', summary)

    def test_format_reaction_formula(self):
        self.assertEqual(util.format_reaction_formula(self.rxn), '2 h2o2[c] -> 2 h2o[c] + o2[c]')

        self.rxn.lower_bound = -1000.
        self.assertEqual(util.format_reaction_formula(self.rxn), '2 h2o2[c] <=> 2 h2o[c] + o2[c]')

        self.rxn.participants[0].coefficient = -0.5
        self.assertEqual(util.format_reaction_formula(self.rxn), '0.5 h2o2[c] <=> 2 h2o[c] + o2[c]')

        ex = self.model.reactions.create(id='EX_o2', lower_bound=-10., upper_bound=0.)
        ex.set_stoichiometry({self.o2: -1.})
        self.assertEqual(util.format_reaction_formula(ex), 'o2[c] <=>')

    def test_parse_reaction_formula(self):
        self.assertEqual(util.parse_reaction_formula('2 h2o2[c] -> 2 h2o[c] + o2[c]'),
                         ({'h2o2[c]': -2., 'h2o[c]': 2., 'o2[c]': 1.}, False))
        self.assertEqual(util.parse_reaction_formula('(0.5) a[c] + b[c] <=> c[c]'),
                         ({'a[c]': -0.5, 'b[c]': -1., 'c[c]': 1.}, True))
        self.assertEqual(util.parse_reaction_formula('a[c] <-- b[c]'),
                         ({'b[c]': -1., 'a[c]': 1.}, False))
        self.assertEqual(util.parse_reaction_formula('[c] : a + 2 b --> c'),
                         ({'a[c]': -1., 'b[c]': -2., 'c[c]': 1.}, False))
        self.assertEqual(util.parse_reaction_formula('glc-D[e] <=>'),
                         ({'glc-D[e]': -1.}, True))
        self.assertEqual(util.parse_reaction_formula('h[c] + a[c] -> h[c] + b[c]'),
                         ({'a[c]': -1., 'b[c]': 1.}, False))
        self.assertEqual(list(util.parse_reaction_formula('1e-05 a[c] -> b[c]')[0].values()), [-1e-05, 1.])

    def test_parse_reaction_formula_error(self):
        with self.assertRaisesRegex(ValueError, 'exactly one arrow'):
            util.parse_reaction_formula('a[c] + b[c]')
        with self.assertRaisesRegex(ValueError, 'exactly one arrow'):
            util.parse_reaction_formula('a[c] -> b[c] -> c[c]')
        with self.assertRaisesRegex(ValueError, 'cannot be parsed'):
            util.parse_reaction_formula('2 3 a[c] -> b[c]')

    def test_format_and_parse(self):
        stoichiometry, reversible = util.parse_reaction_formula(util.format_reaction_formula(self.rxn))
        self.assertEqual(stoichiometry, self.rxn.get_stoichiometry())
        self.assertFalse(reversible)
