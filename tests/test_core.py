""" Tests of core

:Author: Jonathan Karr <karr@mssm.edu>
:Date: 2019-06-03
:Copyright: 2019, Karr Lab
:License: MIT
"""

from cobra_io.core import (Model, Metabolite, Validator,
                           CobraIoError, MalformedInput, SchemaViolation, UnsupportedSbmlVersion,
                           IncompleteBundle, MissingSheet, MissingColumn, UnknownFormat, FileNotFound)
import math
import unittest


def gen_model():
    model = Model(id='model', name='test model', objective_sense='max')
    c = model.compartments.create(id='c', name='cytosol')
    e = model.compartments.create(id='e', name='extracellular')
    glc_e = model.metabolites.create(id='glc[e]', name='glucose', compartment=e, formula='C6H12O6', charge=0.)
    glc_c = model.metabolites.create(id='glc[c]', name='glucose', compartment=c, formula='C6H12O6', charge=0.)
    atp = model.metabolites.create(id='atp[c]', name='ATP', compartment=c, formula='C10H12N5O13P3', charge=-4.)
    model.genes.create(id='b0001', name='gene 1')
    model.genes.create(id='b0002', name='gene 2')
    tx = model.reactions.create(id='GLCt', name='glucose transport', lower_bound=-10., upper_bound=10.,
                                gene_rule='b0001 and b0002')
    tx.set_stoichiometry({glc_e: -1., glc_c: 1.})
    use = model.reactions.create(id='ATPM', name='maintenance', lower_bound=0., upper_bound=1000.,
                                 objective_coefficient=1.)
    use.set_stoichiometry({atp: -1.})
    return model


class ModelTestCase(unittest.TestCase):

    def test_valid(self):
        model = gen_model()
        self.assertEqual(Validator().run(model), None)

    def test_get_compartment_names(self):
        model = gen_model()
        self.assertEqual(model.get_compartment_names(), {'c': 'cytosol', 'e': 'extracellular'})

    def test_get_objective(self):
        model = gen_model()
        self.assertEqual(model.get_objective(), {'ATPM': 1.})

    def test_extensions(self):
        model = Model(id='model', extensions={'rev': [1, 0]})
        self.assertEqual(model.extensions, {'rev': [1, 0]})
        self.assertEqual(Model().extensions, {})

    def test_duplicate_ids(self):
        model = gen_model()
        model.genes.create(id='b0001')
        error = Validator().run(model)
        self.assertNotEqual(error, None)
        self.assertIn('b0001', str(error))

    def test_objective_sense(self):
        model = gen_model()
        model.objective_sense = 'maximize'
        self.assertNotEqual(Validator().run(model), None)


class MetaboliteTestCase(unittest.TestCase):

    def test_default_charge(self):
        met = Metabolite(id='h2o[c]')
        self.assertTrue(math.isnan(met.charge))
        self.assertFalse(met.boundary)

    def test_compartment_of_other_model(self):
        model = gen_model()
        other = Model(id='other')
        comp = other.compartments.create(id='p')
        model.metabolites.create(id='h[p]', compartment=comp, charge=1.)
        error = Validator().run(model)
        self.assertNotEqual(error, None)
        self.assertIn('does not belong to the model', str(error))

    def test_annotations(self):
        met = Metabolite(id='glc[c]')
        met.add_annotation('kegg.compound', 'C00031')
        met.add_annotation('kegg.compound', 'C00031')
        met.add_annotations({'chebi': ['CHEBI:4167', 'CHEBI:17634'], 'inchi': 'InChI=1S'})
        self.assertEqual(met.get_annotations(), {
            'kegg.compound': ['C00031'],
            'chebi': ['CHEBI:4167', 'CHEBI:17634'],
            'inchi': ['InChI=1S'],
        })
        self.assertTrue(met.has_annotation('chebi'))
        self.assertFalse(met.has_annotation('pubchem.compound'))


class ReactionTestCase(unittest.TestCase):

    def test_get_stoichiometry(self):
        model = gen_model()
        rxn = model.reactions.get_one(id='GLCt')
        self.assertEqual(rxn.get_stoichiometry(), {'glc[e]': -1., 'glc[c]': 1.})
        self.assertEqual(list(rxn.get_stoichiometry().keys()), ['glc[e]', 'glc[c]'])

    def test_is_reversible(self):
        model = gen_model()
        self.assertTrue(model.reactions.get_one(id='GLCt').is_reversible())
        self.assertFalse(model.reactions.get_one(id='ATPM').is_reversible())

    def test_dangling_metabolite(self):
        model = gen_model()
        other = Model(id='other')
        met = other.metabolites.create(id='x[c]')
        model.reactions.get_one(id='ATPM').set_stoichiometry({met: 1.})
        error = Validator().run(model)
        self.assertNotEqual(error, None)
        self.assertIn('does not belong to the model', str(error))

    def test_duplicate_participant(self):
        model = gen_model()
        rxn = model.reactions.get_one(id='ATPM')
        rxn.set_stoichiometry({model.metabolites.get_one(id='atp[c]'): 2.})
        error = Validator().run(model)
        self.assertNotEqual(error, None)
        self.assertIn('participates more than once', str(error))

    def test_invalid_coefficients(self):
        model = gen_model()
        rxn = model.reactions.get_one(id='ATPM')
        rxn.participants[0].coefficient = 0.
        error = str(Validator().run(model))
        self.assertIn('non-zero finite number', error)
        self.assertIn('(0) atp[c]', error)

        rxn.participants[0].coefficient = float('inf')
        error = str(Validator().run(model))
        self.assertIn('non-zero finite number', error)
        self.assertIn('(inf) atp[c]', error)

    def test_undefined_gene(self):
        model = gen_model()
        model.reactions.get_one(id='ATPM').gene_rule = 'b0001 or b0003'
        error = Validator().run(model)
        self.assertNotEqual(error, None)
        self.assertIn('b0003', str(error))

    def test_invalid_gene_rule(self):
        model = gen_model()
        model.reactions.get_one(id='ATPM').gene_rule = '(b0001 or'
        self.assertNotEqual(Validator().run(model), None)

    def test_bounds(self):
        model = gen_model()
        rxn = model.reactions.get_one(id='ATPM')
        rxn.lower_bound = 10.
        rxn.upper_bound = 5.
        error = Validator().run(model)
        self.assertIn('Lower bound must be less than or equal to the upper bound', str(error))

    def test_participant_serialize(self):
        model = gen_model()
        self.assertEqual(model.reactions.get_one(id='ATPM').participants[0].serialize(), '(-1) atp[c]')


class AnnotationTestCase(unittest.TestCase):

    def test_owner(self):
        model = gen_model()
        gene = model.genes.get_one(id='b0001')
        gene.annotations.create(key='ncbigene', value='944742')
        self.assertEqual(Validator().run(model), None)

        annotation = gene.annotations[0]
        annotation.reaction = model.reactions[0]
        error = Validator().run(model)
        self.assertNotEqual(error, None)
        self.assertIn('exactly one', str(error))


class ErrorsTestCase(unittest.TestCase):

    def test_malformed_input(self):
        error = MalformedInput('sbml', 'bad XML')
        self.assertEqual(error.codec, 'sbml')
        self.assertEqual(error.detail, 'bad XML')
        self.assertEqual(str(error), 'sbml: bad XML')

    def test_taxonomy(self):
        for cls in (SchemaViolation, UnsupportedSbmlVersion, IncompleteBundle, MissingSheet, MissingColumn):
            error = cls('codec', 'detail')
            self.assertIsInstance(error, MalformedInput)
            self.assertIsInstance(error, CobraIoError)
            self.assertEqual(error.codec, 'codec')
        self.assertTrue(issubclass(UnknownFormat, CobraIoError))
        self.assertTrue(issubclass(FileNotFound, CobraIoError))
        self.assertFalse(issubclass(FileNotFound, MalformedInput))
