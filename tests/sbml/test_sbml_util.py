""" Tests of SBML utils

:Author: Jonathan Karr <karr@mssm.edu>
:Author: Arthur Goldberg <Arthur.Goldberg@mssm.edu>
:Date: 2019-06-03
:Copyright: 2017-2019, Karr Lab
:License: MIT
"""

from cobra_io.sbml.util import LibSbmlError, LibSbmlInterface
import libsbml
import unittest

# "from libsbml import *" generates "NameError: Unknown C global variable" in pytest,
# presumably from the SWIG wrapper: http://web.mit.edu/svn/src/swig-1.3.25/Lib/python/pyinit.swg
from libsbml import LIBSBML_OPERATION_SUCCESS


class LibSbmlInterfaceTestCase(unittest.TestCase):

    def setUp(self):
        # create an SBMLDocument that uses version 2 of the 'Flux Balance Constraints' extension
        self.document = LibSbmlInterface.create_doc(packages={'fbc': 2})
        self.sbml_model = LibSbmlInterface.init_model(self.document, packages={'fbc': 2})

    def test_LibSbmlError(self):
        error = LibSbmlError('test')
        self.assertEqual(str(error), 'test')

    def test_create_doc(self):
        self.assertEqual(self.document.getLevel(), 3)
        self.assertEqual(self.document.getVersion(), 1)
        self.assertEqual(self.document.getPlugin('fbc').getPackageVersion(), 2)
        self.assertFalse(self.document.getPackageRequired('fbc'))
        self.assertTrue(self.sbml_model.getPlugin('fbc').getStrict())

    def test_call_libsbml(self):
        self.assertEqual(
            LibSbmlInterface.call_libsbml(self.sbml_model.setId, 'model'), LIBSBML_OPERATION_SUCCESS)
        self.assertEqual(LibSbmlInterface.call_libsbml(self.sbml_model.getId), 'model')
        self.assertEqual(
            LibSbmlInterface.call_libsbml(self.document.getNumErrors, returns_int=True), 0)

        with self.assertRaisesRegex(LibSbmlError, 'in libSBML method call'):
            LibSbmlInterface.call_libsbml(self.document.getNumErrors, 'no arg')

        with self.assertRaisesRegex(LibSbmlError, 'LibSBML returned error code'):
            LibSbmlInterface.call_libsbml(self.sbml_model.setId, '..')

        with self.assertRaisesRegex(LibSbmlError, 'libSBML returned None when executing'):
            LibSbmlInterface.call_libsbml(self.document.getAnnotation)

    def test_create_parameter(self):
        param = LibSbmlInterface.create_parameter(self.sbml_model, 'R_1_lower_bound', -10.,
                                                  sbo_term='SBO:0000625')
        self.assertEqual(param.getId(), 'R_1_lower_bound')
        self.assertEqual(param.getValue(), -10.)
        self.assertTrue(param.getConstant())
        self.assertEqual(param.getSBOTermID(), 'SBO:0000625')

        param = LibSbmlInterface.create_parameter(self.sbml_model, 'R_1_upper_bound', float('inf'))
        self.assertEqual(param.getValue(), float('inf'))
        self.assertFalse(param.isSetSBOTerm())

    def test_set_parse_annotations(self):
        species = self.sbml_model.createSpecies()
        species.setId('M_a')
        self.assertEqual(LibSbmlInterface.parse_annotations(species), [])

        LibSbmlInterface.set_annotations(species, [])
        self.assertFalse(species.isSetAnnotation())

        key_vals = [('subsystem', 'Glycolysis & gluconeogenesis'), ('charge', '0.5'), ('annotation.notes', '<b>')]
        LibSbmlInterface.set_annotations(species, key_vals)
        self.assertIn('cobraIo:property', species.getAnnotationString())
        self.assertEqual(LibSbmlInterface.parse_annotations(species), key_vals)

        xml = libsbml.writeSBMLToString(self.document)
        document = libsbml.readSBMLFromString(xml)
        species = document.getModel().getSpecies('M_a')
        self.assertEqual(LibSbmlInterface.parse_annotations(species), key_vals)

    def test_set_get_cv_terms(self):
        species = self.sbml_model.createSpecies()
        species.setId('M_glc__D_c')
        others = LibSbmlInterface.set_cv_terms(species, [
            ('kegg.compound', 'C00031'),
            ('chebi', 'CHEBI:4167'),
            ('sbo', 'SBO:0000247'),
            ('resource', 'http://example.com/glucose'),
            ('Confidence Level', '4'),
            ('notes', 'line 1\nline 2'),
        ])
        self.assertEqual(others, [('Confidence Level', '4'), ('notes', 'line 1\nline 2')])
        self.assertEqual(species.getMetaId(), 'meta_M_glc__D_c')
        self.assertEqual(species.getSBOTermID(), 'SBO:0000247')

        self.assertEqual(LibSbmlInterface.get_cv_terms(species), [
            ('sbo', 'SBO:0000247'),
            ('kegg.compound', 'C00031'),
            ('chebi', 'CHEBI:4167'),
            ('resource', 'http://example.com/glucose'),
        ])

    def test_get_cv_terms_legacy_uris(self):
        species = self.sbml_model.createSpecies()
        species.setId('M_glc__D_c')
        species.setMetaId('meta_M_glc__D_c')
        cv_term = libsbml.CVTerm()
        cv_term.setQualifierType(libsbml.BIOLOGICAL_QUALIFIER)
        cv_term.setBiologicalQualifierType(libsbml.BQB_IS)
        cv_term.addResource('http://identifiers.org/CHEBI:4167')
        cv_term.addResource('http://identifiers.org/kegg.compound/C00031')
        cv_term.addResource('http://identifiers.org/kegg.compound/C00031')
        species.addCVTerm(cv_term)

        self.assertEqual(LibSbmlInterface.get_cv_terms(species), [
            ('chebi', 'CHEBI:4167'),
            ('kegg.compound', 'C00031'),
        ])

    def test_parse_notes(self):
        species = self.sbml_model.createSpecies()
        species.setId('M_a')
        self.assertEqual(LibSbmlInterface.parse_notes(species), {})

        species.setNotes('<body xmlns="http://www.w3.org/1999/xhtml">'
                         '<p>FORMULA: C6H12O6</p>'
                         '<p>CHARGE: -1</p>'
                         '<p>no key</p>'
                         '<p>EMPTY: </p>'
                         '<p>INCHI: InChI=1S/C6H12O6</p>'
                         '</body>')
        self.assertEqual(LibSbmlInterface.parse_notes(species), {
            'FORMULA': 'C6H12O6',
            'CHARGE': '-1',
            'INCHI': 'InChI=1S/C6H12O6',
        })
