""" Tests of gene-reaction rules

:Author: Jonathan Karr <karr@mssm.edu>
:Date: 2019-06-03
:Copyright: 2019, Karr Lab
:License: MIT
"""

from cobra_io import gene_rules
import unittest


class GeneRulesTestCase(unittest.TestCase):

    def test_tokenize(self):
        self.assertEqual(gene_rules.tokenize('(b0001 AND b0002) || b0003'),
                         ['(', 'b0001', 'and', 'b0002', ')', 'or', 'b0003'])
        self.assertEqual(gene_rules.tokenize('b0001&b0002|b0003'),
                         ['b0001', 'and', 'b0002', 'or', 'b0003'])
        self.assertEqual(gene_rules.tokenize(''), [])
        self.assertEqual(gene_rules.tokenize(None), [])

    def test_validate_tokens(self):
        gene_rules.validate_tokens(gene_rules.tokenize('(a and b) or (c and (d or e))'))
        gene_rules.validate_tokens([])

        with self.assertRaisesRegex(gene_rules.GeneRuleError, 'incomplete'):
            gene_rules.validate_tokens(gene_rules.tokenize('a and'))
        with self.assertRaisesRegex(gene_rules.GeneRuleError, 'Unbalanced'):
            gene_rules.validate_tokens(gene_rules.tokenize('(a and b'))
        with self.assertRaisesRegex(gene_rules.GeneRuleError, 'Unbalanced'):
            gene_rules.validate_tokens(gene_rules.tokenize('a and b)'))
        with self.assertRaisesRegex(gene_rules.GeneRuleError, 'Unexpected'):
            gene_rules.validate_tokens(gene_rules.tokenize('a b'))
        with self.assertRaisesRegex(gene_rules.GeneRuleError, 'Unexpected'):
            gene_rules.validate_tokens(gene_rules.tokenize('or a'))

    def test_get_gene_ids(self):
        self.assertEqual(gene_rules.get_gene_ids('(b2 and b1) or (b1 and b3)'), ['b2', 'b1', 'b3'])
        self.assertEqual(gene_rules.get_gene_ids('b1 b2'), ['b1', 'b2'])
        with self.assertRaises(gene_rules.GeneRuleError):
            gene_rules.get_gene_ids('b1 b2', validate=True)

    def test_flatten(self):
        self.assertEqual(gene_rules.flatten('( b0001  AND b0002 )\n  OR b0003'), '(b0001 and b0002) or b0003')
        self.assertEqual(gene_rules.flatten('b0001'), 'b0001')
        self.assertEqual(gene_rules.flatten(''), '')

    def test_substitute(self):
        self.assertEqual(gene_rules.substitute('(a and b) or c', {'a': 'G_a', 'c': 'G_c'}),
                         '(G_a and b) or G_c')
