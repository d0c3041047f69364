""" Writing models to human-readable text files

Each reaction is written as one tab-separated line with three columns: the id of the
reaction, its formula, and its flattened gene-reaction rule. This format is lossy and
cannot be read.

:Author: Jonathan Karr <karr@mssm.edu>
:Date: 2019-06-03
:Copyright: 2019, Karr Lab
:License: MIT
"""

from cobra_io import gene_rules
from cobra_io.util import format_reaction_formula
import io


class TextWriter(object):
    """ Write the reactions of models to text files """

    def run(self, model, destination):
        """ Write the reactions of a model to a text file

        Args:
            model (:obj:`cobra_io.core.Model`): model
            destination (:obj:`str` or file-like): path or handle of the file
        """
        text = self.export(model)
        if isinstance(destination, str):
            with open(destination, 'w', encoding='utf-8', newline='\n') as file:
                file.write(text)
        elif isinstance(destination, (io.RawIOBase, io.BufferedIOBase)) or 'b' in getattr(destination, 'mode', ''):
            destination.write(text.encode('utf-8'))
        else:
            destination.write(text)

    def export(self, model):
        """ Generate the text representation of a model

        Args:
            model (:obj:`cobra_io.core.Model`): model

        Returns:
            :obj:`str`: text
        """
        lines = []
        for rxn in model.reactions:
            lines.append('\t'.join([rxn.id, format_reaction_formula(rxn), gene_rules.flatten(rxn.gene_rule)]) + '\n')
        return ''.join(lines)
