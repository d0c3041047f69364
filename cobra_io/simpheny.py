""" Reading models from SimPheny exports

A SimPheny model is exported as a bundle of tab-separated files which share a base path:

* `<base>.rxn` (required): one row per reaction with the columns `ABBREVIATION`, `NAME`,
  `LOWER BOUND`, `UPPER BOUND`, `OBJECTIVE` and, optionally, `SUBSYSTEM`
* `<base>.cmp` (required): one row per compound (metabolite) with the columns `ABBREVIATION`,
  `NAME`, `FORMULA`, `CHARGE`, `COMPARTMENT` and, optionally, `COMPARTMENT NAME`
* `<base>.sto` (required): stoichiometric matrix; the header is `COMPOUND` followed by the
  abbreviations of the reactions and each row contains the abbreviation of a compound followed
  by its coefficients (`0` for compounds which do not participate in a reaction)
* `<base>.gpr` (optional): one row per reaction with the columns `REACTION` and `GENE ASSOCIATION`

Blank lines and lines which begin with `#` are ignored. Ids are used verbatim. Models cannot
be written in this format.

:Author: Jonathan Karr <karr@mssm.edu>
:Date: 2019-06-03
:Copyright: 2019, Karr Lab
:License: MIT
"""

from cobra_io import gene_rules
import collections
import cobra_io.core
import csv
import os

CODEC = 'simpheny'

REACTIONS = '.rxn'
COMPOUNDS = '.cmp'
STOICHIOMETRY = '.sto'
GENE_ASSOCIATIONS = '.gpr'
REQUIRED_MEMBERS = (REACTIONS, COMPOUNDS, STOICHIOMETRY)
MEMBERS = REQUIRED_MEMBERS + (GENE_ASSOCIATIONS,)


class SimphenyReader(object):
    """ Read models from SimPheny bundles """

    def run(self, source):
        """ Read a model from a SimPheny bundle

        Args:
            source (:obj:`str` or file-like): path to the bundle, or to any of its members, or a
                handle of one of its members

        Returns:
            :obj:`cobra_io.core.Model`: model

        Raises:
            :obj:`cobra_io.core.IncompleteBundle`: if a required member of the bundle is missing
            :obj:`cobra_io.core.MalformedInput`: if a member cannot be parsed
        """
        paths = self.get_paths(source)

        model = cobra_io.core.Model(id=os.path.basename(paths['base']))

        # compounds
        comps = collections.OrderedDict()
        mets = collections.OrderedDict()
        for row in self.read_table(paths[COMPOUNDS],
                                   ['ABBREVIATION', 'NAME', 'FORMULA', 'CHARGE', 'COMPARTMENT'],
                                   ['COMPARTMENT NAME']):
            comp_id = row['COMPARTMENT']
            comp = None
            if comp_id:
                comp = comps.get(comp_id, None)
                if comp is None:
                    comp = comps[comp_id] = model.compartments.create(
                        id=comp_id, name=row['COMPARTMENT NAME'] or comp_id)
            if row['ABBREVIATION'] in mets:
                raise cobra_io.core.SchemaViolation(CODEC, 'Compound "{}" is defined multiple times'.format(
                    row['ABBREVIATION']))
            mets[row['ABBREVIATION']] = model.metabolites.create(
                id=row['ABBREVIATION'], name=row['NAME'], formula=row['FORMULA'],
                charge=self.parse_float(row['CHARGE'], 'CHARGE', default=float('nan')),
                compartment=comp)

        # reactions
        rxns = collections.OrderedDict()
        for row in self.read_table(paths[REACTIONS],
                                   ['ABBREVIATION', 'NAME', 'LOWER BOUND', 'UPPER BOUND', 'OBJECTIVE'],
                                   ['SUBSYSTEM']):
            if row['ABBREVIATION'] in rxns:
                raise cobra_io.core.SchemaViolation(CODEC, 'Reaction "{}" is defined multiple times'.format(
                    row['ABBREVIATION']))
            rxns[row['ABBREVIATION']] = model.reactions.create(
                id=row['ABBREVIATION'], name=row['NAME'],
                lower_bound=self.parse_float(row['LOWER BOUND'], 'LOWER BOUND'),
                upper_bound=self.parse_float(row['UPPER BOUND'], 'UPPER BOUND'),
                objective_coefficient=self.parse_float(row['OBJECTIVE'], 'OBJECTIVE', default=0.),
                subsystem=row['SUBSYSTEM'])

        # stoichiometry
        self.read_stoichiometry(paths[STOICHIOMETRY], mets, rxns)

        # gene associations
        if paths[GENE_ASSOCIATIONS]:
            for row in self.read_table(paths[GENE_ASSOCIATIONS], ['REACTION', 'GENE ASSOCIATION']):
                rxn = rxns.get(row['REACTION'], None)
                if rxn is None:
                    raise cobra_io.core.SchemaViolation(
                        CODEC, 'Gene association refers to undefined reaction "{}"'.format(row['REACTION']))
                try:
                    gene_ids = gene_rules.get_gene_ids(row['GENE ASSOCIATION'], validate=True)
                except gene_rules.GeneRuleError as error:
                    raise cobra_io.core.MalformedInput(CODEC, str(error))
                rxn.gene_rule = gene_rules.flatten(row['GENE ASSOCIATION'])
                for gene_id in gene_ids:
                    if model.genes.get_one(id=gene_id) is None:
                        model.genes.create(id=gene_id)

        return model

    @staticmethod
    def get_paths(source):
        """ Get the paths of the members of a bundle

        Args:
            source (:obj:`str` or file-like): path to the bundle, or to any of its members, or a
                handle of one of its members

        Returns:
            :obj:`dict`: dictionary that maps `base` and the extension of each member to its path;
                the path of the optional gene association member is :obj:`None` if it doesn't exist

        Raises:
            :obj:`cobra_io.core.IncompleteBundle`: if a required member of the bundle is missing
        """
        if not isinstance(source, str):
            source = getattr(source, 'name', None)
            if not isinstance(source, str):
                raise cobra_io.core.IncompleteBundle(
                    CODEC, 'Bundles can only be read from paths or from handles of named files')

        base, ext = os.path.splitext(source)
        if ext.lower() not in MEMBERS:
            base = source

        paths = {'base': base}
        for member in MEMBERS:
            paths[member] = None
            for candidate in (base + member, base + member.upper()):
                if os.path.isfile(candidate):
                    paths[member] = candidate
                    break

        missing = [base + member for member in REQUIRED_MEMBERS if paths[member] is None]
        if missing:
            raise cobra_io.core.IncompleteBundle(CODEC, 'Bundle is missing required file(s):\n  {}'.format(
                '\n  '.join(missing)))
        return paths

    @staticmethod
    def read_rows(path):
        """ Read the non-blank, non-comment rows of a tab-separated file

        Args:
            path (:obj:`str`): path

        Returns:
            :obj:`list` of :obj:`list` of :obj:`str`: rows
        """
        with open(path, 'r', newline='') as file:
            lines = [line for line in file if line.strip() and not line.lstrip().startswith('#')]
        return [[cell.strip() for cell in row] for row in csv.reader(lines, delimiter='\t')]

    def read_table(self, path, required_columns, optional_columns=()):
        """ Read a tab-separated table with a header row

        Args:
            path (:obj:`str`): path
            required_columns (:obj:`list` of :obj:`str`): names of the required columns
            optional_columns (:obj:`list` of :obj:`str`, optional): names of the optional columns

        Returns:
            :obj:`list` of :obj:`dict`: rows; missing optional values are empty strings

        Raises:
            :obj:`cobra_io.core.MissingColumn`: if a required column is missing
        """
        rows = self.read_rows(path)
        if not rows:
            raise cobra_io.core.MissingColumn(CODEC, '{} has no header'.format(path))
        header = [heading.upper() for heading in rows[0]]

        missing = [column for column in required_columns if column not in header]
        if missing:
            raise cobra_io.core.MissingColumn(CODEC, '{} must have the column(s) {}'.format(
                path, ', '.join(missing)))

        table = []
        for row in rows[1:]:
            values = {column: '' for column in list(required_columns) + list(optional_columns)}
            for heading, value in zip(header, row):
                if heading in values:
                    values[heading] = value
            table.append(values)
        return table

    def read_stoichiometry(self, path, mets, rxns):
        """ Read a stoichiometric matrix and set the participants of reactions

        Args:
            path (:obj:`str`): path
            mets (:obj:`dict`): dictionary that maps ids to metabolites
            rxns (:obj:`dict`): dictionary that maps ids to reactions

        Raises:
            :obj:`cobra_io.core.SchemaViolation`: if the matrix refers to undefined compounds or reactions
        """
        rows = self.read_rows(path)
        if not rows or not rows[0] or rows[0][0].upper() != 'COMPOUND':
            raise cobra_io.core.MissingColumn(CODEC, '{} must begin with the column COMPOUND'.format(path))

        rxn_ids = rows[0][1:]
        undefined = [rxn_id for rxn_id in rxn_ids if rxn_id not in rxns]
        if undefined:
            raise cobra_io.core.SchemaViolation(CODEC, 'Stoichiometry refers to undefined reaction(s): {}'.format(
                ', '.join(undefined)))

        stoichiometries = collections.OrderedDict((rxn_id, collections.OrderedDict()) for rxn_id in rxn_ids)
        for row in rows[1:]:
            met = mets.get(row[0], None)
            if met is None:
                raise cobra_io.core.SchemaViolation(
                    CODEC, 'Stoichiometry refers to undefined compound "{}"'.format(row[0]))
            if len(row) - 1 > len(rxn_ids):
                raise cobra_io.core.MalformedInput(CODEC, 'Row "{}" of {} has too many values'.format(row[0], path))
            for rxn_id, value in zip(rxn_ids, row[1:]):
                coefficient = self.parse_float(value, 'stoichiometry', default=0.)
                if coefficient:
                    stoichiometries[rxn_id][met] = coefficient

        for rxn_id, stoichiometry in stoichiometries.items():
            rxns[rxn_id].set_stoichiometry(stoichiometry)

    @staticmethod
    def parse_float(value, column, default=None):
        """ Parse a number

        Args:
            value (:obj:`str`): value
            column (:obj:`str`): name of the column
            default (:obj:`float`, optional): value of empty cells

        Returns:
            :obj:`float`: number

        Raises:
            :obj:`cobra_io.core.MalformedInput`: if the value is not a number, or is empty and there is no default
        """
        if value == '' and default is not None:
            return default
        try:
            return float(value)
        except ValueError:
            raise cobra_io.core.MalformedInput(CODEC, 'Value "{}" of {} is not a number'.format(value, column))
