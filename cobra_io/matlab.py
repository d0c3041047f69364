""" Reading and writing models to/from MATLAB save files (.mat) as COBRA toolbox structs

Models are saved as a single struct with the following fields:

=======================  ================================================
Field                    Content
=======================  ================================================
modelID                  id of the model
modelName                name of the model
description              description of the model
osenseStr                sense of the objective (`max` or `min`)
comps                    ids of the compartments
compNames                names of the compartments
mets                     ids of the metabolites
metNames                 names of the metabolites
metComps                 ids of the compartments of the metabolites
metFormulas              formulae of the metabolites
metCharges               charges of the metabolites
metBoundary              whether each metabolite is a boundary metabolite
metAnnotations           JSON-encoded annotations of the metabolites
genes                    ids of the genes
geneNames                names of the genes
geneAnnotations          JSON-encoded annotations of the genes
rxns                     ids of the reactions
rxnNames                 names of the reactions
S                        sparse stoichiometric matrix
lb                       lower flux bounds
ub                       upper flux bounds
c                        objective coefficients
grRules                  gene-reaction rules
rules                    gene-reaction rules in terms of indices of genes
subSystems               subsystems of the reactions
rxnAnnotations           JSON-encoded annotations of the reactions
=======================  ================================================

All other fields of the struct are stored in :obj:`cobra_io.core.Model.extensions` and
saved without modification. This is the only lossless format.

:Author: Jonathan Karr <karr@mssm.edu>
:Date: 2019-06-03
:Copyright: 2019, Karr Lab
:License: MIT
"""

from cobra_io import gene_rules
from wc_utils.util.string import indent_forest
import collections
import cobra_io.core
import json
import numpy
import re
import scipy.io
import scipy.sparse
import warnings

CODEC = 'matlab-struct'

FIELDS = (
    'modelID', 'modelName', 'description', 'osenseStr',
    'comps', 'compNames',
    'mets', 'metNames', 'metComps', 'metFormulas', 'metCharges', 'metBoundary', 'metAnnotations',
    'genes', 'geneNames', 'geneAnnotations',
    'rxns', 'rxnNames', 'S', 'lb', 'ub', 'c', 'grRules', 'rules', 'subSystems', 'rxnAnnotations',
)
# fields of older toolbox versions which are read, but not written
LEGACY_FIELDS = ('metCharge', 'osense')
RULE_GENE_PATTERN = re.compile(r'x\((\d+)\)')
COMPARTMENT_PATTERN = re.compile(r'^.+\[([^\[\]]+)\]$')


class MatlabWriter(object):
    """ Write models to MATLAB save files """

    def __init__(self, variable_name='model'):
        """
        Args:
            variable_name (:obj:`str`, optional): name of the MATLAB variable which stores the model
        """
        self.variable_name = variable_name

    def run(self, model, destination):
        """ Write a model to a MATLAB save file

        Args:
            model (:obj:`cobra_io.core.Model`): model
            destination (:obj:`str` or file-like): path or binary handle of the file

        Raises:
            :obj:`cobra_io.core.SchemaViolation`: if the model is invalid
        """
        error = cobra_io.core.Validator().run(model, get_related=True)
        if error:
            raise cobra_io.core.SchemaViolation(CODEC, indent_forest(
                ['The model cannot be saved because it is invalid:', [error]]))

        struct = collections.OrderedDict()
        struct['modelID'] = model.id
        struct['modelName'] = model.name
        struct['description'] = model.description
        struct['osenseStr'] = model.objective_sense

        struct['comps'] = to_cell([comp.id for comp in model.compartments])
        struct['compNames'] = to_cell([comp.name for comp in model.compartments])

        mets = model.metabolites
        struct['mets'] = to_cell([met.id for met in mets])
        struct['metNames'] = to_cell([met.name for met in mets])
        struct['metComps'] = to_cell([met.compartment.id if met.compartment else '' for met in mets])
        struct['metFormulas'] = to_cell([met.formula for met in mets])
        struct['metCharges'] = to_column([met.charge for met in mets])
        struct['metBoundary'] = to_column([met.boundary for met in mets], dtype=bool)
        struct['metAnnotations'] = to_cell([encode_annotations(met) for met in mets])

        genes = model.genes
        struct['genes'] = to_cell([gene.id for gene in genes])
        struct['geneNames'] = to_cell([gene.name for gene in genes])
        struct['geneAnnotations'] = to_cell([encode_annotations(gene) for gene in genes])

        rxns = model.reactions
        met_indices = {met.id: i_met for i_met, met in enumerate(mets)}
        gene_indices = {gene.id: 'x({})'.format(i_gene + 1) for i_gene, gene in enumerate(genes)}
        stoichiometry = scipy.sparse.lil_matrix((len(mets), len(rxns)))
        for i_rxn, rxn in enumerate(rxns):
            for part in rxn.participants:
                stoichiometry[met_indices[part.metabolite.id], i_rxn] = part.coefficient
        struct['rxns'] = to_cell([rxn.id for rxn in rxns])
        struct['rxnNames'] = to_cell([rxn.name for rxn in rxns])
        struct['S'] = stoichiometry.tocsc()
        struct['lb'] = to_column([rxn.lower_bound for rxn in rxns])
        struct['ub'] = to_column([rxn.upper_bound for rxn in rxns])
        struct['c'] = to_column([rxn.objective_coefficient for rxn in rxns])
        struct['grRules'] = to_cell([rxn.gene_rule for rxn in rxns])
        struct['rules'] = to_cell([encode_rule(rxn.gene_rule, gene_indices) for rxn in rxns])
        struct['subSystems'] = to_cell([rxn.subsystem for rxn in rxns])
        struct['rxnAnnotations'] = to_cell([encode_annotations(rxn) for rxn in rxns])

        for key, val in model.extensions.items():
            if key in struct:
                warnings.warn('Extension field "{}" is ignored because it is a field of the canonical schema'.format(key),
                              cobra_io.core.CobraIoWarning)
                continue
            struct[key] = val

        scipy.io.savemat(destination, {self.variable_name: struct},
                         appendmat=False, long_field_names=True, do_compression=True, oned_as='column')


class MatlabReader(object):
    """ Read models from MATLAB save files """

    def __init__(self, variable_name=None):
        """
        Args:
            variable_name (:obj:`str`, optional): name of the MATLAB variable which stores the model; if
                :obj:`None`, read the first struct in the file
        """
        self.variable_name = variable_name

    def run(self, source):
        """ Read a model from a MATLAB save file

        Args:
            source (:obj:`str` or file-like): path or binary handle of the file

        Returns:
            :obj:`cobra_io.core.Model`: model

        Raises:
            :obj:`cobra_io.core.MalformedInput`: if the file does not contain a valid COBRA struct
        """
        data = scipy.io.loadmat(source, squeeze_me=False, struct_as_record=True, chars_as_strings=True)
        struct = self.get_struct(data)
        fields = collections.OrderedDict((name, struct[name][0, 0]) for name in struct.dtype.names)

        model = cobra_io.core.Model(id=decode_str(fields.get('modelID', None)),
                                    name=decode_str(fields.get('modelName', None)),
                                    description=decode_str(fields.get('description', None)))
        if 'osenseStr' in fields:
            model.objective_sense = decode_str(fields['osenseStr']) or 'max'
        elif 'osense' in fields:
            model.objective_sense = 'min' if decode_floats(fields['osense'], 1, 'osense')[0] > 0 else 'max'

        # compartments
        comp_ids = decode_cellstr(fields.get('comps', None))
        comp_names = decode_cellstr(fields.get('compNames', None)) or comp_ids
        self.check_length('compNames', comp_names, comp_ids)
        comps = collections.OrderedDict()
        for comp_id, comp_name in zip(comp_ids, comp_names):
            comps[comp_id] = model.compartments.create(id=comp_id, name=comp_name)

        # metabolites
        met_ids = decode_cellstr(fields.get('mets', None))
        n_mets = len(met_ids)
        met_names = self.get_cellstr(fields, 'metNames', n_mets)
        met_comps = self.get_compartments(fields, met_ids, comp_ids)
        met_formulas = self.get_cellstr(fields, 'metFormulas', n_mets)
        if 'metCharges' in fields:
            met_charges = decode_floats(fields['metCharges'], n_mets, 'metCharges')
        elif 'metCharge' in fields:
            met_charges = decode_floats(fields['metCharge'], n_mets, 'metCharge')
        else:
            met_charges = [float('nan')] * n_mets
        met_boundaries = [bool(val) for val in decode_floats(fields.get('metBoundary', None), n_mets, 'metBoundary',
                                                              default=0.)]
        met_annotations = self.get_cellstr(fields, 'metAnnotations', n_mets)

        mets = []
        for met_id, name, comp_id, formula, charge, boundary, annotations in zip(
                met_ids, met_names, met_comps, met_formulas, met_charges, met_boundaries, met_annotations):
            if comp_id and comp_id not in comps:
                comps[comp_id] = model.compartments.create(id=comp_id, name=comp_id)
            met = model.metabolites.create(id=met_id, name=name, compartment=comps.get(comp_id, None),
                                           formula=formula, charge=charge, boundary=boundary)
            decode_annotations(met, annotations)
            mets.append(met)

        # genes
        gene_ids = decode_cellstr(fields.get('genes', None))
        gene_names = self.get_cellstr(fields, 'geneNames', len(gene_ids))
        gene_annotations = self.get_cellstr(fields, 'geneAnnotations', len(gene_ids))
        for gene_id, name, annotations in zip(gene_ids, gene_names, gene_annotations):
            gene = model.genes.create(id=gene_id, name=name)
            decode_annotations(gene, annotations)

        # reactions
        rxn_ids = decode_cellstr(fields.get('rxns', None))
        n_rxns = len(rxn_ids)
        rxn_names = self.get_cellstr(fields, 'rxnNames', n_rxns)
        lower_bounds = decode_floats(fields.get('lb', None), n_rxns, 'lb', default=0.)
        upper_bounds = decode_floats(fields.get('ub', None), n_rxns, 'ub', default=0.)
        objective = decode_floats(fields.get('c', None), n_rxns, 'c', default=0.)
        if 'grRules' in fields:
            rules = self.get_cellstr(fields, 'grRules', n_rxns)
        else:
            rules = [decode_rule(rule, gene_ids) for rule in self.get_cellstr(fields, 'rules', n_rxns)]
        subsystems = self.get_subsystems(fields, n_rxns)
        rxn_annotations = self.get_cellstr(fields, 'rxnAnnotations', n_rxns)

        stoichiometry = fields.get('S', None)
        if stoichiometry is None:
            stoichiometry = scipy.sparse.csc_matrix((n_mets, n_rxns))
        stoichiometry = scipy.sparse.csc_matrix(stoichiometry)
        if stoichiometry.shape != (n_mets, n_rxns):
            raise cobra_io.core.MalformedInput(CODEC, 'S must be a {} x {} matrix, not {} x {}'.format(
                n_mets, n_rxns, *stoichiometry.shape))
        stoichiometry.sort_indices()

        for i_rxn, (rxn_id, name, lower_bound, upper_bound, coefficient, rule, subsystem, annotations) in enumerate(zip(
                rxn_ids, rxn_names, lower_bounds, upper_bounds, objective, rules, subsystems, rxn_annotations)):
            rxn = model.reactions.create(id=rxn_id, name=name,
                                         lower_bound=lower_bound, upper_bound=upper_bound,
                                         objective_coefficient=coefficient,
                                         gene_rule=rule, subsystem=subsystem)
            start = stoichiometry.indptr[i_rxn]
            end = stoichiometry.indptr[i_rxn + 1]
            rxn.set_stoichiometry(collections.OrderedDict(
                (mets[i_met], float(val))
                for i_met, val in zip(stoichiometry.indices[start:end], stoichiometry.data[start:end])
                if val))
            decode_annotations(rxn, annotations)

        # toolbox-specific fields
        for name, val in fields.items():
            if name not in FIELDS and name not in LEGACY_FIELDS:
                model.extensions[name] = val

        return model

    def get_struct(self, data):
        """ Get the struct which represents the model

        Args:
            data (:obj:`dict`): dictionary of MATLAB variables

        Returns:
            :obj:`numpy.ndarray`: struct

        Raises:
            :obj:`cobra_io.core.MalformedInput`: if the file does not contain a struct
        """
        if self.variable_name:
            names = [self.variable_name]
        else:
            names = [name for name in data.keys() if not name.startswith('__')]

        for name in names:
            val = data.get(name, None)
            if isinstance(val, numpy.ndarray) and val.dtype.names and val.size == 1:
                return val
        raise cobra_io.core.MalformedInput(CODEC, 'The file does not contain a model struct')

    @staticmethod
    def check_length(field, values, ids):
        """ Check that a field has one entry per object

        Args:
            field (:obj:`str`): name of the field
            values (:obj:`list`): values
            ids (:obj:`list` of :obj:`str`): ids of the objects

        Raises:
            :obj:`cobra_io.core.MalformedInput`: if the length of the field is incorrect
        """
        if len(values) != len(ids):
            raise cobra_io.core.MalformedInput(CODEC, '{} must have {} entries, not {}'.format(
                field, len(ids), len(values)))

    def get_cellstr(self, fields, name, n_values):
        """ Get a cell array of strings with one entry per object, defaulting to empty strings

        Args:
            fields (:obj:`dict`): fields of the struct
            name (:obj:`str`): name of the field
            n_values (:obj:`int`): number of objects

        Returns:
            :obj:`list` of :obj:`str`: values
        """
        if name not in fields:
            return [''] * n_values
        values = decode_cellstr(fields[name])
        self.check_length(name, values, [None] * n_values)
        return values

    def get_subsystems(self, fields, n_rxns):
        """ Get the subsystems of the reactions; nested cells of multiple subsystems are joined with `; `

        Args:
            fields (:obj:`dict`): fields of the struct
            n_rxns (:obj:`int`): number of reactions

        Returns:
            :obj:`list` of :obj:`str`: subsystems
        """
        if 'subSystems' not in fields:
            return [''] * n_rxns
        val = fields['subSystems']
        if isinstance(val, numpy.ndarray) and val.dtype == object:
            subsystems = ['; '.join(decode_cellstr(item)) if isinstance(item, numpy.ndarray) and item.dtype == object
                          else decode_str(item) for item in val.flatten()]
        else:
            subsystems = decode_cellstr(val)
        self.check_length('subSystems', subsystems, [None] * n_rxns)
        return subsystems

    def get_compartments(self, fields, met_ids, comp_ids):
        """ Get the ids of the compartments of the metabolites

        `metComps` may contain compartment ids or 1-based indices into `comps`. If `metComps` is
        absent, compartments are inferred from ids of the form `<base>[<compartment>]`.

        Args:
            fields (:obj:`dict`): fields of the struct
            met_ids (:obj:`list` of :obj:`str`): ids of the metabolites
            comp_ids (:obj:`list` of :obj:`str`): ids of the compartments

        Returns:
            :obj:`list` of :obj:`str`: ids of the compartments of the metabolites
        """
        val = fields.get('metComps', None)
        if val is None:
            met_comps = []
            for met_id in met_ids:
                match = COMPARTMENT_PATTERN.match(met_id)
                met_comps.append(match.group(1) if match else '')
            return met_comps

        if isinstance(val, numpy.ndarray) and val.dtype.kind in 'iuf':
            met_comps = []
            for index in decode_floats(val, len(met_ids), 'metComps'):
                if index < 1 or index > len(comp_ids) or index != int(index):
                    raise cobra_io.core.MalformedInput(CODEC, 'metComps index {} is out of range'.format(index))
                met_comps.append(comp_ids[int(index) - 1])
            return met_comps

        met_comps = decode_cellstr(val)
        self.check_length('metComps', met_comps, met_ids)
        return met_comps


def to_cell(values):
    """ Convert a list of strings to a column cell array

    Args:
        values (:obj:`list` of :obj:`str`): values

    Returns:
        :obj:`numpy.ndarray`: cell array
    """
    cell = numpy.empty((len(values), 1), dtype=object)
    for i_value, value in enumerate(values):
        cell[i_value, 0] = value
    return cell


def to_column(values, dtype=float):
    """ Convert a list of numbers to a column vector

    Args:
        values (:obj:`list`): values
        dtype (:obj:`type`, optional): type of the values

    Returns:
        :obj:`numpy.ndarray`: column vector
    """
    return numpy.array(values, dtype=dtype).reshape((len(values), 1))


def decode_str(value):
    """ Convert a MATLAB char array, or a cell which contains one, to a string

    Args:
        value (:obj:`numpy.ndarray`): value

    Returns:
        :obj:`str`: string
    """
    if value is None:
        return ''
    if isinstance(value, str):
        return value
    if isinstance(value, numpy.ndarray):
        if value.size == 0:
            return ''
        if value.dtype == object:
            return decode_str(value.flat[0])
        if value.dtype.kind == 'U':
            return ''.join(value.flatten().tolist())
        return str(value.flat[0])
    return str(value)


def decode_cellstr(value):
    """ Convert a MATLAB cell array of strings, or a char matrix, to a list of strings

    Args:
        value (:obj:`numpy.ndarray`): value

    Returns:
        :obj:`list` of :obj:`str`: strings
    """
    if value is None or value.size == 0:
        return []
    if value.dtype == object:
        return [decode_str(item) for item in value.flatten()]
    if value.dtype.kind == 'U':
        return [item.rstrip() for item in value.flatten().tolist()]
    raise cobra_io.core.MalformedInput(CODEC, 'Expected a cell array of strings, not {}'.format(value.dtype))


def decode_floats(value, n_values, field, default=float('nan')):
    """ Convert a MATLAB numeric array to a list of floats

    Args:
        value (:obj:`numpy.ndarray`): value
        n_values (:obj:`int`): expected number of values
        field (:obj:`str`): name of the field
        default (:obj:`float`, optional): value used for every entry if `value` is :obj:`None`

    Returns:
        :obj:`list` of :obj:`float`: values

    Raises:
        :obj:`cobra_io.core.MalformedInput`: if the array does not have `n_values` entries
    """
    if value is None:
        return [default] * n_values
    values = [float(val) for val in numpy.asarray(value, dtype=float).flatten()]
    if len(values) != n_values:
        raise cobra_io.core.MalformedInput(CODEC, '{} must have {} entries, not {}'.format(
            field, n_values, len(values)))
    return values


def encode_annotations(obj):
    """ Encode the annotations of an object in JSON

    Args:
        obj (:obj:`cobra_io.core.AnnotatedMixin`): metabolite, reaction or gene

    Returns:
        :obj:`str`: JSON-encoded list of pairs of keys and values
    """
    if not obj.annotations:
        return ''
    return json.dumps([[annotation.key, annotation.value] for annotation in obj.annotations])


def decode_annotations(obj, value):
    """ Decode JSON-encoded annotations of an object

    Args:
        obj (:obj:`cobra_io.core.AnnotatedMixin`): metabolite, reaction or gene
        value (:obj:`str`): JSON-encoded list of pairs of keys and values

    Raises:
        :obj:`cobra_io.core.MalformedInput`: if the annotations are not valid JSON
    """
    if not value:
        return
    try:
        pairs = json.loads(value)
    except ValueError as error:
        raise cobra_io.core.MalformedInput(CODEC, 'Annotations of "{}" are invalid: {}'.format(obj.id, str(error)))
    for key, val in pairs:
        obj.annotations.create(key=key, value=val)


def encode_rule(rule, gene_indices):
    """ Encode a gene-reaction rule in terms of the indices of genes (`x(1) & x(2)`)

    Args:
        rule (:obj:`str`): gene-reaction rule
        gene_indices (:obj:`dict`): dictionary that maps ids of genes to their references

    Returns:
        :obj:`str`: rule
    """
    tokens = []
    for token in gene_rules.tokenize(rule):
        if token == 'and':
            token = '&'
        elif token == 'or':
            token = '|'
        elif not gene_rules.is_operator(token):
            token = gene_indices[token]
        tokens.append(token)
    return gene_rules.join(tokens)


def decode_rule(rule, gene_ids):
    """ Decode a gene-reaction rule expressed in terms of the indices of genes

    Args:
        rule (:obj:`str`): rule, e.g. `x(1) & x(2)`
        gene_ids (:obj:`list` of :obj:`str`): ids of the genes

    Returns:
        :obj:`str`: gene-reaction rule

    Raises:
        :obj:`cobra_io.core.MalformedInput`: if a gene index is out of range
    """
    def replace(match):
        i_gene = int(match.group(1)) - 1
        if i_gene < 0 or i_gene >= len(gene_ids):
            raise cobra_io.core.MalformedInput(CODEC, 'Gene index {} is out of range'.format(i_gene + 1))
        return ' {} '.format(gene_ids[i_gene])
    return gene_rules.flatten(RULE_GENE_PATTERN.sub(replace, rule))
