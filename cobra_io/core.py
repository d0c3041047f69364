""" Data model to represent constraint-based metabolic models.

This module defines classes that represent the canonical, format-independent schema
which all of the file format codecs translate to and from:

* :obj:`Model`
* :obj:`Compartment`
* :obj:`Metabolite`
* :obj:`Gene`
* :obj:`Reaction`
* :obj:`ReactionParticipant`
* :obj:`Annotation`

These are all instances of `obj_tables.Model`. A metabolic model contains ordered lists of
instances of each of these classes, interlinked by object references. For example, a
:obj:`Reaction` references the :obj:`ReactionParticipant` instances which represent its
stoichiometry, and each participant references a :obj:`Metabolite`.

This module also defines the errors raised by the readers and writers.

:Author: Jonathan Karr <karr@mssm.edu>
:Date: 2019-06-03
:Copyright: 2019, Karr Lab
:License: MIT
"""

from math import isinf, isnan
from obj_tables import (BooleanAttribute, FloatAttribute, LongStringAttribute,
                        RegexAttribute, StringAttribute, ManyToOneAttribute,
                        InvalidObject, InvalidAttribute)
from cobra_io import gene_rules
import collections
import obj_tables
import warnings

# ReactionParticipant and Annotation lack primary attributes. They are never serialized as
# independent tables, so suppress the corresponding schema warnings.
warnings.filterwarnings('ignore', '', obj_tables.SchemaWarning, 'obj_tables')


class AnnotatedMixin(object):
    """ Methods for objects which have multi-valued key/value annotations """

    def get_annotations(self):
        """ Get the annotations of the object

        Returns:
            :obj:`collections.OrderedDict`: dictionary that maps each key to a list of values
        """
        annotations = collections.OrderedDict()
        for annotation in self.annotations:
            annotations.setdefault(annotation.key, []).append(annotation.value)
        return annotations

    def add_annotations(self, annotations):
        """ Add annotations to the object

        Args:
            annotations (:obj:`dict`): dictionary that maps keys to values or lists of values
        """
        for key, values in annotations.items():
            if isinstance(values, str):
                values = [values]
            for value in values:
                self.add_annotation(key, value)

    def add_annotation(self, key, value):
        """ Add an annotation to the object, unless it is already present

        Args:
            key (:obj:`str`): key, such as an identifiers.org namespace
            value (:obj:`str`): value

        Returns:
            :obj:`Annotation`: annotation
        """
        value = str(value)
        annotation = self.annotations.get_one(key=key, value=value)
        if annotation is None:
            annotation = self.annotations.create(key=key, value=value)
        return annotation

    def has_annotation(self, key):
        """ Determine whether the object has at least one annotation with a key

        Args:
            key (:obj:`str`): key

        Returns:
            :obj:`bool`: :obj:`True` if the object has an annotation with key `key`
        """
        return any(annotation.key == key for annotation in self.annotations)


class Model(obj_tables.Model):
    """ Model

    Attributes:
        id (:obj:`str`): unique identifier
        name (:obj:`str`): name
        description (:obj:`str`): description
        objective_sense (:obj:`str`): direction of the objective, `max` or `min`
        extensions (:obj:`collections.OrderedDict`): toolbox-specific fields which are not part of
            the canonical schema; these are not interpreted, and only stored by the MATLAB codec

    Related attributes:

        * compartments (:obj:`list` of :obj:`Compartment`): compartments
        * metabolites (:obj:`list` of :obj:`Metabolite`): metabolites
        * genes (:obj:`list` of :obj:`Gene`): genes
        * reactions (:obj:`list` of :obj:`Reaction`): reactions
    """
    id = StringAttribute()
    name = StringAttribute()
    description = LongStringAttribute()
    objective_sense = RegexAttribute(pattern=r'^(max|min)$', default='max')

    class Meta(obj_tables.Model.Meta):
        attribute_order = ('id', 'name', 'description', 'objective_sense')

    def __init__(self, **kwargs):
        """
        Args:
            kwargs (:obj:`dict`, optional): dictionary of keyword arguments with keys equal to the names of the
                model attributes, plus `extensions`
        """
        extensions = kwargs.pop('extensions', None)
        super(Model, self).__init__(**kwargs)
        self.extensions = collections.OrderedDict(extensions or {})

    def get_compartment_names(self):
        """ Get the display names of the compartments

        Returns:
            :obj:`collections.OrderedDict`: dictionary that maps the id of each compartment to its name
        """
        return collections.OrderedDict((comp.id, comp.name) for comp in self.compartments)

    def get_objective(self):
        """ Get the coefficients of the objective

        Returns:
            :obj:`collections.OrderedDict`: dictionary that maps the ids of reactions with non-zero
                objective coefficients to their coefficients
        """
        return collections.OrderedDict((rxn.id, rxn.objective_coefficient)
                                       for rxn in self.reactions
                                       if rxn.objective_coefficient)

    def validate(self):
        """ Determine if the model is valid

        * Ids of compartments, metabolites, genes and reactions are unique

        Returns:
            :obj:`InvalidObject` or None: `None` if the object is valid,
                otherwise return a list of errors as an instance of `InvalidObject`
        """
        invalid_obj = super(Model, self).validate()
        if invalid_obj:
            errors = invalid_obj.attributes
        else:
            errors = []

        for attr_name in ('compartments', 'metabolites', 'genes', 'reactions'):
            counts = collections.Counter(obj.id for obj in getattr(self, attr_name))
            duplicates = sorted(id for id, count in counts.items() if count > 1)
            if duplicates:
                errors.append(InvalidAttribute(self.Meta.related_attributes[attr_name],
                                               ['Ids must be unique; the following ids are repeated: {}'.format(
                                                   ', '.join(duplicates))]))

        if errors:
            return InvalidObject(self, errors)
        return None


class Compartment(obj_tables.Model):
    """ Compartment

    Attributes:
        id (:obj:`str`): unique identifier
        name (:obj:`str`): display name
        model (:obj:`Model`): model

    Related attributes:

        * metabolites (:obj:`list` of :obj:`Metabolite`): metabolites in the compartment
    """
    id = StringAttribute(primary=True, unique=True)
    name = StringAttribute()
    model = ManyToOneAttribute(Model, related_name='compartments')

    class Meta(obj_tables.Model.Meta):
        attribute_order = ('id', 'name')


class Metabolite(obj_tables.Model, AnnotatedMixin):
    """ Metabolite

    Attributes:
        id (:obj:`str`): unique identifier, conventionally `<base>[<compartment>]`
        name (:obj:`str`): name
        model (:obj:`Model`): model
        compartment (:obj:`Compartment`): compartment
        formula (:obj:`str`): chemical formula
        charge (:obj:`float`): charge; `NaN` if the charge is unknown
        boundary (:obj:`bool`): if :obj:`True`, the metabolite represents an exchange pool

    Related attributes:

        * participants (:obj:`list` of :obj:`ReactionParticipant`): reaction participations
        * annotations (:obj:`list` of :obj:`Annotation`): annotations
    """
    id = StringAttribute(primary=True, unique=True)
    name = StringAttribute()
    model = ManyToOneAttribute(Model, related_name='metabolites')
    compartment = ManyToOneAttribute(Compartment, related_name='metabolites')
    formula = StringAttribute()
    charge = FloatAttribute()
    boundary = BooleanAttribute(default=False)

    class Meta(obj_tables.Model.Meta):
        attribute_order = ('id', 'name', 'compartment', 'formula', 'charge', 'boundary')

    def validate(self):
        """ Check that the metabolite is valid

        * The compartment belongs to the same model as the metabolite

        Returns:
            :obj:`InvalidObject` or None: `None` if the object is valid,
                otherwise return a list of errors as an instance of `InvalidObject`
        """
        invalid_obj = super(Metabolite, self).validate()
        if invalid_obj:
            errors = invalid_obj.attributes
        else:
            errors = []

        if self.compartment is not None and self.compartment.model is not self.model:
            errors.append(InvalidAttribute(self.Meta.attributes['compartment'],
                                           ['Compartment "{}" does not belong to the model'.format(self.compartment.id)]))

        if errors:
            return InvalidObject(self, errors)
        return None


class Gene(obj_tables.Model, AnnotatedMixin):
    """ Gene

    Attributes:
        id (:obj:`str`): unique identifier
        name (:obj:`str`): name
        model (:obj:`Model`): model

    Related attributes:

        * annotations (:obj:`list` of :obj:`Annotation`): annotations
    """
    id = StringAttribute(primary=True, unique=True)
    name = StringAttribute()
    model = ManyToOneAttribute(Model, related_name='genes')

    class Meta(obj_tables.Model.Meta):
        attribute_order = ('id', 'name')


class Reaction(obj_tables.Model, AnnotatedMixin):
    """ Reaction

    Attributes:
        id (:obj:`str`): unique identifier
        name (:obj:`str`): name
        model (:obj:`Model`): model
        lower_bound (:obj:`float`): lower flux bound
        upper_bound (:obj:`float`): upper flux bound
        objective_coefficient (:obj:`float`): coefficient of the reaction in the objective
        gene_rule (:obj:`str`): gene-reaction rule, a boolean expression over the ids of genes
        subsystem (:obj:`str`): subsystem

    Related attributes:

        * participants (:obj:`list` of :obj:`ReactionParticipant`): stoichiometry
        * annotations (:obj:`list` of :obj:`Annotation`): annotations
    """
    id = StringAttribute(primary=True, unique=True)
    name = StringAttribute()
    model = ManyToOneAttribute(Model, related_name='reactions')
    lower_bound = FloatAttribute(default=0.)
    upper_bound = FloatAttribute(default=1000.)
    objective_coefficient = FloatAttribute(nan=False, default=0.)
    gene_rule = LongStringAttribute()
    subsystem = StringAttribute()

    class Meta(obj_tables.Model.Meta):
        attribute_order = ('id', 'name', 'lower_bound', 'upper_bound', 'objective_coefficient',
                           'gene_rule', 'subsystem')

    def get_stoichiometry(self):
        """ Get the stoichiometry of the reaction

        Returns:
            :obj:`collections.OrderedDict`: dictionary that maps the ids of the participating metabolites
                to their signed coefficients
        """
        return collections.OrderedDict((part.metabolite.id, part.coefficient) for part in self.participants)

    def set_stoichiometry(self, stoichiometry):
        """ Add participants to the reaction

        Args:
            stoichiometry (:obj:`dict`): dictionary that maps metabolites (:obj:`Metabolite`) to signed coefficients
        """
        for metabolite, coefficient in stoichiometry.items():
            self.participants.create(metabolite=metabolite, coefficient=float(coefficient))

    def is_reversible(self):
        """ Determine whether the flux bounds allow the reaction to carry flux in both directions

        Returns:
            :obj:`bool`: :obj:`True` if the lower bound is negative
        """
        return self.lower_bound < 0

    def validate(self):
        """ Check that the reaction is valid

        * Each participant is a metabolite of the same model
        * Each coefficient is finite and non-zero
        * Each metabolite participates at most once
        * The gene-reaction rule is a valid boolean expression over the genes of the model
        * The lower bound is less than or equal to the upper bound

        Returns:
            :obj:`InvalidObject` or None: `None` if the object is valid,
                otherwise return a list of errors as an instance of `InvalidObject`
        """
        invalid_obj = super(Reaction, self).validate()
        if invalid_obj:
            errors = invalid_obj.attributes
        else:
            errors = []

        # stoichiometry
        part_errors = []
        met_ids = set()
        for part in self.participants:
            met = part.metabolite
            if met is None:
                part_errors.append('Participant must have a metabolite')
                continue
            if met.model is not self.model:
                part_errors.append('Metabolite "{}" does not belong to the model'.format(met.id))
            if met.id in met_ids:
                part_errors.append('Metabolite "{}" participates more than once'.format(met.id))
            met_ids.add(met.id)
            if part.coefficient == 0 or isnan(part.coefficient) or isinf(part.coefficient):
                part_errors.append('{}: coefficient must be a non-zero finite number'.format(part.serialize()))
        if part_errors:
            errors.append(InvalidAttribute(self.Meta.related_attributes['participants'], part_errors))

        # gene-reaction rule
        if self.gene_rule:
            try:
                gene_ids = gene_rules.get_gene_ids(self.gene_rule, validate=True)
            except gene_rules.GeneRuleError as error:
                errors.append(InvalidAttribute(self.Meta.attributes['gene_rule'], [str(error)]))
            else:
                if self.model is not None:
                    model_gene_ids = set(gene.id for gene in self.model.genes)
                    missing_ids = [id for id in gene_ids if id not in model_gene_ids]
                    if missing_ids:
                        errors.append(InvalidAttribute(self.Meta.attributes['gene_rule'],
                                                       ['Genes must be defined by the model: {}'.format(
                                                           ', '.join(missing_ids))]))

        # bounds
        if not isnan(self.lower_bound) and not isnan(self.upper_bound) and self.lower_bound > self.upper_bound:
            errors.append(InvalidAttribute(self.Meta.attributes['lower_bound'],
                                           ['Lower bound must be less than or equal to the upper bound']))

        if errors:
            return InvalidObject(self, errors)
        return None


class ReactionParticipant(obj_tables.Model):
    """ Participation of a metabolite in a reaction

    Attributes:
        reaction (:obj:`Reaction`): reaction
        metabolite (:obj:`Metabolite`): metabolite
        coefficient (:obj:`float`): signed stoichiometric coefficient; negative for reactants
    """
    reaction = ManyToOneAttribute(Reaction, related_name='participants')
    metabolite = ManyToOneAttribute(Metabolite, related_name='participants')
    coefficient = FloatAttribute(nan=False)

    class Meta(obj_tables.Model.Meta):
        attribute_order = ('reaction', 'metabolite', 'coefficient')

    def serialize(self):
        """ Generate a string representation

        Returns:
            :obj:`str`: string representation
        """
        return '({:g}) {}'.format(self.coefficient, self.metabolite.id if self.metabolite else '')


class Annotation(obj_tables.Model):
    """ Key/value annotation of a metabolite, reaction or gene

    Attributes:
        key (:obj:`str`): key, such as an identifiers.org namespace (e.g. `kegg.compound`)
        value (:obj:`str`): value
        metabolite (:obj:`Metabolite`): annotated metabolite
        reaction (:obj:`Reaction`): annotated reaction
        gene (:obj:`Gene`): annotated gene
    """
    key = StringAttribute(min_length=1)
    value = LongStringAttribute()
    metabolite = ManyToOneAttribute(Metabolite, related_name='annotations')
    reaction = ManyToOneAttribute(Reaction, related_name='annotations')
    gene = ManyToOneAttribute(Gene, related_name='annotations')

    class Meta(obj_tables.Model.Meta):
        attribute_order = ('key', 'value')

    def validate(self):
        """ Check that the annotation is attached to exactly one object

        Returns:
            :obj:`InvalidObject` or None: `None` if the object is valid,
                otherwise return a list of errors as an instance of `InvalidObject`
        """
        invalid_obj = super(Annotation, self).validate()
        if invalid_obj:
            errors = invalid_obj.attributes
        else:
            errors = []

        owners = [owner for owner in (self.metabolite, self.reaction, self.gene) if owner is not None]
        if len(owners) != 1:
            errors.append(InvalidAttribute(self.Meta.attributes['key'],
                                           ['Annotation must belong to exactly one metabolite, reaction, or gene']))

        if errors:
            return InvalidObject(self, errors)
        return None


class Validator(obj_tables.Validator):
    def run(self, model, get_related=True):
        """ Validate a model and return its errors

        Args:
            model (:obj:`Model`): model
            get_related (:obj:`bool`, optional): if true, get all related objects

        Returns:
            :obj:`InvalidObjectSet` or `None`: list of invalid objects/models and their errors
        """
        return super(Validator, self).run(model, get_related=get_related)


class CobraIoWarning(UserWarning):
    """ cobra_io warning """
    pass  # pragma: no cover


class CobraIoError(Exception):
    """ Base class for errors raised when reading or writing models """
    pass  # pragma: no cover


class UnknownFormat(CobraIoError):
    """ The format could not be determined from a token or a file extension """
    pass  # pragma: no cover


class UnsupportedFormat(CobraIoError):
    """ The format has no codec which supports the requested direction """
    pass  # pragma: no cover


class FileNotFound(CobraIoError):
    """ The source does not resolve to readable bytes """
    pass  # pragma: no cover


class DestinationRequired(CobraIoError):
    """ A model cannot be written because no destination was given or resolved """
    pass  # pragma: no cover


class MalformedInput(CobraIoError):
    """ A codec could not parse its input

    Attributes:
        codec (:obj:`str`): format token of the codec which raised the error
        detail (:obj:`str`): description of the problem
    """

    def __init__(self, codec, detail):
        """
        Args:
            codec (:obj:`str`): format token of the codec which raised the error
            detail (:obj:`str`): description of the problem
        """
        super(MalformedInput, self).__init__('{}: {}'.format(codec, detail))
        self.codec = codec
        self.detail = detail


class SchemaViolation(MalformedInput):
    """ The model violates the structural rules of the canonical schema (e.g., duplicate ids,
    dangling references) """
    pass  # pragma: no cover


class UnsupportedSbmlVersion(MalformedInput):
    """ The Level, Version, and fbc version of an SBML document are not supported """
    pass  # pragma: no cover


class IncompleteBundle(MalformedInput):
    """ A required member of a multi-file bundle is missing """
    pass  # pragma: no cover


class MissingSheet(MalformedInput):
    """ A required worksheet is missing from a workbook """
    pass  # pragma: no cover


class MissingColumn(MalformedInput):
    """ A required column is missing from a worksheet """
    pass  # pragma: no cover
