""" Encoding/decoding `cobra_io` models to/from SBML and
reading/writing SBML-encoded models to/from XML files.

Models are always exported to SBML Level 3 Version 1 with version 2 of the flux balance
constraints (fbc) package. Models can be imported from the following combinations of SBML
levels, versions, and fbc versions:

=====  =======  ===========
Level  Version  fbc version
=====  =======  ===========
2      1-5      --
3      1        --, 1, 2
3      2        --, 2
=====  =======  ===========

`cobra_io` models are exported to SBML with the following class mapping:

=============================  =====================================================
cobra_io                       SBML
=============================  =====================================================
Model                          Model
Model.objective_sense          fbc:Objective.type
Compartment                    Compartment
Metabolite                     Species
Metabolite.formula             Species.fbc:chemicalFormula
Metabolite.charge              Species.fbc:charge
Gene                           fbc:GeneProduct
Reaction                       Reaction
Reaction.lower/upper_bound     Parameter, Reaction.fbc:lower/upperFluxBound
Reaction.objective_coefficient fbc:FluxObjective
Reaction.gene_rule             Reaction.fbc:GeneProductAssociation
ReactionParticipant            SpeciesReference
Annotation                     SBase.annotation (identifiers.org CVTerms, SBO terms)
=============================  =====================================================

Attributes which have no equivalent SBML attribute (e.g., subsystems) and annotations which
cannot be encoded as identifiers.org references are mapped to a custom ``SBase.annotation``.

Older documents are imported through a compatibility path: flux bounds and objective coefficients
are read from the ``LOWER_BOUND``, ``UPPER_BOUND``, and ``OBJECTIVE_COEFFICIENT`` parameters of
kinetic laws, and formulae, charges, gene-reaction rules, subsystems, and EC numbers are read
from the ``FORMULA``, ``CHARGE``, ``GENE_ASSOCIATION``, ``SUBSYSTEM``, and ``EC Number``
paragraphs of notes. Structured data takes precedence over notes, except for the charges of
Level 2 species whose notes override their ``charge`` attribute. Other notes are imported as
annotations. Notes which are superseded by structured data, and SBML constructs which have no
equivalent in `cobra_io` (e.g., rules, events, units), are not imported.

:Author: Jonathan Karr <karr@mssm.edu>
:Author: Arthur Goldberg <Arthur.Goldberg@mssm.edu>
:Date: 2019-06-03
:Copyright: 2017-2019, Karr Lab
:License: MIT
"""

from cobra_io import gene_rules
from cobra_io.sbml.normalize import IdNormalizer, SbmlSpecies, COMPARTMENT, METABOLITE, REACTION, GENE
from cobra_io.sbml.util import LibSbmlInterface
from math import isnan
from wc_utils.util.string import indent_forest
import collections
import io
import libsbml
import re
import cobra_io.core

call_libsbml = LibSbmlInterface.call_libsbml

CODEC = 'sbml'

SUPPORTED_VERSIONS = {
    (2, 1): (None,),
    (2, 2): (None,),
    (2, 3): (None,),
    (2, 4): (None,),
    (2, 5): (None,),
    (3, 1): (None, 1, 2),
    (3, 2): (None, 2),
}

FBC_VERSION = 2
SBO_FLUX_BOUND = 'SBO:0000625'
OBJECTIVE_ID = 'obj'
OBJECTIVE_TYPES = {'max': 'maximize', 'min': 'minimize'}
SID_PATTERN = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')
FORMULA_PATTERN = re.compile(r'^([A-Z][a-z]?[0-9]*)*$')

# keys of the custom annotations of attributes which have no SBML equivalent
ANNOTATION_PREFIX = 'annotation.'
ID_KEY = 'id'
DESCRIPTION_KEY = 'description'
SUBSYSTEM_KEY = 'subsystem'
CHARGE_KEY = 'charge'
FORMULA_KEY = 'formula'
EC_KEY = 'ec-code'


class SbmlWriter(object):
    """ Write `cobra_io` models to SBML-encoded XML files """

    def __init__(self, prefix_threshold=1., suffix_threshold=1.,
                 default_lower_bound=-1000., default_upper_bound=1000.):
        """
        Args:
            prefix_threshold (:obj:`float`, optional): minimum fraction of ids of a type which must carry a prefix
                for prefixes to be stripped on import
            suffix_threshold (:obj:`float`, optional): minimum fraction of species which must carry compartment
                suffixes for suffixes to be split on import
            default_lower_bound (:obj:`float`, optional): lower bound exported for reactions without a lower bound
            default_upper_bound (:obj:`float`, optional): upper bound exported for reactions without an upper bound
        """
        self.exporter = SbmlExporter(normalizer=IdNormalizer(prefix_threshold=prefix_threshold,
                                                              suffix_threshold=suffix_threshold),
                                     default_lower_bound=default_lower_bound,
                                     default_upper_bound=default_upper_bound)

    def run(self, model, destination):
        """ Write a `cobra_io` model to an SBML-encoded XML file

        Args:
            model (:obj:`cobra_io.core.Model`): model
            destination (:obj:`str` or file-like): path or handle to save the SBML-encoded XML document

        Raises:
            :obj:`cobra_io.core.SchemaViolation`: if the model is invalid
            :obj:`ValueError`: if the model could not be written to a SBML-encoded file
        """
        sbml_doc = self.exporter.run(model)

        if hasattr(destination, 'write'):
            xml = call_libsbml(libsbml.writeSBMLToString, sbml_doc)
            if isinstance(destination, (io.RawIOBase, io.BufferedIOBase)) or 'b' in getattr(destination, 'mode', ''):
                xml = xml.encode('utf-8')
            destination.write(xml)

        elif not call_libsbml(libsbml.writeSBMLToFile, sbml_doc, destination, returns_int=True):
            raise ValueError("Model '{}' could not be written to SBML at '{}'.".format(model.id, destination))


class SbmlReader(object):
    """ Read `cobra_io` models from SBML-encoded XML files """

    def __init__(self, prefix_threshold=1., suffix_threshold=1.,
                 default_lower_bound=-1000., default_upper_bound=1000.):
        """
        Args:
            prefix_threshold (:obj:`float`, optional): minimum fraction of ids of a type which must carry a prefix
                for prefixes to be stripped
            suffix_threshold (:obj:`float`, optional): minimum fraction of species which must carry compartment
                suffixes for suffixes to be split
            default_lower_bound (:obj:`float`, optional): lower bound of reversible reactions without bounds
            default_upper_bound (:obj:`float`, optional): upper bound of reactions without bounds
        """
        self.importer = SbmlImporter(normalizer=IdNormalizer(prefix_threshold=prefix_threshold,
                                                              suffix_threshold=suffix_threshold),
                                     default_lower_bound=default_lower_bound,
                                     default_upper_bound=default_upper_bound)

    def run(self, source):
        """ Read a `cobra_io` model from an SBML-encoded XML file

        Args:
            source (:obj:`str` or file-like): path or handle of SBML-encoded XML document

        Returns:
            :obj:`cobra_io.core.Model`: model

        Raises:
            :obj:`cobra_io.core.MalformedInput`: if the document is not well-formed XML or does not contain a model
        """
        if hasattr(source, 'read'):
            xml = source.read()
            if isinstance(xml, bytes):
                xml = xml.decode('utf-8')
            sbml_doc = call_libsbml(libsbml.readSBMLFromString, xml)
        else:
            sbml_doc = call_libsbml(libsbml.readSBMLFromFile, source)

        errors = []
        for i_error in range(call_libsbml(sbml_doc.getNumErrors, returns_int=True)):
            error = sbml_doc.getError(i_error)
            if error.getSeverity() == libsbml.LIBSBML_SEV_FATAL \
                    or (error.getCategory() == libsbml.LIBSBML_CAT_XML
                        and error.getSeverity() == libsbml.LIBSBML_SEV_ERROR):
                errors.append('{}: {}'.format(error.getShortMessage(), error.getMessage().strip()))
        if errors:
            raise cobra_io.core.MalformedInput(CODEC, indent_forest(['The document could not be parsed:', errors]))

        return self.importer.run(sbml_doc)


class SbmlExporter(object):
    """ Encode a `cobra_io` model into SBML

    Attributes:
        normalizer (:obj:`IdNormalizer`): translator of ids
        default_lower_bound (:obj:`float`): lower bound exported for reactions whose lower bound is `NaN`
        default_upper_bound (:obj:`float`): upper bound exported for reactions whose upper bound is `NaN`
    """

    def __init__(self, normalizer=None, default_lower_bound=-1000., default_upper_bound=1000.):
        """
        Args:
            normalizer (:obj:`IdNormalizer`, optional): translator of ids
            default_lower_bound (:obj:`float`, optional): lower bound exported for reactions whose lower bound is `NaN`
            default_upper_bound (:obj:`float`, optional): upper bound exported for reactions whose upper bound is `NaN`
        """
        self.normalizer = normalizer or IdNormalizer()
        self.default_lower_bound = default_lower_bound
        self.default_upper_bound = default_upper_bound

    def run(self, model):
        """ Encode a `cobra_io` model into SBML

        * Validate model
        * Generate SBML ids
        * Create SBML document
        * Create SBML model
        * Encode model objects in SBML and add to SBML model in dependent order

        Args:
            model (:obj:`cobra_io.core.Model`): model

        Returns:
            :obj:`libsbml.SBMLDocument`: SBML document with SBML-encoded model

        Raises:
            :obj:`cobra_io.core.SchemaViolation`: if the model is invalid or its ids cannot be encoded uniquely
        """
        # validate model
        error = cobra_io.core.Validator().run(model, get_related=True)
        if error:
            raise cobra_io.core.SchemaViolation(CODEC, indent_forest(
                ['The model cannot be exported to SBML because it is invalid:', [error]]))

        for obj in model.metabolites:
            if obj.compartment is None:
                raise cobra_io.core.SchemaViolation(
                    CODEC, 'Metabolite "{}" must belong to a compartment to be exported to SBML'.format(obj.id))

        # generate SBML ids
        sbml_ids = self.normalizer.to_sbml(model)
        all_ids = []
        for type_ids in sbml_ids.values():
            all_ids.extend(type_ids.values())
        for sbml_id in sbml_ids[REACTION].values():
            all_ids.append(self.gen_bound_id(sbml_id, 'lower'))
            all_ids.append(self.gen_bound_id(sbml_id, 'upper'))
        duplicates = sorted(id for id, count in collections.Counter(all_ids).items() if count > 1)
        if duplicates:
            raise cobra_io.core.SchemaViolation(CODEC, 'SBML ids must be unique; the following ids are repeated: {}'.format(
                ', '.join(duplicates)))

        # create an SBML document and model
        packages = {'fbc': FBC_VERSION}
        sbml_doc = LibSbmlInterface.create_doc(level=3, version=1, packages=packages)
        sbml_model = LibSbmlInterface.init_model(sbml_doc, packages=packages)
        model_fbc = call_libsbml(sbml_model.getPlugin, 'fbc')

        self.export_model(model, sbml_model)

        for comp in model.compartments:
            self.export_compartment(comp, sbml_model, sbml_ids)

        for met in model.metabolites:
            self.export_metabolite(met, sbml_model, sbml_ids)

        for gene in model.genes:
            self.export_gene(gene, model_fbc, sbml_ids)

        objective = call_libsbml(model_fbc.createObjective)
        call_libsbml(objective.setId, OBJECTIVE_ID)
        call_libsbml(objective.setType, OBJECTIVE_TYPES[model.objective_sense])
        call_libsbml(model_fbc.setActiveObjectiveId, OBJECTIVE_ID)

        for rxn in model.reactions:
            self.export_reaction(rxn, sbml_model, objective, sbml_ids)

        return sbml_doc

    def export_model(self, model, sbml_model):
        """ Encode the metadata of a model

        Args:
            model (:obj:`cobra_io.core.Model`): model
            sbml_model (:obj:`libsbml.Model`): SBML model
        """
        key_vals = []
        if model.id and SID_PATTERN.match(model.id):
            call_libsbml(sbml_model.setId, model.id)
        elif model.id:
            key_vals.append((ID_KEY, model.id))
        if model.name:
            call_libsbml(sbml_model.setName, model.name)
        if model.description:
            key_vals.append((DESCRIPTION_KEY, model.description))
        LibSbmlInterface.set_annotations(sbml_model, key_vals)

    def export_compartment(self, comp, sbml_model, sbml_ids):
        """ Encode a compartment

        Args:
            comp (:obj:`cobra_io.core.Compartment`): compartment
            sbml_model (:obj:`libsbml.Model`): SBML model
            sbml_ids (:obj:`dict`): SBML ids of the model objects
        """
        sbml_comp = call_libsbml(sbml_model.createCompartment)
        call_libsbml(sbml_comp.setId, sbml_ids[COMPARTMENT][comp.id])
        if comp.name:
            call_libsbml(sbml_comp.setName, comp.name)
        call_libsbml(sbml_comp.setConstant, True)

    def export_metabolite(self, met, sbml_model, sbml_ids):
        """ Encode a metabolite

        Args:
            met (:obj:`cobra_io.core.Metabolite`): metabolite
            sbml_model (:obj:`libsbml.Model`): SBML model
            sbml_ids (:obj:`dict`): SBML ids of the model objects
        """
        sbml_species = call_libsbml(sbml_model.createSpecies)
        call_libsbml(sbml_species.setId, sbml_ids[METABOLITE][met.id])
        if met.name:
            call_libsbml(sbml_species.setName, met.name)
        call_libsbml(sbml_species.setCompartment, sbml_ids[COMPARTMENT][met.compartment.id])
        call_libsbml(sbml_species.setBoundaryCondition, met.boundary)
        call_libsbml(sbml_species.setHasOnlySubstanceUnits, False)
        call_libsbml(sbml_species.setConstant, False)

        key_vals = []
        species_fbc = call_libsbml(sbml_species.getPlugin, 'fbc')
        if met.formula and FORMULA_PATTERN.match(met.formula):
            call_libsbml(species_fbc.setChemicalFormula, met.formula)
        elif met.formula:
            key_vals.append((FORMULA_KEY, met.formula))
        if float(met.charge).is_integer():
            call_libsbml(species_fbc.setCharge, int(met.charge))
        elif not isnan(met.charge):
            key_vals.append((CHARGE_KEY, repr(met.charge)))

        self.export_annotations(met, sbml_species, key_vals)

    def export_gene(self, gene, model_fbc, sbml_ids):
        """ Encode a gene

        Args:
            gene (:obj:`cobra_io.core.Gene`): gene
            model_fbc (:obj:`libsbml.FbcModelPlugin`): fbc plugin of the SBML model
            sbml_ids (:obj:`dict`): SBML ids of the model objects
        """
        sbml_gene = call_libsbml(model_fbc.createGeneProduct)
        call_libsbml(sbml_gene.setId, sbml_ids[GENE][gene.id])
        if gene.name:
            call_libsbml(sbml_gene.setName, gene.name)
        call_libsbml(sbml_gene.setLabel, gene.id)
        self.export_annotations(gene, sbml_gene, [])

    def export_reaction(self, rxn, sbml_model, objective, sbml_ids):
        """ Encode a reaction

        Args:
            rxn (:obj:`cobra_io.core.Reaction`): reaction
            sbml_model (:obj:`libsbml.Model`): SBML model
            objective (:obj:`libsbml.Objective`): SBML objective
            sbml_ids (:obj:`dict`): SBML ids of the model objects
        """
        sbml_rxn_id = sbml_ids[REACTION][rxn.id]
        sbml_rxn = call_libsbml(sbml_model.createReaction)
        call_libsbml(sbml_rxn.setId, sbml_rxn_id)
        if rxn.name:
            call_libsbml(sbml_rxn.setName, rxn.name)
        call_libsbml(sbml_rxn.setReversible, rxn.is_reversible())
        call_libsbml(sbml_rxn.setFast, False)

        # stoichiometry
        for part in rxn.participants:
            if part.coefficient < 0:
                sbml_part = call_libsbml(sbml_rxn.createReactant)
            else:
                sbml_part = call_libsbml(sbml_rxn.createProduct)
            call_libsbml(sbml_part.setSpecies, sbml_ids[METABOLITE][part.metabolite.id])
            call_libsbml(sbml_part.setStoichiometry, abs(part.coefficient))
            call_libsbml(sbml_part.setConstant, True)

        # flux bounds
        rxn_fbc = call_libsbml(sbml_rxn.getPlugin, 'fbc')
        lower_bound = self.default_lower_bound if isnan(rxn.lower_bound) else rxn.lower_bound
        upper_bound = self.default_upper_bound if isnan(rxn.upper_bound) else rxn.upper_bound
        lower_param = LibSbmlInterface.create_parameter(sbml_model, self.gen_bound_id(sbml_rxn_id, 'lower'),
                                                        lower_bound, sbo_term=SBO_FLUX_BOUND)
        upper_param = LibSbmlInterface.create_parameter(sbml_model, self.gen_bound_id(sbml_rxn_id, 'upper'),
                                                        upper_bound, sbo_term=SBO_FLUX_BOUND)
        call_libsbml(rxn_fbc.setLowerFluxBound, lower_param.getId())
        call_libsbml(rxn_fbc.setUpperFluxBound, upper_param.getId())

        # gene-reaction rule
        if rxn.gene_rule:
            gpa = call_libsbml(rxn_fbc.createGeneProductAssociation)
            # genes are referenced by id and must already exist
            call_libsbml(gpa.setAssociation, gene_rules.substitute(rxn.gene_rule, sbml_ids[GENE]), True, False)

        # objective
        if rxn.objective_coefficient:
            flux_obj = call_libsbml(objective.createFluxObjective)
            call_libsbml(flux_obj.setReaction, sbml_rxn_id)
            call_libsbml(flux_obj.setCoefficient, rxn.objective_coefficient)

        key_vals = []
        if rxn.subsystem:
            key_vals.append((SUBSYSTEM_KEY, rxn.subsystem))
        self.export_annotations(rxn, sbml_rxn, key_vals)

    def export_annotations(self, obj, sbml_obj, key_vals):
        """ Encode the annotations of an object as CVTerms and, if necessary, as custom annotations

        Args:
            obj (:obj:`cobra_io.core.AnnotatedMixin`): metabolite, reaction or gene
            sbml_obj (:obj:`libsbml.SBase`): SBML object
            key_vals (:obj:`list` of :obj:`tuple`): keys and values of attributes which have no SBML equivalent
        """
        annotations = [(annotation.key, annotation.value) for annotation in obj.annotations]
        others = LibSbmlInterface.set_cv_terms(sbml_obj, annotations)
        key_vals = key_vals + [(ANNOTATION_PREFIX + key, val) for key, val in others]
        LibSbmlInterface.set_annotations(sbml_obj, key_vals)

    @staticmethod
    def gen_bound_id(sbml_rxn_id, bound):
        """ Generate the id of the parameter which represents a flux bound of a reaction

        Args:
            sbml_rxn_id (:obj:`str`): SBML id of the reaction
            bound (:obj:`str`): `lower` or `upper`

        Returns:
            :obj:`str`: id of the parameter
        """
        return '{}_{}_bound'.format(sbml_rxn_id, bound)


class SbmlImporter(object):
    """ Import a `cobra_io` model from an SBML-encoded model

    Attributes:
        normalizer (:obj:`IdNormalizer`): translator of ids
        default_lower_bound (:obj:`float`): lower bound of reversible reactions without bounds
        default_upper_bound (:obj:`float`): upper bound of reactions without bounds
    """

    def __init__(self, normalizer=None, default_lower_bound=-1000., default_upper_bound=1000.):
        """
        Args:
            normalizer (:obj:`IdNormalizer`, optional): translator of ids
            default_lower_bound (:obj:`float`, optional): lower bound of reversible reactions without bounds
            default_upper_bound (:obj:`float`, optional): upper bound of reactions without bounds
        """
        self.normalizer = normalizer or IdNormalizer()
        self.default_lower_bound = default_lower_bound
        self.default_upper_bound = default_upper_bound

    def run(self, sbml_doc):
        """ Import a `cobra_io` model from an SBML-encoded model

        Args:
            sbml_doc (:obj:`libsbml.SBMLDocument`): SBML document with SBML-encoded model

        Returns:
            :obj:`cobra_io.core.Model`: model

        Raises:
            :obj:`cobra_io.core.UnsupportedSbmlVersion`: if the level, version, and fbc version of the document
                are not supported
            :obj:`cobra_io.core.SchemaViolation`: if ids are repeated or references are dangling
            :obj:`cobra_io.core.MalformedInput`: if the document does not contain a model
        """
        level = call_libsbml(sbml_doc.getLevel, returns_int=True)
        version = call_libsbml(sbml_doc.getVersion, returns_int=True)
        fbc_version = self.get_fbc_version(sbml_doc)
        if fbc_version not in SUPPORTED_VERSIONS.get((level, version), ()):
            raise cobra_io.core.UnsupportedSbmlVersion(
                CODEC, 'SBML Level {} Version {}{} is not supported'.format(
                    level, version, ' with fbc version {}'.format(fbc_version) if fbc_version else ''))

        # convert fbc version 1 to version 2
        if fbc_version == 1:
            props = call_libsbml(libsbml.ConversionProperties)
            call_libsbml(props.addOption, 'convert fbc v1 to fbc v2', True, 'Convert FBC-v1 model to FBC-v2')
            call_libsbml(sbml_doc.convert, props)

        sbml_model = sbml_doc.getModel()
        if sbml_model is None:
            raise cobra_io.core.MalformedInput(CODEC, 'The document does not contain a model')
        model_fbc = sbml_model.getPlugin('fbc') if fbc_version else None

        # translate ids
        sbml_comps = list(sbml_model.getListOfCompartments())
        sbml_species = list(sbml_model.getListOfSpecies())
        sbml_rxns = list(sbml_model.getListOfReactions())
        sbml_genes = list(model_fbc.getListOfGeneProducts()) if model_fbc else []

        ids = self.normalizer.to_canonical(
            compartments=[sbml_comp.getIdAttribute() for sbml_comp in sbml_comps],
            species=[SbmlSpecies(s.getIdAttribute(), s.getCompartment(), s.getBoundaryCondition())
                     for s in sbml_species],
            reactions=[sbml_rxn.getIdAttribute() for sbml_rxn in sbml_rxns],
            genes=[sbml_gene.getIdAttribute() for sbml_gene in sbml_genes])
        self.check_unique(ids, {
            COMPARTMENT: sbml_comps,
            METABOLITE: sbml_species,
            REACTION: sbml_rxns,
            GENE: sbml_genes,
        })

        # create model objects
        model = cobra_io.core.Model()
        self.import_model(sbml_model, model, model_fbc)

        comps = {}
        for sbml_comp in sbml_comps:
            sbml_id = sbml_comp.getIdAttribute()
            comps[sbml_id] = model.compartments.create(id=ids[COMPARTMENT][sbml_id], name=sbml_comp.getName())

        mets = {}
        for sbml_met in sbml_species:
            mets[sbml_met.getIdAttribute()] = self.import_metabolite(sbml_met, model, comps, ids, level)

        genes = {}
        for sbml_gene in sbml_genes:
            sbml_id = sbml_gene.getIdAttribute()
            gene = genes[sbml_id] = model.genes.create(id=ids[GENE][sbml_id], name=sbml_gene.getName())
            self.import_annotations(sbml_gene, gene)

        objective = self.get_objective(model_fbc, ids)
        if objective is not None:
            model.objective_sense = objective[0]

        for sbml_rxn in sbml_rxns:
            rxn = self.import_reaction(sbml_rxn, sbml_model, model, mets, genes, ids, level)
            if objective is not None:
                rxn.objective_coefficient = objective[1].get(rxn.id, 0.)

        # create genes referenced by gene-reaction rules which are not gene products
        for rxn in model.reactions:
            for gene_id in gene_rules.get_gene_ids(rxn.gene_rule):
                if model.genes.get_one(id=gene_id) is None:
                    model.genes.create(id=gene_id, name=gene_id)

        return model

    @staticmethod
    def get_fbc_version(sbml_doc):
        """ Get the version of the fbc package used by a document

        Args:
            sbml_doc (:obj:`libsbml.SBMLDocument`): SBML document

        Returns:
            :obj:`int`: fbc version, or :obj:`None` if the document does not use fbc
        """
        doc_fbc = sbml_doc.getPlugin('fbc')
        if doc_fbc is None:
            return None
        return doc_fbc.getPackageVersion()

    @staticmethod
    def check_unique(ids, sbml_objs):
        """ Check that the SBML ids and the canonical ids of each type are unique

        Args:
            ids (:obj:`dict`): dictionary that maps types to dictionaries that map SBML ids to canonical ids
            sbml_objs (:obj:`dict`): dictionary that maps types to lists of SBML objects

        Raises:
            :obj:`cobra_io.core.SchemaViolation`: if ids are repeated
        """
        errors = []
        for type, type_sbml_objs in sbml_objs.items():
            sbml_ids = [sbml_obj.getIdAttribute() for sbml_obj in type_sbml_objs]
            for id_type, type_ids in (('SBML', sbml_ids), ('canonical', list(ids[type].values()))):
                duplicates = sorted(id for id, count in collections.Counter(type_ids).items() if count > 1)
                if duplicates:
                    errors.append('{} ids of {}s must be unique: {}'.format(id_type, type, ', '.join(duplicates)))
        if errors:
            raise cobra_io.core.SchemaViolation(CODEC, indent_forest(['Ids are repeated:', errors]))

    def import_model(self, sbml_model, model, model_fbc):
        """ Import the metadata of a model

        Args:
            sbml_model (:obj:`libsbml.Model`): SBML model
            model (:obj:`cobra_io.core.Model`): model
            model_fbc (:obj:`libsbml.FbcModelPlugin`): fbc plugin of the SBML model
        """
        model.id = sbml_model.getIdAttribute()
        model.name = sbml_model.getName()
        for key, val in LibSbmlInterface.parse_annotations(sbml_model):
            if key == ID_KEY:
                model.id = val
            elif key == DESCRIPTION_KEY:
                model.description = val

    def import_metabolite(self, sbml_species, model, comps, ids, level):
        """ Import a species

        Args:
            sbml_species (:obj:`libsbml.Species`): SBML species
            model (:obj:`cobra_io.core.Model`): model
            comps (:obj:`dict`): dictionary that maps SBML ids to compartments
            ids (:obj:`dict`): dictionary that maps types to dictionaries that map SBML ids to canonical ids
            level (:obj:`int`): SBML level of the document

        Returns:
            :obj:`cobra_io.core.Metabolite`: metabolite

        Raises:
            :obj:`cobra_io.core.SchemaViolation`: if the compartment of the species is undefined
        """
        sbml_id = sbml_species.getIdAttribute()
        comp = comps.get(sbml_species.getCompartment(), None)
        if comp is None:
            raise cobra_io.core.SchemaViolation(CODEC, 'Compartment "{}" of species "{}" is undefined'.format(
                sbml_species.getCompartment(), sbml_id))

        met = model.metabolites.create(id=ids[METABOLITE][sbml_id],
                                       name=sbml_species.getName(),
                                       compartment=comp,
                                       boundary=sbml_species.getBoundaryCondition())

        notes = Notes(LibSbmlInterface.parse_notes(sbml_species))
        custom = collections.OrderedDict(LibSbmlInterface.parse_annotations(sbml_species))
        species_fbc = sbml_species.getPlugin('fbc')

        # formula: fbc > custom annotation > notes
        note_formula = notes.take('FORMULA')
        if species_fbc is not None and species_fbc.isSetChemicalFormula():
            met.formula = species_fbc.getChemicalFormula()
        elif FORMULA_KEY in custom:
            met.formula = custom[FORMULA_KEY]
        elif note_formula:
            met.formula = note_formula

        # charge: Level 2 notes > Level 2 attribute; Level 3 fbc > custom annotation > notes
        note_charge = parse_float(notes.take('CHARGE'))
        if level < 3:
            if note_charge is not None:
                met.charge = note_charge
            elif sbml_species.isSetCharge():
                met.charge = float(sbml_species.getCharge())
        elif species_fbc is not None and species_fbc.isSetCharge():
            met.charge = float(species_fbc.getCharge())
        elif parse_float(custom.get(CHARGE_KEY, None)) is not None:
            met.charge = parse_float(custom[CHARGE_KEY])
        elif note_charge is not None:
            met.charge = note_charge

        self.import_annotations(sbml_species, met, notes=notes)
        return met

    def import_reaction(self, sbml_rxn, sbml_model, model, mets, genes, ids, level):
        """ Import a reaction

        Args:
            sbml_rxn (:obj:`libsbml.Reaction`): SBML reaction
            sbml_model (:obj:`libsbml.Model`): SBML model
            model (:obj:`cobra_io.core.Model`): model
            mets (:obj:`dict`): dictionary that maps SBML ids to metabolites
            genes (:obj:`dict`): dictionary that maps SBML ids to genes
            ids (:obj:`dict`): dictionary that maps types to dictionaries that map SBML ids to canonical ids
            level (:obj:`int`): SBML level of the document

        Returns:
            :obj:`cobra_io.core.Reaction`: reaction

        Raises:
            :obj:`cobra_io.core.SchemaViolation`: if the reaction references undefined species, gene products,
                or parameters
        """
        sbml_id = sbml_rxn.getIdAttribute()
        rxn = model.reactions.create(id=ids[REACTION][sbml_id], name=sbml_rxn.getName())

        # stoichiometry
        stoichiometry = collections.OrderedDict()
        for sign, sbml_parts in ((-1., sbml_rxn.getListOfReactants()), (1., sbml_rxn.getListOfProducts())):
            for sbml_part in sbml_parts:
                met = mets.get(sbml_part.getSpecies(), None)
                if met is None:
                    raise cobra_io.core.SchemaViolation(CODEC, 'Species "{}" of reaction "{}" is undefined'.format(
                        sbml_part.getSpecies(), sbml_id))
                coefficient = sbml_part.getStoichiometry()
                if isnan(coefficient):
                    coefficient = 1.
                stoichiometry[met] = stoichiometry.get(met, 0.) + sign * coefficient
        rxn.set_stoichiometry(collections.OrderedDict(
            (met, coefficient) for met, coefficient in stoichiometry.items() if coefficient))

        # flux bounds: fbc > kinetic law parameters > defaults
        rxn_fbc = sbml_rxn.getPlugin('fbc')
        kinetic_law = sbml_rxn.getKineticLaw() if sbml_rxn.isSetKineticLaw() else None
        for bound in ('lower', 'upper'):
            value = None
            if rxn_fbc is not None and getattr(rxn_fbc, 'isSet{}FluxBound'.format(bound.capitalize()))():
                param_id = getattr(rxn_fbc, 'get{}FluxBound'.format(bound.capitalize()))()
                param = sbml_model.getParameter(param_id)
                if param is None:
                    raise cobra_io.core.SchemaViolation(CODEC, 'Flux bound "{}" of reaction "{}" is undefined'.format(
                        param_id, sbml_id))
                value = param.getValue()
            elif kinetic_law is not None and kinetic_law.getParameter(bound.upper() + '_BOUND') is not None:
                value = kinetic_law.getParameter(bound.upper() + '_BOUND').getValue()

            if value is None and bound == 'lower':
                value = self.default_lower_bound if sbml_rxn.getReversible() else 0.
            elif value is None:
                value = self.default_upper_bound
            setattr(rxn, bound + '_bound', value)

        if kinetic_law is not None and kinetic_law.getParameter('OBJECTIVE_COEFFICIENT') is not None:
            rxn.objective_coefficient = kinetic_law.getParameter('OBJECTIVE_COEFFICIENT').getValue()

        notes = Notes(LibSbmlInterface.parse_notes(sbml_rxn))
        custom = collections.OrderedDict(LibSbmlInterface.parse_annotations(sbml_rxn))

        # gene-reaction rule: fbc > notes
        note_rule = notes.take('GENE_ASSOCIATION')
        gpa = rxn_fbc.getGeneProductAssociation() if rxn_fbc is not None else None
        if gpa is not None and gpa.getAssociation() is not None:
            rxn.gene_rule = self.import_association(gpa.getAssociation(), genes, sbml_id)
        elif note_rule:
            rxn.gene_rule = gene_rules.flatten(note_rule)

        # subsystem: custom annotation > notes
        note_subsystem = notes.take('SUBSYSTEM')
        rxn.subsystem = custom.get(SUBSYSTEM_KEY, None) or note_subsystem or ''

        # EC numbers: annotations > notes
        note_ec = notes.take('EC_NUMBER')
        self.import_annotations(sbml_rxn, rxn, notes=notes)
        if note_ec and not rxn.has_annotation(EC_KEY):
            for ec_number in re.split(r'\s*(?:,|;|\bor\b|\band\b)\s*', note_ec):
                if ec_number:
                    rxn.add_annotation(EC_KEY, ec_number)

        return rxn

    def import_association(self, association, genes, sbml_rxn_id):
        """ Import an fbc gene product association as a gene-reaction rule

        Args:
            association (:obj:`libsbml.FbcAssociation`): association
            genes (:obj:`dict`): dictionary that maps SBML ids to genes
            sbml_rxn_id (:obj:`str`): SBML id of the reaction

        Returns:
            :obj:`str`: gene-reaction rule

        Raises:
            :obj:`cobra_io.core.SchemaViolation`: if the association references an undefined gene product
        """
        if association.isGeneProductRef():
            gene = genes.get(association.getGeneProduct(), None)
            if gene is None:
                raise cobra_io.core.SchemaViolation(CODEC, 'Gene product "{}" of reaction "{}" is undefined'.format(
                    association.getGeneProduct(), sbml_rxn_id))
            return gene.id

        if association.isFbcOr():
            operator = ' or '
        elif association.isFbcAnd():
            operator = ' and '
        else:
            return ''

        terms = []
        for child in association.getListOfAssociations():
            term = self.import_association(child, genes, sbml_rxn_id)
            if term and (child.isFbcOr() or child.isFbcAnd()):
                term = '(' + term + ')'
            if term:
                terms.append(term)
        return operator.join(terms)

    @staticmethod
    def get_objective(model_fbc, ids):
        """ Get the active objective of an fbc model

        Args:
            model_fbc (:obj:`libsbml.FbcModelPlugin`): fbc plugin of the SBML model
            ids (:obj:`dict`): dictionary that maps types to dictionaries that map SBML ids to canonical ids

        Returns:
            :obj:`tuple`: sense of the objective (`max` or `min`) and a dictionary that maps the canonical
                ids of reactions to their objective coefficients; :obj:`None` if the model has no objective
        """
        if model_fbc is None or not model_fbc.getNumObjectives():
            return None

        obj_id = model_fbc.getActiveObjectiveId()
        sbml_obj = model_fbc.getObjective(obj_id) if obj_id else None
        if sbml_obj is None:
            sbml_obj = model_fbc.getObjective(0)

        sense = 'min' if sbml_obj.getType() == 'minimize' else 'max'
        coefficients = {}
        for flux_obj in sbml_obj.getListOfFluxObjectives():
            rxn_id = ids[REACTION].get(flux_obj.getReaction(), None)
            if rxn_id is None:
                raise cobra_io.core.SchemaViolation(CODEC, 'Reaction "{}" of the objective is undefined'.format(
                    flux_obj.getReaction()))
            coefficients[rxn_id] = flux_obj.getCoefficient()
        return (sense, coefficients)

    @staticmethod
    def import_annotations(sbml_obj, obj, notes=None):
        """ Import the CVTerms, custom annotations, and remaining notes of an SBML object as annotations

        Args:
            sbml_obj (:obj:`libsbml.SBase`): SBML object
            obj (:obj:`cobra_io.core.AnnotatedMixin`): metabolite, reaction or gene
            notes (:obj:`Notes`, optional): notes which have not been imported into attributes
        """
        for key, val in LibSbmlInterface.get_cv_terms(sbml_obj):
            obj.add_annotation(key, val)
        for key, val in LibSbmlInterface.parse_annotations(sbml_obj):
            if key.startswith(ANNOTATION_PREFIX):
                obj.add_annotation(key[len(ANNOTATION_PREFIX):], val)
        if notes:
            for key, val in notes.items():
                obj.add_annotation(key, val)


class Notes(collections.OrderedDict):
    """ `KEY: value` paragraphs of the notes of an SBML object, looked up case-insensitively and
    without distinguishing spaces from underscores """

    @staticmethod
    def normalize_key(key):
        return key.upper().replace(' ', '_')

    def take(self, key):
        """ Remove a note and return its value

        Args:
            key (:obj:`str`): normalized key (e.g. `GENE_ASSOCIATION`)

        Returns:
            :obj:`str`: value, or :obj:`None` if the object does not have the note
        """
        for note_key in list(self.keys()):
            if self.normalize_key(note_key) == key:
                return super(Notes, self).pop(note_key)
        return None


def parse_float(value):
    """ Parse a float, ignoring invalid values

    Args:
        value (:obj:`str`): value

    Returns:
        :obj:`float`: value, or :obj:`None` if `value` is not a number
    """
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None
