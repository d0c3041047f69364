""" Translation between canonical ids and flat SBML ids

SBML ids are formed from an optional type prefix (`M_`, `R_`, `G_`, or `C_`), a base id in which characters
which are not permitted in SBML ids are escaped as `__<code point>__`, and, for species, an optional
`_<compartment>` suffix. Canonical ids of metabolites have the form `<base>[<compartment>]`.

Prefixes and suffixes are stripped and attached for entire models, rather than for individual
ids, so that models which mix conventions are not partially rewritten. By default, a prefix is only
stripped if all of the ids of a type carry it, and compartment suffixes are only split if all of the
non-boundary species carry the suffix of their compartment.

:Author: Jonathan Karr <karr@mssm.edu>
:Date: 2019-06-03
:Copyright: 2019, Karr Lab
:License: MIT
"""

import collections
import re

ESCAPE_PATTERN = re.compile(r'([^0-9_a-zA-Z])')
UNESCAPE_PATTERN = re.compile(r'__(\d+)__')
COMPARTMENT_PATTERN = re.compile(r'^(.+)\[([^\[\]]+)\]$')

METABOLITE = 'metabolite'
REACTION = 'reaction'
GENE = 'gene'
COMPARTMENT = 'compartment'

SbmlSpecies = collections.namedtuple('SbmlSpecies', ['id', 'compartment', 'boundary'])
SbmlSpecies.__doc__ += ': identifier, compartment id, and boundary condition of an SBML species'


def escape_id(id):
    """ Escape the characters of an id which are not valid in SBML ids

    Args:
        id (:obj:`str`): id

    Returns:
        :obj:`str`: escaped id
    """
    return ESCAPE_PATTERN.sub(lambda match: escape_char(match.group(1)), id)


def unescape_id(id):
    """ Reverse :obj:`escape_id`

    Args:
        id (:obj:`str`): escaped id

    Returns:
        :obj:`str`: id
    """
    return UNESCAPE_PATTERN.sub(lambda match: chr(int(match.group(1))), id)


def escape_char(char):
    """ Escape a single character as `__<code point>__`

    Args:
        char (:obj:`str`): character

    Returns:
        :obj:`str`: escaped character
    """
    return '__{}__'.format(ord(char))


def has_suffix(id, suffix):
    """ Determine whether an escaped id ends with a suffix which does not begin inside an escape sequence

    Args:
        id (:obj:`str`): escaped id
        suffix (:obj:`str`): suffix

    Returns:
        :obj:`bool`: :obj:`True` if the id carries the suffix
    """
    if not id.endswith(suffix) or len(id) <= len(suffix):
        return False
    start = len(id) - len(suffix)
    return not any(match.start() < start < match.end() for match in UNESCAPE_PATTERN.finditer(id))


class IdNormalizer(object):
    """ Translate the ids of compartments, species, reactions, and gene products between SBML and
    the canonical representation

    Attributes:
        prefix_threshold (:obj:`float`): minimum fraction of the ids of a type which must carry the prefix
            of the type for the prefix to be stripped
        suffix_threshold (:obj:`float`): minimum fraction of the non-boundary species which must carry
            the suffix of their compartment for suffixes to be split
    """

    PREFIXES = {
        METABOLITE: 'M_',
        REACTION: 'R_',
        GENE: 'G_',
        COMPARTMENT: 'C_',
    }

    def __init__(self, prefix_threshold=1., suffix_threshold=1.):
        """
        Args:
            prefix_threshold (:obj:`float`, optional): minimum fraction of the ids of a type which must carry
                the prefix of the type for the prefix to be stripped
            suffix_threshold (:obj:`float`, optional): minimum fraction of the non-boundary species which must
                carry the suffix of their compartment for suffixes to be split
        """
        self.prefix_threshold = prefix_threshold
        self.suffix_threshold = suffix_threshold

    def is_consistent(self, n_matches, n_total, threshold):
        """ Determine whether a convention is used consistently enough to be applied

        Args:
            n_matches (:obj:`int`): number of ids which follow the convention
            n_total (:obj:`int`): number of ids
            threshold (:obj:`float`): minimum fraction

        Returns:
            :obj:`bool`: :obj:`True` if the convention should be applied
        """
        return n_total > 0 and n_matches > 0 and n_matches >= threshold * n_total

    def strip_prefix(self, ids, prefix):
        """ Strip a prefix from a list of ids, if it is consistently present

        Repeated prefixes (e.g., `M_M_a`) are stripped together so that the ids which are returned never
        carry the prefix.

        Args:
            ids (:obj:`list` of :obj:`str`): ids
            prefix (:obj:`str`): prefix

        Returns:
            :obj:`list` of :obj:`str`: ids
        """
        def is_prefixed(id):
            return id.startswith(prefix) and len(id) > len(prefix)

        n_prefixed = sum(1 for id in ids if is_prefixed(id))
        if not self.is_consistent(n_prefixed, len(ids), self.prefix_threshold):
            return list(ids)

        new_ids = []
        for id in ids:
            while is_prefixed(id):
                id = id[len(prefix):]
            new_ids.append(id)
        return new_ids

    def split_compartment_suffixes(self, ids, compartments, boundaries):
        """ Convert `<base>_<compartment>` ids to `<base>[<compartment>]`, if the suffixes are consistently present

        Boundary species are exempt from the decision whether to split suffixes.

        Args:
            ids (:obj:`list` of :obj:`str`): ids of species, without prefixes
            compartments (:obj:`list` of :obj:`str`): canonical id of the compartment of each species
            boundaries (:obj:`list` of :obj:`bool`): whether each species is a boundary species

        Returns:
            :obj:`list` of :obj:`str`: ids
        """
        def has_comp_suffix(id, comp):
            return bool(comp) and has_suffix(id, '_' + escape_id(comp))

        internal = [(id, comp) for id, comp, boundary in zip(ids, compartments, boundaries) if not boundary]
        n_suffixed = sum(1 for id, comp in internal if has_comp_suffix(id, comp))
        if not self.is_consistent(n_suffixed, len(internal), self.suffix_threshold):
            return [unescape_id(id) for id in ids]

        new_ids = []
        for id, comp in zip(ids, compartments):
            if has_comp_suffix(id, comp):
                base = id[0:-len(escape_id(comp)) - 1]
                new_ids.append('{}[{}]'.format(unescape_id(base), comp))
            else:
                new_ids.append(unescape_id(id))
        return new_ids

    def to_canonical(self, compartments=(), species=(), reactions=(), genes=()):
        """ Translate the SBML ids of a model to canonical ids

        Args:
            compartments (:obj:`list` of :obj:`str`): ids of the compartments
            species (:obj:`list` of :obj:`SbmlSpecies`): ids, compartments, and boundary conditions of the species
            reactions (:obj:`list` of :obj:`str`): ids of the reactions
            genes (:obj:`list` of :obj:`str`): ids of the gene products

        Returns:
            :obj:`dict`: dictionary that maps each type (`compartment`, `metabolite`, `reaction`, `gene`) to an
                ordered dictionary that maps SBML ids to canonical ids
        """
        comp_ids = [unescape_id(id) for id in self.strip_prefix(compartments, self.PREFIXES[COMPARTMENT])]
        comp_map = collections.OrderedDict(zip(compartments, comp_ids))

        met_ids = self.strip_prefix([s.id for s in species], self.PREFIXES[METABOLITE])
        met_ids = self.split_compartment_suffixes(met_ids,
                                                  [comp_map.get(s.compartment, s.compartment) for s in species],
                                                  [s.boundary for s in species])

        return {
            COMPARTMENT: comp_map,
            METABOLITE: collections.OrderedDict(zip([s.id for s in species], met_ids)),
            REACTION: collections.OrderedDict(zip(
                reactions, [unescape_id(id) for id in self.strip_prefix(reactions, self.PREFIXES[REACTION])])),
            GENE: collections.OrderedDict(zip(
                genes, [unescape_id(id) for id in self.strip_prefix(genes, self.PREFIXES[GENE])])),
        }

    def escape_base(self, type, id):
        """ Escape an id so that it does not begin with the prefix of its type

        Args:
            type (:obj:`str`): type of the id
            id (:obj:`str`): canonical id

        Returns:
            :obj:`str`: escaped id
        """
        escaped = escape_id(id)
        if escaped.startswith(self.PREFIXES[type]):
            escaped = escape_char(escaped[0]) + escaped[1:]
        return escaped

    def to_sbml(self, model):
        """ Translate the canonical ids of a model to SBML ids

        Ids which already begin with the prefix of their type, and metabolite ids which already end with
        the suffix of their compartment, are escaped so that they translate back to the same canonical ids.

        Args:
            model (:obj:`cobra_io.core.Model`): model

        Returns:
            :obj:`dict`: dictionary that maps each type (`compartment`, `metabolite`, `reaction`, `gene`) to an
                ordered dictionary that maps canonical ids to SBML ids
        """
        def prefixed(type, ids):
            return collections.OrderedDict((id, self.PREFIXES[type] + self.escape_base(type, id)) for id in ids)

        # attach suffixes only if every non-boundary metabolite is named after its compartment
        def split(met):
            match = COMPARTMENT_PATTERN.match(met.id)
            if match and met.compartment is not None and match.group(2) == met.compartment.id:
                return match.group(1), match.group(2)
            return None

        internal = [met for met in model.metabolites if not met.boundary]
        attach_suffixes = bool(internal) and all(split(met) for met in internal)

        met_map = collections.OrderedDict()
        for met in model.metabolites:
            parts = split(met) if attach_suffixes else None
            if parts:
                base = self.escape_base(METABOLITE, parts[0])
                met_map[met.id] = '{}{}_{}'.format(self.PREFIXES[METABOLITE], base, escape_id(parts[1]))
                continue

            base = self.escape_base(METABOLITE, met.id)
            if met.compartment is not None:
                comp = escape_id(met.compartment.id)
                if has_suffix(base, '_' + comp):
                    base = base[0:-len(comp) - 1] + escape_char('_') + comp
            met_map[met.id] = self.PREFIXES[METABOLITE] + base

        return {
            COMPARTMENT: prefixed(COMPARTMENT, [comp.id for comp in model.compartments]),
            METABOLITE: met_map,
            REACTION: prefixed(REACTION, [rxn.id for rxn in model.reactions]),
            GENE: prefixed(GENE, [gene.id for gene in model.genes]),
        }
