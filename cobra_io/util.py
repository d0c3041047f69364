""" Utilities

:Author: Jonathan Karr <karr@mssm.edu>
:Date: 2019-06-03
:Copyright: 2019, Karr Lab
:License: MIT
"""

import collections
import re

FORWARD_ARROWS = ('->', '-->', '=>')
REVERSIBLE_ARROWS = ('<=>', '<==>', '<->')
BACKWARD_ARROWS = ('<-', '<--')
ARROW_PATTERN = re.compile(r'(?:^|\s+)(<==>|<=>|<->|<--|-->|<-|->|=>)(?:\s+|$)')
COMPARTMENT_PREFIX_PATTERN = re.compile(r'^\s*\[([^\[\]]+)\]\s*:\s*(.*)$')
PLUS_PATTERN = re.compile(r'\s+\+\s+')
TERM_PATTERN = re.compile(r'^(?:\(?(\d*\.?\d+(?:[eE][\-+]?\d+)?)\)?\s+)?(\S+)$')


def get_model_size(model):
    """ Get numbers of model components

    Args:
        model (:obj:`cobra_io.core.Model`): model

    Returns:
        :obj:`dict`: dictionary with numbers of each type of model component
    """
    return {
        "compartments": len(model.compartments),
        "metabolites": len(model.metabolites),
        "genes": len(model.genes),
        "reactions": len(model.reactions),
    }


def get_model_summary(model):
    """ Get textual summary of a model

    Args:
        model (:obj:`cobra_io.core.Model`): model

    Returns:
        :obj:`str`: textual summary of the model
    """
    size = get_model_size(model)
    return "Model {} with:".format(model.id or '(no id)') \
        + "\n{:d} compartments".format(size['compartments']) \
        + "\n{:d} metabolites".format(size['metabolites']) \
        + "\n{:d} boundary metabolites".format(len([met for met in model.metabolites if met.boundary])) \
        + "\n{:d} genes".format(size['genes']) \
        + "\n{:d} reactions".format(size['reactions']) \
        + "\n{:d} reversible reactions".format(len([rxn for rxn in model.reactions if rxn.is_reversible()])) \
        + "\n{:d} objective reactions ({})".format(len(model.get_objective()), model.objective_sense)


def format_coefficient(coefficient):
    """ Format a stoichiometric coefficient without loss of precision

    Args:
        coefficient (:obj:`float`): coefficient

    Returns:
        :obj:`str`: formatted coefficient
    """
    if float(coefficient).is_integer():
        return str(int(coefficient))
    return str(coefficient)


def format_reaction_formula(reaction):
    """ Generate a string representation of the stoichiometry of a reaction, e.g.,
    `2 h2o[c] + o2[c] -> 2 h2o2[c]`

    Args:
        reaction (:obj:`cobra_io.core.Reaction`): reaction

    Returns:
        :obj:`str`: formula
    """
    lhs = []
    rhs = []
    for part in reaction.participants:
        coefficient = abs(part.coefficient)
        term = part.metabolite.id if coefficient == 1. \
            else '{} {}'.format(format_coefficient(coefficient), part.metabolite.id)
        if part.coefficient < 0:
            lhs.append(term)
        else:
            rhs.append(term)

    arrow = '<=>' if reaction.is_reversible() else '->'
    return ' '.join(filter(None, [' + '.join(lhs), arrow, ' + '.join(rhs)]))


def parse_reaction_formula(formula):
    """ Parse the stoichiometry of a reaction from its string representation

    Supports the arrows `->`, `-->`, `=>`, `<=>`, `<==>`, `<->`, `<-` and `<--`, optional
    coefficients which may be enclosed in parentheses, and a leading compartment
    (`[c] : a + b -> c`) which is appended to every metabolite id.

    Args:
        formula (:obj:`str`): formula

    Returns:
        :obj:`tuple`:

            * :obj:`collections.OrderedDict`: dictionary that maps ids of metabolites to signed coefficients
            * :obj:`bool`: :obj:`True` if the arrow indicates a reversible reaction

    Raises:
        :obj:`ValueError`: if the formula cannot be parsed
    """
    compartment = None
    match = COMPARTMENT_PREFIX_PATTERN.match(formula)
    if match:
        compartment = match.group(1)
        formula = match.group(2)

    arrows = list(ARROW_PATTERN.finditer(formula))
    if len(arrows) != 1:
        raise ValueError('Formula "{}" must contain exactly one arrow'.format(formula))
    arrow = arrows[0]
    lhs = formula[0:arrow.start()]
    rhs = formula[arrow.end():]
    if arrow.group(1) in BACKWARD_ARROWS:
        lhs, rhs = rhs, lhs

    stoichiometry = collections.OrderedDict()
    for side, sign in ((lhs, -1.), (rhs, 1.)):
        side = side.strip()
        if not side:
            continue
        for term in PLUS_PATTERN.split(side):
            match = TERM_PATTERN.match(term.strip())
            if not match:
                raise ValueError('Term "{}" of formula "{}" cannot be parsed'.format(term, formula))
            coefficient = float(match.group(1)) if match.group(1) else 1.
            met_id = match.group(2)
            if compartment:
                met_id = '{}[{}]'.format(met_id, compartment)
            stoichiometry[met_id] = stoichiometry.get(met_id, 0.) + sign * coefficient

    for met_id in [met_id for met_id, coefficient in stoichiometry.items() if coefficient == 0.]:
        stoichiometry.pop(met_id)

    return stoichiometry, arrow.group(1) in REVERSIBLE_ARROWS
