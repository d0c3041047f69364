""" Gene-reaction rules: boolean expressions over the ids of genes

Rules are composed of gene ids, the operators `and` and `or` (also spelled `AND`, `OR`, `&`, `&&`,
`|` and `||`), and parentheses, e.g. `(b0001 and b0002) or b0003`.

:Author: Jonathan Karr <karr@mssm.edu>
:Date: 2019-06-03
:Copyright: 2019, Karr Lab
:License: MIT
"""

import re

TOKEN_PATTERN = re.compile(r'\s*(\(|\)|&&|\|\||&|\||[^\s()&|]+)')
AND_TOKENS = ('and', '&', '&&')
OR_TOKENS = ('or', '|', '||')


class GeneRuleError(ValueError):
    """ Error raised when a gene-reaction rule cannot be parsed """
    pass  # pragma: no cover


def tokenize(rule):
    """ Split a gene-reaction rule into tokens, normalizing the spelling of the operators to
    `and` and `or`

    Args:
        rule (:obj:`str`): gene-reaction rule

    Returns:
        :obj:`list` of :obj:`str`: tokens
    """
    tokens = []
    pos = 0
    rule = rule or ''
    while pos < len(rule):
        match = TOKEN_PATTERN.match(rule, pos)
        if not match:
            break
        token = match.group(1)
        if token.lower() in AND_TOKENS:
            token = 'and'
        elif token.lower() in OR_TOKENS:
            token = 'or'
        tokens.append(token)
        pos = match.end()
    return tokens


def is_operator(token):
    return token in ('and', 'or', '(', ')')


def validate_tokens(tokens):
    """ Check that a sequence of tokens is a well-formed boolean expression

    Args:
        tokens (:obj:`list` of :obj:`str`): tokens

    Raises:
        :obj:`GeneRuleError`: if the tokens are not a well-formed expression
    """
    # operands and operators must alternate
    expect_operand = True
    depth = 0
    for token in tokens:
        if expect_operand:
            if token == '(':
                depth += 1
            elif is_operator(token):
                raise GeneRuleError('Unexpected "{}" in gene-reaction rule "{}"'.format(token, ' '.join(tokens)))
            else:
                expect_operand = False
        else:
            if token == ')':
                depth -= 1
                if depth < 0:
                    raise GeneRuleError('Unbalanced parentheses in gene-reaction rule "{}"'.format(' '.join(tokens)))
            elif token in ('and', 'or'):
                expect_operand = True
            else:
                raise GeneRuleError('Unexpected "{}" in gene-reaction rule "{}"'.format(token, ' '.join(tokens)))
    if tokens and expect_operand:
        raise GeneRuleError('Gene-reaction rule "{}" is incomplete'.format(' '.join(tokens)))
    if depth:
        raise GeneRuleError('Unbalanced parentheses in gene-reaction rule "{}"'.format(' '.join(tokens)))


def get_gene_ids(rule, validate=False):
    """ Get the ids of the genes referenced by a gene-reaction rule

    Args:
        rule (:obj:`str`): gene-reaction rule
        validate (:obj:`bool`, optional): if :obj:`True`, check that the rule is well-formed

    Returns:
        :obj:`list` of :obj:`str`: ids of genes, in their order of first appearance

    Raises:
        :obj:`GeneRuleError`: if `validate` is :obj:`True` and the rule is not well-formed
    """
    tokens = tokenize(rule)
    if validate:
        validate_tokens(tokens)
    gene_ids = []
    for token in tokens:
        if not is_operator(token) and token not in gene_ids:
            gene_ids.append(token)
    return gene_ids


def join(tokens):
    """ Join tokens into a rule with single spaces between operands and operators

    Args:
        tokens (:obj:`list` of :obj:`str`): tokens

    Returns:
        :obj:`str`: rule
    """
    rule = ''
    for token in tokens:
        if rule and not rule.endswith('(') and token != ')':
            rule += ' '
        rule += token
    return rule


def flatten(rule):
    """ Flatten a gene-reaction rule into a single-line string with canonical operators

    Args:
        rule (:obj:`str`): gene-reaction rule

    Returns:
        :obj:`str`: flattened rule, e.g. `(b0001 and b0002) or b0003`
    """
    return join(tokenize(rule))


def substitute(rule, gene_ids):
    """ Rename the genes referenced by a gene-reaction rule

    Args:
        rule (:obj:`str`): gene-reaction rule
        gene_ids (:obj:`dict`): dictionary that maps old ids to new ids; genes which are not keys
            of the dictionary keep their ids

    Returns:
        :obj:`str`: flattened rule with the new ids
    """
    return join([token if is_operator(token) else gene_ids.get(token, token)
                 for token in tokenize(rule)])
