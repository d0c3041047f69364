""" Reading and writing models to/from Excel workbooks

Models are represented by two worksheets:

* `Reaction List`: `Abbreviation`, `Description`, `Reaction`, `GPR`, `Subsystem`, `Lower bound`,
  `Upper bound`, `Objective`
* `Metabolite List`: `Abbreviation`, `Description`, `Charged formula`, `Charge`, `Compartment`

Additional columns contain annotations, with the column headings as the keys. Multiple values of the
same key are separated by `; `. As a result, annotation values which contain `; ` are read back as
several values, and leading and trailing whitespace is not preserved. The id, name, and description of
the model are stored in the document properties of the workbook. Genes are inferred from the
gene-reaction rules (`GPR`).

Workbooks are written in the Office Open XML (`.xlsx`) format, including when the destination has a
`.xls` extension. Legacy binary (BIFF) `.xls` workbooks can be read; they have no document properties,
so the ids of their models are taken from their file names.

:Author: Jonathan Karr <karr@mssm.edu>
:Date: 2019-06-03
:Copyright: 2019, Karr Lab
:License: MIT
"""

from cobra_io import gene_rules
from cobra_io.util import format_reaction_formula, parse_reaction_formula
from wc_utils.util.string import indent_forest
import collections
import cobra_io.core
import io
import math
import openpyxl
import os
import re
import xlrd

CODEC = 'excel'

REACTION_COLUMNS = ('Abbreviation', 'Description', 'Reaction', 'GPR', 'Subsystem',
                    'Lower bound', 'Upper bound', 'Objective')
METABOLITE_COLUMNS = ('Abbreviation', 'Description', 'Charged formula', 'Charge', 'Compartment')
ANNOTATION_SEPARATOR = '; '
COMPARTMENT_PATTERN = re.compile(r'^.+\[([^\[\]]+)\]$')
OLE2_SIGNATURE = b'\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1'


class ExcelWriter(object):
    """ Write models to Excel workbooks

    Attributes:
        reaction_sheet (:obj:`str`): name of the worksheet of reactions
        metabolite_sheet (:obj:`str`): name of the worksheet of metabolites
    """

    def __init__(self, reaction_sheet='Reaction List', metabolite_sheet='Metabolite List'):
        """
        Args:
            reaction_sheet (:obj:`str`, optional): name of the worksheet of reactions
            metabolite_sheet (:obj:`str`, optional): name of the worksheet of metabolites
        """
        self.reaction_sheet = reaction_sheet
        self.metabolite_sheet = metabolite_sheet

    def run(self, model, destination):
        """ Write a model to an Excel workbook

        Args:
            model (:obj:`cobra_io.core.Model`): model
            destination (:obj:`str` or file-like): path or binary handle of the workbook

        Raises:
            :obj:`cobra_io.core.SchemaViolation`: if the model is invalid
        """
        error = cobra_io.core.Validator().run(model, get_related=True)
        if error:
            raise cobra_io.core.SchemaViolation(CODEC, indent_forest(
                ['The model cannot be saved because it is invalid:', [error]]))

        wb = openpyxl.Workbook()
        wb.properties.identifier = model.id or None
        wb.properties.title = model.name or None
        wb.properties.description = model.description or None

        ws = wb.active
        ws.title = self.reaction_sheet
        self.write_sheet(ws, REACTION_COLUMNS, model.reactions, lambda rxn: [
            rxn.id, rxn.name, format_reaction_formula(rxn), rxn.gene_rule, rxn.subsystem,
            encode_float(rxn.lower_bound), encode_float(rxn.upper_bound), encode_float(rxn.objective_coefficient),
        ])

        ws = wb.create_sheet(self.metabolite_sheet)
        self.write_sheet(ws, METABOLITE_COLUMNS, model.metabolites, lambda met: [
            met.id, met.name, met.formula, encode_float(met.charge),
            met.compartment.id if met.compartment else None,
        ])

        wb.save(destination)

    @staticmethod
    def write_sheet(ws, columns, objs, get_values):
        """ Write objects to a worksheet, followed by one column for each of their annotation keys

        Args:
            ws (:obj:`openpyxl.worksheet.worksheet.Worksheet`): worksheet
            columns (:obj:`list` of :obj:`str`): headings of the required columns
            objs (:obj:`list` of :obj:`cobra_io.core.AnnotatedMixin`): objects
            get_values (:obj:`callable`): function which returns the values of the required columns of an object
        """
        keys = []
        for obj in objs:
            for annotation in obj.annotations:
                if annotation.key not in keys and annotation.key not in columns:
                    keys.append(annotation.key)

        ws.append(list(columns) + keys)
        for obj in objs:
            annotations = obj.get_annotations()
            ws.append([value if value != '' else None for value in get_values(obj)]
                      + [ANNOTATION_SEPARATOR.join(annotations[key]) if key in annotations else None
                         for key in keys])


class ExcelReader(object):
    """ Read models from Excel workbooks

    Attributes:
        reaction_sheet (:obj:`str`): name of the worksheet of reactions
        metabolite_sheet (:obj:`str`): name of the worksheet of metabolites
        default_lower_bound (:obj:`float`): lower bound of reversible reactions without lower bounds
        default_upper_bound (:obj:`float`): upper bound of reactions without upper bounds
    """

    def __init__(self, reaction_sheet='Reaction List', metabolite_sheet='Metabolite List',
                 default_lower_bound=-1000., default_upper_bound=1000.):
        """
        Args:
            reaction_sheet (:obj:`str`, optional): name of the worksheet of reactions
            metabolite_sheet (:obj:`str`, optional): name of the worksheet of metabolites
            default_lower_bound (:obj:`float`, optional): lower bound of reversible reactions without lower bounds
            default_upper_bound (:obj:`float`, optional): upper bound of reactions without upper bounds
        """
        self.reaction_sheet = reaction_sheet
        self.metabolite_sheet = metabolite_sheet
        self.default_lower_bound = default_lower_bound
        self.default_upper_bound = default_upper_bound

    def run(self, source):
        """ Read a model from an Excel workbook

        Args:
            source (:obj:`str` or file-like): path or binary handle of the workbook

        Returns:
            :obj:`cobra_io.core.Model`: model

        Raises:
            :obj:`cobra_io.core.MissingSheet`: if a required worksheet is missing
            :obj:`cobra_io.core.MissingColumn`: if a required column is missing
            :obj:`cobra_io.core.MalformedInput`: if a value cannot be parsed
        """
        if isinstance(source, str):
            with open(source, 'rb') as file:
                content = file.read()
            default_id = os.path.splitext(os.path.basename(source))[0]
        else:
            content = source.read()
            default_id = os.path.splitext(os.path.basename(getattr(source, 'name', None) or ''))[0]

        # legacy `.xls` workbooks are OLE2 compound documents; all other workbooks are Office Open XML
        if content.startswith(OLE2_SIGNATURE):
            sheets, properties = self.load_xls(content)
        else:
            sheets, properties = self.load_xlsx(content)

        for sheet_name in (self.reaction_sheet, self.metabolite_sheet):
            if sheet_name not in sheets:
                raise cobra_io.core.MissingSheet(CODEC, 'Workbook must have a worksheet named "{}"'.format(
                    sheet_name))
        rxn_rows, rxn_annotation_columns = self.read_sheet(self.reaction_sheet, sheets[self.reaction_sheet],
                                                           REACTION_COLUMNS)
        met_rows, met_annotation_columns = self.read_sheet(self.metabolite_sheet, sheets[self.metabolite_sheet],
                                                           METABOLITE_COLUMNS)

        model = cobra_io.core.Model(id=properties.get('identifier') or default_id,
                                    name=properties.get('title') or '',
                                    description=properties.get('description') or '')

        # metabolites
        comps = collections.OrderedDict()
        mets = collections.OrderedDict()
        for row in met_rows:
            met_id = to_str(row['Abbreviation'])
            if met_id in mets:
                raise cobra_io.core.SchemaViolation(CODEC, 'Metabolite "{}" is defined multiple times'.format(met_id))

            comp_id = to_str(row['Compartment'])
            if not comp_id:
                match = COMPARTMENT_PATTERN.match(met_id)
                comp_id = match.group(1) if match else ''
            comp = None
            if comp_id:
                comp = comps.get(comp_id, None)
                if comp is None:
                    comp = comps[comp_id] = model.compartments.create(id=comp_id, name=comp_id)

            met = mets[met_id] = model.metabolites.create(
                id=met_id, name=to_str(row['Description']), formula=to_str(row['Charged formula']),
                charge=parse_float(row['Charge'], 'Charge', default=float('nan')),
                compartment=comp)
            read_annotations(met, row, met_annotation_columns)

        # reactions
        rxn_ids = set()
        for row in rxn_rows:
            rxn_id = to_str(row['Abbreviation'])
            if rxn_id in rxn_ids:
                raise cobra_io.core.SchemaViolation(CODEC, 'Reaction "{}" is defined multiple times'.format(rxn_id))
            rxn_ids.add(rxn_id)

            try:
                stoichiometry, reversible = parse_reaction_formula(to_str(row['Reaction']))
            except ValueError as error:
                raise cobra_io.core.MalformedInput(CODEC, 'Reaction "{}": {}'.format(rxn_id, str(error)))
            undefined = [met_id for met_id in stoichiometry.keys() if met_id not in mets]
            if undefined:
                raise cobra_io.core.MalformedInput(CODEC, 'Reaction "{}" refers to undefined metabolite(s): {}'.format(
                    rxn_id, ', '.join(undefined)))

            rule = to_str(row['GPR'])
            try:
                gene_ids = gene_rules.get_gene_ids(rule, validate=True)
            except gene_rules.GeneRuleError as error:
                raise cobra_io.core.MalformedInput(CODEC, 'Reaction "{}": {}'.format(rxn_id, str(error)))
            for gene_id in gene_ids:
                if model.genes.get_one(id=gene_id) is None:
                    model.genes.create(id=gene_id)

            rxn = model.reactions.create(
                id=rxn_id, name=to_str(row['Description']), gene_rule=rule, subsystem=to_str(row['Subsystem']),
                lower_bound=parse_float(row['Lower bound'], 'Lower bound',
                                        default=self.default_lower_bound if reversible else 0.),
                upper_bound=parse_float(row['Upper bound'], 'Upper bound', default=self.default_upper_bound),
                objective_coefficient=parse_float(row['Objective'], 'Objective', default=0.))
            rxn.set_stoichiometry(collections.OrderedDict(
                (mets[met_id], coefficient) for met_id, coefficient in stoichiometry.items()))
            read_annotations(rxn, row, rxn_annotation_columns)

        return model

    @staticmethod
    def load_xlsx(content):
        """ Load the worksheets and document properties of an Office Open XML workbook

        Args:
            content (:obj:`bytes`): workbook

        Returns:
            :obj:`tuple`:

                * :obj:`dict`: dictionary that maps the name of each worksheet to its rows
                * :obj:`dict`: identifier, title, and description of the workbook
        """
        wb = openpyxl.load_workbook(filename=io.BytesIO(content), data_only=True)
        sheets = {ws.title: list(ws.iter_rows(values_only=True)) for ws in wb.worksheets}
        properties = {
            'identifier': wb.properties.identifier,
            'title': wb.properties.title,
            'description': wb.properties.description,
        }
        return sheets, properties

    @staticmethod
    def load_xls(content):
        """ Load the worksheets of a legacy (BIFF) workbook, which has no document properties

        Args:
            content (:obj:`bytes`): workbook

        Returns:
            :obj:`tuple`:

                * :obj:`dict`: dictionary that maps the name of each worksheet to its rows
                * :obj:`dict`: empty dictionary of document properties
        """
        book = xlrd.open_workbook(file_contents=content)
        sheets = {}
        for sheet in book.sheets():
            sheets[sheet.name] = [tuple(sheet.row_values(i_row)) for i_row in range(sheet.nrows)]
        return sheets, {}

    @staticmethod
    def read_sheet(title, rows, columns):
        """ Read the rows of a worksheet

        Args:
            title (:obj:`str`): name of the worksheet
            rows (:obj:`list` of :obj:`tuple`): values of the cells of the worksheet
            columns (:obj:`list` of :obj:`str`): headings of the required columns

        Returns:
            :obj:`tuple`:

                * :obj:`list` of :obj:`dict`: rows, as dictionaries that map headings to values
                * :obj:`list` of :obj:`str`: headings of the annotation columns

        Raises:
            :obj:`cobra_io.core.MissingColumn`: if a required column is missing
        """
        header = [to_str(heading) for heading in rows[0]] if rows else []

        # required headings are matched case-insensitively
        canonical_headings = {column.lower(): column for column in columns}
        header = [canonical_headings.get(heading.lower(), heading) for heading in header]

        missing = [column for column in columns if column not in header]
        if missing:
            raise cobra_io.core.MissingColumn(CODEC, 'Worksheet "{}" must have the column(s) {}'.format(
                title, ', '.join(missing)))
        annotation_columns = [heading for heading in header if heading and heading not in columns]

        values = []
        for row in rows[1:]:
            if all(cell is None or to_str(cell) == '' for cell in row):
                continue
            values.append({heading: cell for heading, cell in zip(header, row) if heading})
        return values, annotation_columns


def to_str(value):
    """ Convert the value of a cell to a string

    Args:
        value (:obj:`object`): value

    Returns:
        :obj:`str`: string
    """
    if value is None:
        return ''
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def encode_float(value):
    """ Convert a number to the value of a cell; infinite values are stored as text because they
    cannot be represented by Excel

    Args:
        value (:obj:`float`): number

    Returns:
        :obj:`float` or :obj:`str`: value
    """
    if math.isnan(value):
        return None
    if math.isinf(value):
        return str(value)
    return value


def parse_float(value, column, default):
    """ Parse the value of a numeric cell

    Args:
        value (:obj:`object`): value
        column (:obj:`str`): heading of the column
        default (:obj:`float`): value of empty cells

    Returns:
        :obj:`float`: number

    Raises:
        :obj:`cobra_io.core.MalformedInput`: if the value is not a number
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    try:
        return float(value)
    except ValueError:
        raise cobra_io.core.MalformedInput(CODEC, 'Value "{}" of column "{}" is not a number'.format(value, column))


def read_annotations(obj, row, columns):
    """ Read the annotations of an object from the annotation columns of its row

    Args:
        obj (:obj:`cobra_io.core.AnnotatedMixin`): metabolite or reaction
        row (:obj:`dict`): dictionary that maps headings to values
        columns (:obj:`list` of :obj:`str`): headings of the annotation columns
    """
    for column in columns:
        value = to_str(row.get(column, None))
        if value:
            for val in value.split(ANNOTATION_SEPARATOR):
                if val.strip():
                    obj.annotations.create(key=column, value=val.strip())
