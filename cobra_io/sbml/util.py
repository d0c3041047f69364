""" Utilities for writing/reading a `cobra_io` model to/from SBML

* Higher level functions for creating, getting, and setting SBML objects
* Utilities for wrapping libSBML calls

:Author: Jonathan Karr <karr@mssm.edu>
:Author: Arthur Goldberg <Arthur.Goldberg@mssm.edu>
:Date: 2019-06-03
:Copyright: 2017-2019, Karr Lab
:License: MIT
"""

from xml.sax.saxutils import escape
import collections
import libsbml
import re
import warnings
import cobra_io.core


class LibSbmlError(Exception):
    ''' Exception raised when libSBML returns an error '''


class LibSbmlInterface(object):
    ''' Methods for compactly using libSBML to create SBML objects.

    The libSBML method calls provide narrow interfaces, typically exchanging one
    value per call, which creates verbose code. The methods below aggregate multiple
    libSBML method calls to enable more compact usage.
    '''

    XML_NAMESPACE = 'https://opencobra.github.io/ns/cobra_io'
    XML_PREFIX = 'cobraIo'

    IDENTIFIERS_PREFIX = 'https://identifiers.org'
    IDENTIFIERS_PATTERN = re.compile(r'^https?://identifiers.org/(.+?)[:/](.+)$')
    # keys which can be encoded as identifiers.org collections
    COLLECTION_PATTERN = re.compile(r'^[a-z0-9][a-z0-9_.\-]*$')
    RESOURCE_KEY = 'resource'
    SBO_KEY = 'sbo'

    NOTES_PATTERN = re.compile(r'<(?P<prefix>(\w+:)?)p[^>]*>(?P<content>.*?)</(?P=prefix)p>',
                               re.IGNORECASE | re.DOTALL)

    @classmethod
    def create_doc(cls, level=3, version=1, packages=None):
        """ Create an SBMLDocument that, optionally, uses package(s).

        Args:
            level (:obj:`int`, optional): SBML level number
            version (:obj:`int`, optional): SBML version number
            packages (:obj:`dict` that maps :obj:`str` to :obj:`int`, optional): dictionary of required packages
                that maps package identifiers to package numbers

        Returns:
            :obj:`libsbml.SBMLDocument`: SBML document
        """
        packages = packages or {}

        # create name spaces for SBML document
        sbml_ns = cls.call_libsbml(libsbml.SBMLNamespaces, level, version)
        for package_id, package_version in packages.items():
            cls.call_libsbml(sbml_ns.addPackageNamespace, package_id, package_version)
        cls.call_libsbml(sbml_ns.addNamespace, cls.XML_NAMESPACE, cls.XML_PREFIX)

        # create SBML document
        sbml_doc = cls.call_libsbml(libsbml.SBMLDocument, sbml_ns)

        # set package requirements
        for package in packages:
            cls.call_libsbml(sbml_doc.setPackageRequired, package, False)

        # return SBML document
        return sbml_doc

    @classmethod
    def init_model(cls, sbml_doc, packages=None):
        """ Create and initialize an SMBL model.

        Args:
            sbml_doc (:obj:`libsbml.SBMLDocument`): a `libsbml` SBMLDocument
            packages (:obj:`dict` that maps :obj:`str` to :obj:`int`, optional): dictionary of required packages
                that maps package identifiers to package numbers

        Returns:
            :obj:`libsbml.Model`: the SBML model
        """
        sbml_model = cls.call_libsbml(sbml_doc.createModel)

        # enable plugins for packages
        packages = packages or {}
        for package_id in packages.keys():
            plugin = cls.call_libsbml(sbml_model.getPlugin, package_id)
            cls.call_libsbml(plugin.setStrict, True)

        return sbml_model

    @classmethod
    def create_parameter(cls, sbml_model, id, value, constant=True, sbo_term=None):
        """ Add a parameter to an SBML model.

        Args:
            sbml_model (:obj:`libsbml.Model`): SBML model
            id (:obj:`str`): id
            value (:obj:`float`): value
            constant (:obj:`bool`, optional): whether the parameter is a constant
            sbo_term (:obj:`str`, optional): SBO term which describes the role of the parameter

        Returns:
            :obj:`libsbml.Parameter`: SBML parameter
        """
        sbml_parameter = cls.call_libsbml(sbml_model.createParameter)
        cls.call_libsbml(sbml_parameter.setId, id)
        cls.call_libsbml(sbml_parameter.setValue, value)
        cls.call_libsbml(sbml_parameter.setConstant, constant)
        if sbo_term:
            cls.call_libsbml(sbml_parameter.setSBOTerm, sbo_term)
        return sbml_parameter

    @classmethod
    def set_annotations(cls, sbml_obj, key_vals):
        """ Export key/value pairs to the `cobraIo` namespace annotation of an SBML object

        Args:
            sbml_obj (:obj:`libsbml.SBase`): SBML object
            key_vals (:obj:`list` of :obj:`tuple`): list of keys and values
        """
        if not key_vals:
            return

        props = []
        for key, val in key_vals:
            props.append(('<{0}:property>'
                          '<{0}:key>{1}</{0}:key>'
                          '<{0}:value>{2}</{0}:value>'
                          '</{0}:property>').format(cls.XML_PREFIX, escape(key), escape(val)))

        cls.call_libsbml(sbml_obj.appendAnnotation,
                         '<annotation><{0}:annotation xmlns:{0}="{1}">{2}</{0}:annotation></annotation>'.format(
                             cls.XML_PREFIX, cls.XML_NAMESPACE, ''.join(props)))

    @classmethod
    def parse_annotations(cls, sbml_obj):
        """ Import key/value pairs from the `cobraIo` namespace annotation of an SBML object

        Args:
            sbml_obj (:obj:`libsbml.SBase`): SBML object

        Returns:
            :obj:`list` of :obj:`tuple`: list of keys and values
        """
        key_vals = []
        if not sbml_obj.isSetAnnotation():
            return key_vals

        sbml_annots = cls.call_libsbml(sbml_obj.getAnnotation)
        for i_annot in range(cls.call_libsbml(sbml_annots.getNumChildren, returns_int=True)):
            sbml_annot = cls.call_libsbml(sbml_annots.getChild, i_annot)
            if sbml_annot.getName() != 'annotation' or sbml_annot.getURI() != cls.XML_NAMESPACE:
                continue

            for i_child in range(cls.call_libsbml(sbml_annot.getNumChildren, returns_int=True)):
                prop = cls.call_libsbml(sbml_annot.getChild, i_child)
                key = None
                val = ''
                for i_g_child in range(cls.call_libsbml(prop.getNumChildren, returns_int=True)):
                    g_child = cls.call_libsbml(prop.getChild, i_g_child)
                    if g_child.getName() == 'key':
                        key = cls.get_xml_node_text(g_child)
                    elif g_child.getName() == 'value':
                        val = cls.get_xml_node_text(g_child)
                if key:
                    key_vals.append((key, val))

        return key_vals

    @classmethod
    def get_xml_node_text(cls, xml_node):
        """ Get the text content of an XML element

        Args:
            xml_node (:obj:`libsbml.XMLNode`): XML element

        Returns:
            :obj:`str`: text
        """
        text = ''
        for i_child in range(xml_node.getNumChildren()):
            child = xml_node.getChild(i_child)
            if child.isText():
                text += child.getCharacters()
        return text.strip()

    @classmethod
    def set_cv_terms(cls, sbml_obj, key_vals):
        """ Export identifiers.org cross references and SBO terms to an SBML object

        Keys which are valid identifiers.org collections are encoded as `bqbiol:is` CVTerms,
        key `resource` is encoded verbatim as a URI, and key `sbo` is encoded as the SBO term
        of the object.

        Args:
            sbml_obj (:obj:`libsbml.SBase`): SBML object
            key_vals (:obj:`list` of :obj:`tuple`): list of keys and values

        Returns:
            :obj:`list` of :obj:`tuple`: keys and values which cannot be encoded as CVTerms
        """
        others = []
        resources = []
        for key, val in key_vals:
            if key == cls.SBO_KEY and not cls.call_libsbml(sbml_obj.isSetSBOTerm):
                cls.call_libsbml(sbml_obj.setSBOTerm, val)
            elif key == cls.RESOURCE_KEY:
                resources.append(val)
            elif key != cls.SBO_KEY and cls.COLLECTION_PATTERN.match(key) and val and '\n' not in val:
                resources.append('{}/{}/{}'.format(cls.IDENTIFIERS_PREFIX, key, val))
            else:
                others.append((key, val))

        if resources:
            if not sbml_obj.isSetMetaId():
                cls.call_libsbml(sbml_obj.setMetaId, 'meta_' + sbml_obj.getId())
            for resource in resources:
                cv_term = cls.call_libsbml(libsbml.CVTerm)
                cls.call_libsbml(cv_term.setQualifierType, libsbml.BIOLOGICAL_QUALIFIER)
                cls.call_libsbml(cv_term.setBiologicalQualifierType, libsbml.BQB_IS)
                cls.call_libsbml(cv_term.addResource, resource)
                cls.call_libsbml(sbml_obj.addCVTerm, cv_term)

        return others

    @classmethod
    def get_cv_terms(cls, sbml_obj):
        """ Import identifiers.org cross references and SBO terms from an SBML object

        Args:
            sbml_obj (:obj:`libsbml.SBase`): SBML object

        Returns:
            :obj:`list` of :obj:`tuple`: list of keys and values
        """
        key_vals = []

        if sbml_obj.isSetSBOTerm():
            key_vals.append((cls.SBO_KEY, sbml_obj.getSBOTermID()))

        for cv_term in sbml_obj.getCVTerms() or []:
            for i_resource in range(cv_term.getNumResources()):
                uri = cv_term.getResourceURI(i_resource)
                match = cls.IDENTIFIERS_PATTERN.match(uri)
                if match:
                    key, val = match.group(1), match.group(2)
                    if key.isupper():
                        val = '{}:{}'.format(key, val)
                        key = key.lower()
                else:
                    key, val = cls.RESOURCE_KEY, uri
                if (key, val) not in key_vals:
                    key_vals.append((key, val))

        return key_vals

    @classmethod
    def parse_notes(cls, sbml_obj):
        """ Import the `KEY: value` paragraphs of the notes of an SBML object

        Args:
            sbml_obj (:obj:`libsbml.SBase`): SBML object

        Returns:
            :obj:`collections.OrderedDict`: dictionary that maps keys to values
        """
        notes = collections.OrderedDict()
        if not sbml_obj.isSetNotes():
            return notes

        for match in cls.NOTES_PATTERN.finditer(sbml_obj.getNotesString()):
            content = match.group('content')
            if ':' not in content:
                continue
            key, _, val = content.partition(':')
            key = key.strip()
            val = val.strip()
            if key and val:
                notes[key] = val
        return notes

    @classmethod
    def call_libsbml(cls, method, *args, returns_int=False):
        """ Call a libSBML method and handle any errors.

        Unfortunately, libSBML methods that do not return data usually report errors via return codes,
        instead of exceptions, and the generic return codes contain virtually no information.
        This function wraps these methods and raises useful exceptions when errors occur.

        Set `returns_int` `True` to avoid raising false exceptions or warnings from methods that return
        integer values.

        Args:
            method (:obj:`type`, :obj:`types.FunctionType`, or :obj:`types.MethodType`): `libsbml` method to execute
            args (:obj:`list`): a `list` of arguments to the `libsbml` method
            returns_int (:obj:`bool`, optional): whether the method returns an integer; if `returns_int`
                is `True`, then an exception will not be raised if the method call returns an integer

        Returns:
            :obj:`obj` or `int`: if the call does not return an error, return the `libsbml`
                method's return value, either an object that has been created or retrieved, or an integer
                value, or the `libsbml` success return code, :obj:`libsbml.LIBSBML_OPERATION_SUCCESS`

        Raises:
            :obj:`LibSbmlError`: if the `libsbml` call raises an exception, or returns None, or
                returns a known integer error code != :obj:`libsbml.LIBSBML_OPERATION_SUCCESS`
        """
        if args:
            call_str = "method: {}; args: {}".format(method, ', '.join([str(a) for a in args]))
        else:
            call_str = "method: {}".format(method)
        try:
            rc = method(*args)
        except Exception as error:
            raise LibSbmlError("Error '{}' in libSBML method call '{}'.".format(error, call_str))
        if rc is None:
            raise LibSbmlError("libSBML returned None when executing '{}'.".format(call_str))
        elif type(rc) is int:
            # if `method` returns an int value, do not interpret rc as an error code
            if returns_int:
                return rc

            if rc == libsbml.LIBSBML_OPERATION_SUCCESS:
                return rc
            else:
                error_code = libsbml.OperationReturnValue_toString(rc)
                if error_code is None:
                    warnings.warn("call_libsbml: unknown error code {} returned by '{}'."
                                  "\nPerhaps an integer value is being returned; if so, to avoid this warning "
                                  "pass 'returns_int=True' to call_libsbml().".format(error_code, call_str),
                                  cobra_io.core.CobraIoWarning)
                    return rc
                else:
                    raise LibSbmlError("LibSBML returned error code '{}' when executing '{}'."
                                       "\nWARNING: if this libSBML call returns an int value, then this error may be "
                                       "incorrect; to avoid this error pass 'returns_int=True' to call_libsbml().".format(
                                           error_code, call_str))
        else:
            # return data provided by libSBML method
            return rc
