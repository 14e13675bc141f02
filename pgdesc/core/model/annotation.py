"""Column annotation grammar and the table builder.

An annotation is a comma-separated list of ``key`` or ``key=value`` options, e.g.::

    @dataclass
    class BlogPost:
        id: str = field(metadata={"pg": "name=id,type=uuid,primary,default=gen_random_uuid()"})
        blog_id: str = field(metadata={"pg": "type=uuid,ref=blogs(id cascade deferrable),index"})
        title: str = field(metadata={"pg": "type=varchar(255),unique_index=uk_blog_post"})

`build_table` turns such a record type into a `Table`.
"""

from __future__ import annotations

import logging
import re
from collections import namedtuple

from pgdesc.core.errors import AnnotationError
from pgdesc.core.model.column import CHARACTER_VARYING_CAST, GEN_RANDOM_UUID, NULL_LITERAL, Column
from pgdesc.core.model.record import RecordField, RecordType
from pgdesc.core.model.settings import DEFAULT_SETTINGS
from pgdesc.core.model.table import Table
from pgdesc.core.model.types import DataType, IndexType, OnAction, unwrap_optional
from pgdesc.core.utils.core_utils import stob

logger = logging.getLogger(__name__)

SKIP_ANNOTATION = "-"

AnnotationOption = namedtuple("AnnotationOption", ["key", "value", "bare"])

_ref_regex = re.compile(r"(?i)(\w+)\((\w+)\s*(no action|cascade|restrict|set null|set default)?\s*(\w*)?\)$")


def parse_annotation(text):
    """Split an annotation into its options.

    A bare key implies the value ``"true"``, except ``index`` which implies ``btree`` and
    ``unique_index`` which keeps an empty value.

    Returns:
        A list of ``AnnotationOption(key, value, bare)`` tuples, in annotation order.
    """
    options = []
    for opt in (text or "").split(","):
        if not opt:
            continue
        if "=" in opt:
            key, value = opt.split("=", 1)
            options.append(AnnotationOption(key, value, False))
        elif opt == "index":
            options.append(AnnotationOption(opt, IndexType.btree.value, True))
        elif opt == "unique_index":
            options.append(AnnotationOption(opt, "", True))
        else:
            options.append(AnnotationOption(opt, "true", True))
    return options


def parse_reference(value):
    """Parse a reference option value of the form ``table(column [on_delete] [deferrable])``.

    Returns:
        A ``(table_name, column_name, on_delete, deferrable)`` tuple. The ON DELETE action
        defaults to CASCADE.

    Raises:
        AnnotationError: If the value is malformed, the trailing word is not DEFERRABLE, or a
            deferrable reference uses RESTRICT.
    """
    m = _ref_regex.search(value)
    if m is None:
        raise AnnotationError("invalid reference tag: %s" % value)

    table_name, column_name = m.group(1), m.group(2)
    on_delete = (m.group(3) or "").upper() or OnAction.CASCADE.value
    deferrable_value = (m.group(4) or "").upper()
    if deferrable_value and deferrable_value != "DEFERRABLE":
        raise AnnotationError("invalid reference tag: %s: invalid deferrable value: %s" % (value, deferrable_value))
    deferrable = deferrable_value == "DEFERRABLE"

    try:
        on_delete = OnAction.from_text(on_delete).value
    except ValueError:
        raise AnnotationError("invalid reference tag: %s: invalid on delete action: %s" % (value, on_delete))

    if deferrable and on_delete == OnAction.RESTRICT.value:
        raise AnnotationError("invalid reference tag: %s: deferrable reference cannot have RESTRICT on delete" % value)

    return table_name, column_name, on_delete, deferrable


def _bool(field_name, opt, value):
    try:
        return stob(value)
    except ValueError as e:
        raise AnnotationError("field %s: option %s: %s" % (field_name, opt.key, e))


def build_column(table_name, record_field, locator=None, settings=DEFAULT_SETTINGS):
    """Build the column bound to one record field from the field's annotation.

    Args:
        table_name: Name of the table the column belongs to; self references default to it.
        record_field: The `RecordField` carrying the name, host type and annotation.
        locator: Attribute path of the field within the record. Defaults to the field name.
        settings: Model settings providing the column naming function.

    Returns:
        The new `Column`.

    Raises:
        AnnotationError: If an option is malformed or the column has no resolvable type.
    """
    field_name = record_field.name
    annotation = record_field.annotation or ""
    c = Column(
        table_name=table_name,
        name=settings.column_naming(field_name) if field_name else "",
        type=DataType.from_host_type(record_field.host_type) if record_field.host_type is not None else None,
        locator=tuple(locator) if locator else (field_name,),
        host_type=record_field.host_type,
        field_name=field_name,
    )

    for opt in parse_annotation(annotation):
        key, value = opt.key, opt.value
        if key == "name":
            c.name = value
        elif key == "type":
            lp = value.find("(")
            if lp > 0:
                rp = value.find(")")
                if rp == -1:
                    raise AnnotationError("field %s: option %s=%s: type: missing right parenthesis" %
                                          (field_name, key, value))
                c.type_argument = value[lp + 1:rp]
                value = value[:lp].strip()
            c.type, _ = DataType.parse(value)
            if c.type is None:
                raise AnnotationError("field %s: invalid data type on annotation: %s" % (field_name, annotation))
            if c.type is DataType.tsvector:
                c.unscannable = True
        elif key in ("primary", "pk"):
            c.primary_key = _bool(field_name, opt, value)
        elif key == "identity":
            c.identity = _bool(field_name, opt, value)
            c.auto_generated = True
        elif key == "default":
            c.default = value
            if value == NULL_LITERAL:
                c.nullable = True
        elif key == "unique":
            v = _bool(field_name, opt, value)
            if v and c.unique_index:
                raise AnnotationError("field %s: unique and unique_index cannot be used together" % field_name)
            c.unique = v
        elif key == "conflict":
            c.conflict = value
        elif key == "username":
            c.username = _bool(field_name, opt, value)
        elif key == "password":
            c.password = _bool(field_name, opt, value)
        elif key in ("nullable", "null"):
            if _bool(field_name, opt, value):
                c.default = NULL_LITERAL
                c.nullable = True
            else:
                if c.default == NULL_LITERAL:
                    c.default = ""
                c.nullable = False
        elif key in ("ref", "reference", "references"):
            if "(" not in value:
                # a bare column name references this table
                value = "%s(%s)" % (table_name, value)
            try:
                (c.reference_table_name, c.reference_column_name,
                 c.reference_on_delete, c.deferrable_reference) = parse_reference(value)
            except AnnotationError as e:
                raise AnnotationError("field %s: %s" % (field_name, e))
        elif key == "index":
            c.index = IndexType.parse(value)
            if c.index is None:
                raise AnnotationError("field %s: invalid index type on annotation: %s: value: %s" %
                                      (field_name, annotation, value))
        elif key == "unique_index":
            if c.unique:
                raise AnnotationError("field %s: unique and unique_index cannot be used together" % field_name)
            c.unique_index = value
        elif key == "check":
            c.check_constraint = value
        elif key == "auto":
            c.auto_generated = _bool(field_name, opt, value)
        elif key == "presenter":
            c.presenter = _bool(field_name, opt, value)
        elif key == "unscannable":
            c.unscannable = _bool(field_name, opt, value)
        elif opt.bare:
            # a bare word is the column name, e.g. "id"
            c.name = key
        else:
            raise AnnotationError("field %s: unexpected annotation option: %s" % (field_name, key))

    if c.primary_key and not c.nullable and c.type is DataType.uuid and not c.default \
            and not c.reference_column_name:
        c.default = GEN_RANDOM_UUID

    if c.password and c.type is None:
        c.type = DataType.text

    if c.type is None:
        raise AnnotationError("field %s: invalid data type on annotation: %s" % (field_name, annotation))

    if c.type is DataType.character_varying and c.default and c.default != NULL_LITERAL:
        if not c.default.lower().endswith(CHARACTER_VARYING_CAST):
            c.default = c.default + CHARACTER_VARYING_CAST

    host_type = unwrap_optional(record_field.host_type)
    c.is_scanner = isinstance(host_type, type) and callable(getattr(host_type, "scan", None))
    return c


def _is_json_annotation(annotation):
    return "type=json" in (annotation or "").lower()


def _is_presenter_annotation(annotation):
    for opt in parse_annotation(annotation):
        if opt.key == "presenter":
            try:
                return stob(opt.value)
            except ValueError:
                return False
    return False


def lookup_fields(record_type, parent=()):
    """Return the ``(record_field, locator)`` pairs that become columns.

    Embedded records are inlined unless they are annotated as a json column. Embedded
    records annotated with ``-`` or as a presenter are skipped. An embedded record that
    yields no columns is treated as a single field. Fields without an annotation, or
    annotated with ``-``, are excluded.
    """
    fields = []
    for f in record_type.fields:
        locator = parent + (f.name,)
        if f.is_composite and not _is_json_annotation(f.annotation):
            if f.annotation == SKIP_ANNOTATION or _is_presenter_annotation(f.annotation):
                continue
            nested = lookup_fields(f.record_type, locator)
            if nested:
                fields.extend(nested)
                continue
        if not f.annotation or f.annotation == SKIP_ANNOTATION:
            continue
        fields.append((f, locator))
    return fields


def build_table(table_name, record_type, settings=DEFAULT_SETTINGS):
    """Build the table model of a record type.

    Args:
        table_name: The table name.
        record_type: A `RecordType`, or a dataclass type to describe with the settings' tag.
        settings: Model settings.

    Returns:
        The new `Table`, of base type and not yet registered.

    Raises:
        AnnotationError: If a field annotation is invalid or no field maps to a column.
    """
    if not isinstance(record_type, RecordType):
        try:
            record_type = RecordType.from_dataclass(record_type, settings.tag)
        except TypeError as e:
            raise AnnotationError(str(e))

    table = Table(
        name=table_name,
        search_path=settings.search_path,
        record_type=record_type,
        record_name=record_type.name,
        password_algorithm=settings.password_algorithm,
    )

    for record_field, locator in lookup_fields(record_type):
        table.add_columns(build_column(table_name, record_field, locator, settings))

    if not table.columns:
        raise AnnotationError("no columns found for table %s, maybe missing field annotation of %r" %
                              (table_name, settings.tag))

    logger.debug("Built table %s with %d columns from %s", table_name, len(table.columns), record_type.name)
    return table


def parse_field_tag(text, table_name="", settings=DEFAULT_SETTINGS):
    """Parse a rendered annotation such as ``pg:"name=id,type=uuid,primary"`` back into a column.

    The ``tag:"`` prefix and the closing quote are optional.
    """
    text = text.strip()
    prefix = settings.tag + ':"'
    if text.startswith(prefix):
        text = text[len(prefix):]
    if text.endswith('"'):
        text = text[:-1]
    return build_column(table_name, RecordField("", None, text), (), settings)
