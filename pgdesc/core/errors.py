"""Exception taxonomy and helpers for classifying PostgreSQL driver errors."""


class PgDescError (Exception):
    pass


class AnnotationError (PgDescError, ValueError):
    """A field annotation could not be turned into a column definition."""
    pass


class QueryBuildError (PgDescError, ValueError):
    """A SQL statement could not be built from a table model and record."""
    pass


class IntrospectionParseError (PgDescError, ValueError):
    pass


class ScanError (PgDescError):
    pass


class NoRowsError (ScanError):
    pass


class SchemaError (PgDescError, LookupError):
    pass


class ReconciliationError (PgDescError):
    """The code-declared schema does not match the live catalog.

    When a column definition differs, ``expected`` holds the rendering of the live column and ``got`` the
    rendering of the code column.
    """
    def __init__(self, message, table_name=None, column_name=None, expected=None, got=None):
        super(ReconciliationError, self).__init__(message)
        self.table_name = table_name
        self.column_name = column_name
        self.expected = expected
        self.got = got


def _quoted_name(err_text):
    start = err_text.find('"')
    if start > 0 and start + 1 < len(err_text):
        rest = err_text[start + 1:]
        end = rest.find('"')
        if end > 0:
            return rest[:end]
    return None


def is_err_duplicate(err):
    """Report whether err is a unique violation, returning (constraint_name, True) if so."""
    if err is not None:
        err_text = str(err)
        if "duplicate key value violates unique constraint" in err_text:
            name = _quoted_name(err_text)
            if name:
                return name, True
    return "", False


def is_err_foreign_key(err):
    """Report whether err is a foreign key violation, returning (constraint_name, True) if so."""
    if err is not None:
        err_text = str(err)
        if "violates foreign key constraint" in err_text:
            name = _quoted_name(err_text)
            if name:
                return name, True
    return "", False


def is_err_input_syntax(err):
    if err is None:
        return "", False
    err_text = str(err)
    if "invalid input syntax for type" in err_text \
            or "syntax error in tsquery" in err_text \
            or "no operand in tsquery" in err_text:
        return _quoted_name(err_text) or "invalid input syntax", True
    return "", False


def is_err_column_not_exists(err, column):
    if err is None:
        return False
    return 'column "%s" does not exist' % column in str(err)
