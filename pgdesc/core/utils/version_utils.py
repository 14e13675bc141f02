import re
import sys
import operator
from packaging import version

_operators = {
    ">=": operator.ge,
    "<=": operator.le,
    ">": operator.gt,
    "<": operator.lt,
    "==": operator.eq,
    "!=": operator.ne,
}


def get_installed_version(ver):
    """
    Generates an external version string from an internal one. This is currently only being used to determine
    whether we are operating in a "frozen" environment or not.
    """
    version_str = str(ver)
    return version_str if not getattr(sys, 'frozen', False) else version_str + '-frozen'


def is_compatible(source_version, compat_versions):
    """
    Compare a source version string to a set of target version string specifications.

    :param source_version: a source version string, e.g. a PostgreSQL server version such as "15.3"
    :param compat_versions:
        an array of tuples with each tuple consisting of a set of strings of the form
        `<operator><version>`. The source_version is evaluated in a conjunction against each
        `<operator><version>` string in the tuple. The result of every tuple evaluation is then evaluated in a
        disjunction against other tuples in the array.
    :return: boolean indicating compatibility

    Example:
    ::
        is_compatible("15.3", [[">=13", "<17"]])

    :return: `True`
    """
    pattern = "^.*?(?P<operator>(>=|<=|>|<|==|!=))(?P<version>.*)$"
    compat = None
    for version_spec in compat_versions:
        check = None
        for ver in version_spec:
            match = re.search(pattern, ver)
            if match:
                gd = match.groupdict()
                compare = _operators[gd["operator"]]
                ret = compare(version.parse(source_version), version.parse(gd["version"].strip()))
                if check is None:
                    check = ret
                else:
                    check = ret and check
        if compat is None:
            compat = check
        else:
            compat = check or compat

    return compat if compat is not None else False
