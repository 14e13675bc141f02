"""Identifier case conversion between record names and SQL names."""

import re

_pascal_acronyms = re.compile(r"(?i)(?:\b|[^a-z0-9])(id|api|url)(?:\b|[^a-z0-9])")


def snake_case(camel):
    """Convert a CamelCase (or mixedCase) name to snake_case.

    Runs of capitals are kept together, so ``ProviderAPIKey`` becomes ``provider_api_key`` and
    ``userID`` becomes ``user_id``.
    """
    out = []
    prev_was_upper = False
    for i, c in enumerate(camel):
        if "A" <= c <= "Z":
            if out and not prev_was_upper:
                out.append("_")
            elif i > 0 and i + 1 < len(camel) and not ("A" <= camel[i + 1] <= "Z") \
                    and camel[i + 1:] != "s":
                # end of an acronym run, e.g. the K of APIKey; a plural s stays, as in IDs
                out.append("_")
            out.append(c.lower())
            prev_was_upper = True
        else:
            out.append(c)
            prev_was_upper = False
    return "".join(out)


def pascal_case(snake):
    """Convert a snake_case name to PascalCase, upper-casing the id, api and url words."""
    snake = _pascal_acronyms.sub(lambda m: m.group(0).upper(), snake)
    out = []
    should_upper = False
    for i, c in enumerate(snake):
        if i >= len(snake) - 1:
            out.append(c.upper() if not out else c)
            break
        if c == "_":
            should_upper = True
        elif "a" <= c <= "z":
            if not out or should_upper:
                out.append(c.upper())
                should_upper = False
            else:
                out.append(c)
        else:
            out.append(c)
            should_upper = False
    return "".join(out)
