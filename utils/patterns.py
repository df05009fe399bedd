"""Pre-compiled regex patterns for the link catalog tools.

All patterns are compiled once at module import so the validators and the
query builder never recompile them per record or per request.

Usage:
    from utils.patterns import EMAIL, NUMERIC

    if EMAIL.match(value):
        ...
"""

import re

# Syntactic email check: local part, "@", dotted domain with a 2+ letter TLD.
# Quoted local parts and IP-literal domains are not accepted.
EMAIL = re.compile(
    r"^(?!\.)[A-Za-z0-9!#$%&'*+/=?^_`{|}~.-]{1,64}(?<!\.)"
    r"@"
    r"(?=.{1,253}$)"
    r"(?:[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?\.)+"
    r"[A-Za-z]{2,63}$"
)

# Consecutive dots are legal in the character class above but not in addresses
DOUBLE_DOT = re.compile(r"\.\.")

# Numeric strings: optional sign, integer/decimal part, optional exponent.
# Examples: "12", "-3.5", ".5", "1e3", " 42 "
NUMERIC = re.compile(r"^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?\s*$")

# Integer-only subset of NUMERIC, used when coercing bound parameters
INTEGER = re.compile(r"^\s*[+-]?\d+\s*$")

# URL scheme prefixes stripped from resource identifiers
URL_SCHEME = re.compile(r"^(?:https?://)", re.IGNORECASE)

# Bracketed filter keys sent by the admin front-end: "filters[price]"
BRACKETED_FILTER = re.compile(r"^filters\[([A-Za-z_]+)\]$")

# Characters that carry meaning inside a SQL LIKE pattern
LIKE_SPECIAL_CHARS = re.compile(r"([\\%_])")
