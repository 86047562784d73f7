"""Pre-compiled regex patterns for the CSR spending tools.

All patterns are compiled once at module import so the hot paths
(amount parsing during aggregation, header normalization during ingest)
don't recompile them per call.

Usage:
    from utils.patterns import CURRENCY_SYMBOLS, THOUSANDS_SEPARATOR

    s = THOUSANDS_SEPARATOR.sub("", CURRENCY_SYMBOLS.sub("", raw))
"""

import re

# Whitespace normalization: multiple spaces/tabs/newlines
WHITESPACE = re.compile(r'\s+')

# Currency symbols for stripping during numeric conversion.
# The source sheet reports amounts in ₹ crore.
CURRENCY_SYMBOLS = re.compile(r'[\$€£¥₹₽]')

# Thousands separators (Indian and Western grouping both use commas)
THOUSANDS_SEPARATOR = re.compile(r',')

# Header cleanup: anything that isn't a letter, digit or space.
# "PSU/Non-PSU" -> "psu non psu", "Spending (₹ Cr)" -> "spending cr"
HEADER_PUNCTUATION = re.compile(r'[^0-9a-z ]+')
