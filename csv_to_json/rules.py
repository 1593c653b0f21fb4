"""
Parsing rules shared by the tokenizer and the record builder.

Kept in one place so the permissive policies are explicit.
"""

DEFAULT_DELIMITER = ","
# Order matters: on equal counts the earlier candidate wins.
CANDIDATE_DELIMITERS = (",", ";", "\t")
QUOTE = '"'
BOM = "\ufeff"
FALLBACK_FIELD_PREFIX = "field_"
