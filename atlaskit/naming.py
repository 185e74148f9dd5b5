"""Name conversions used to map model classes and fields onto database names."""

from __future__ import annotations

import re

_INITIALISMS = (
    "API", "ASCII", "CPU", "CSS", "DNS", "EOF", "GUID", "HTML", "HTTP", "HTTPS",
    "ID", "IP", "JSON", "LHS", "QPS", "RAM", "RHS", "RPC", "SLA", "SMTP", "SSH",
    "TLS", "TTL", "UID", "UI", "UUID", "URI", "URL", "UTF8", "VM", "XML", "XSRF", "XSS",
)
_INITIALISM_RE = re.compile("|".join(_INITIALISMS))

_UNCOUNTABLE = (
    "equipment", "information", "rice", "money", "species", "series", "fish", "sheep", "jeans", "police",
)
_IRREGULAR = (
    ("person", "people"),
    ("man", "men"),
    ("child", "children"),
    ("sex", "sexes"),
    ("move", "moves"),
    ("mombie", "mombies"),
)
# Highest priority first.
_PLURAL_RULES = [
    (re.compile(pattern, re.IGNORECASE), replacement)
    for pattern, replacement in (
        (r"(quiz)$", r"\1zes"),
        (r"^(oxen)$", r"\1"),
        (r"^(ox)$", r"\1en"),
        (r"^(m|l)ice$", r"\1ice"),
        (r"^(m|l)ouse$", r"\1ice"),
        (r"(matr|vert|ind)(?:ix|ex)$", r"\1ices"),
        (r"(x|ch|ss|sh)$", r"\1es"),
        (r"([^aeiouy]|qu)y$", r"\1ies"),
        (r"(hive)$", r"\1s"),
        (r"(?:([^f])fe|([lr])f)$", r"\1\2ves"),
        (r"sis$", "ses"),
        (r"([ti])a$", r"\1a"),
        (r"([ti])um$", r"\1a"),
        (r"(buffal|tomat)o$", r"\1oes"),
        (r"(bu)s$", r"\1ses"),
        (r"(alias|status|campus)$", r"\1es"),
        (r"(octop|vir)i$", r"\1i"),
        (r"(octop|vir)us$", r"\1i"),
        (r"^(ax|test)is$", r"\1es"),
        (r"s$", "s"),
        (r"([a-z])$", r"\1s"),
    )
]


def to_db_name(name: str) -> str:
    """Convert a CamelCase identifier to the snake_case name used in the database."""
    if not name:
        return ""
    value = _INITIALISM_RE.sub(lambda m: m.group(0).lower().title(), name)
    out: list[str] = []
    last_upper = current_upper = False
    size = len(value)
    for i, ch in enumerate(value[:-1]):
        nxt = value[i + 1]
        next_upper = nxt.isupper()
        next_number = nxt.isdigit()
        if i > 0:
            if current_upper:
                if last_upper and (next_upper or next_number):
                    out.append(ch)
                else:
                    if value[i - 1] != "_" and nxt != "_":
                        out.append("_")
                    out.append(ch)
            else:
                out.append(ch)
                if i == size - 2 and next_upper and not next_number:
                    out.append("_")
        else:
            current_upper = True
            out.append(ch)
        last_upper = current_upper
        current_upper = next_upper
    out.append(value[-1])
    return "".join(out).lower()


def camel_case(value: str) -> str:
    """Turn snake_case into CamelCase by capitalising every underscore-separated part."""
    return "".join(part[:1].upper() + part[1:] for part in value.split("_"))


def camel_to_snake(value: str) -> str:
    """Turn CamelCase into snake_case."""
    value = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", value)
    value = re.sub(r"([a-z\d])([A-Z])", r"\1_\2", value)
    return value.lower()


def plural(word: str) -> str:
    """Return the English plural of word."""
    for uncountable in _UNCOUNTABLE:
        if word.lower() == uncountable:
            return word
    for singular, plural_form in _IRREGULAR:
        for s, p in (
            (singular.upper(), plural_form.upper()),
            (singular.title(), plural_form.title()),
            (singular, plural_form),
        ):
            if word.endswith(s):
                return word[: len(word) - len(s)] + p
    for pattern, replacement in _PLURAL_RULES:
        if pattern.search(word):
            return pattern.sub(replacement, word, count=1)
    return word