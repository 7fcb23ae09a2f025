"""Built-in supervisor rules: sensitive paths and notable added lines."""

from diffscribe.rules.models import Rule

SENSITIVE_ENV = Rule(
    id="SENSITIVE_ENV",
    name="Environment file",
    kind="path",
    pattern=r"\.env",
    description="Path looks like a dotenv file.",
)

SENSITIVE_SECRET = Rule(
    id="SENSITIVE_SECRET",
    name="Secret path",
    kind="path",
    pattern=r"secret",
    description="Path mentions secrets.",
)

SENSITIVE_KEY = Rule(
    id="SENSITIVE_KEY",
    name="Key path",
    kind="path",
    pattern=r"key",
    description="Path mentions keys.",
)

NOTABLE_DECLARATION = Rule(
    id="NOTABLE_DECLARATION",
    name="Declaration",
    kind="notable",
    pattern=r"\b(?:function|def|class)\s+\w+",
    description="Function, method or class definitions.",
)

NOTABLE_IMPORT = Rule(
    id="NOTABLE_IMPORT",
    name="Import",
    kind="notable",
    pattern=r"\bimport\s+|\bfrom\s+\S+\s+import\b",
    description="Import statements.",
)

NOTABLE_ROUTE = Rule(
    id="NOTABLE_ROUTE",
    name="Route",
    kind="notable",
    pattern=r"@(?:get|post|put|delete|patch)\(|\.(?:get|post|put|delete|patch|route)\(",
    description="Route decorators and HTTP handler registrations.",
    ignore_case=True,
)

ALL_PATH_RULES = [SENSITIVE_ENV, SENSITIVE_SECRET, SENSITIVE_KEY]
ALL_NOTABLE_RULES = [NOTABLE_DECLARATION, NOTABLE_IMPORT, NOTABLE_ROUTE]

ALL_BUILTIN_RULES: list[Rule] = [*ALL_PATH_RULES, *ALL_NOTABLE_RULES]
