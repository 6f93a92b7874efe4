import re

from gostly.services.phrases import DEFAULT_LANGUAGE, SUPPORTED_LANGUAGES

_CROATIAN_CHARS = re.compile(r"[čćžšđ]", re.IGNORECASE)
_CROATIAN_WORDS = re.compile(
    r"\b(bok|pozdrav|dobar dan|dobro jutro|hvala|molim|gdje|kada|kako|koliko|imate|ima li|"
    r"može li|mogu li|prijava|odjava|sobu|apartman|plaža)\b",
    re.IGNORECASE,
)
_GERMAN_CHARS = re.compile(r"[äöüß]", re.IGNORECASE)
_GERMAN_WORDS = re.compile(
    r"\b(hallo|guten tag|guten morgen|danke|bitte|wo ist|wann|wie|gibt es|haben sie|ich|wir|"
    r"parkplatz|zimmer|strand|schlüssel)\b",
    re.IGNORECASE,
)


def detect_language(text: str) -> str:
    """Cheap guess of the guest language, used for fixed replies only."""
    text = text or ""
    if _CROATIAN_CHARS.search(text):
        return "hr"
    if _GERMAN_CHARS.search(text):
        return "de"
    if _CROATIAN_WORDS.search(text):
        return "hr"
    if _GERMAN_WORDS.search(text):
        return "de"
    return DEFAULT_LANGUAGE


def parse_declared_languages(declared: str | None) -> list[str]:
    """Supported codes from a property's `languages` setting; empty for auto."""
    if not declared or declared.strip().lower() == "auto":
        return []
    codes = []
    for item in declared.split(","):
        code = item.strip().lower()
        if code in SUPPORTED_LANGUAGES and code not in codes:
            codes.append(code)
    return codes


def resolve_language(text: str, declared: str | None = "auto") -> str:
    detected = detect_language(text)
    allowed = parse_declared_languages(declared)
    if not allowed:
        if declared and declared.strip().lower() != "auto":
            return DEFAULT_LANGUAGE
        return detected
    if detected in allowed:
        return detected
    return allowed[0]
