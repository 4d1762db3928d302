from pathlib import Path
from urllib.parse import unquote, urlparse

TYPESCRIPT = "typescript"
JSON = "json"

_LANGUAGE_ALIASES = {
    "json": JSON,
    "jsonc": JSON,
    "ts": TYPESCRIPT,
    "typescript": TYPESCRIPT,
}

_EXTENSION_LANGUAGE_MAP = {
    ".json": JSON,
    ".ts": TYPESCRIPT,
}

# Files analyzed as source; declaration files carry no routes or calls.
_SOURCE_EXCLUDED_SUFFIXES = (".d.ts",)

_SUPPORTED_LANGUAGES = set(_EXTENSION_LANGUAGE_MAP.values())


def normalize_language(language: str) -> str:
    normalized = language.strip().lower()
    resolved = _LANGUAGE_ALIASES.get(normalized, normalized)
    if resolved not in _SUPPORTED_LANGUAGES:
        raise ValueError(f"Unsupported language '{language}'. Supported: {sorted(_SUPPORTED_LANGUAGES)}")
    return resolved


def detect_language_from_path(file_path: Path) -> str:
    suffix = file_path.suffix.lower()
    if suffix in _EXTENSION_LANGUAGE_MAP:
        return _EXTENSION_LANGUAGE_MAP[suffix]
    raise ValueError(f"Unsupported file extension: {suffix}")


def is_source_file(path: Path) -> bool:
    name = path.name.lower()
    return path.suffix.lower() == ".ts" and not name.endswith(_SOURCE_EXCLUDED_SUFFIXES)


def is_contract_file(path: Path, contract_file: str) -> bool:
    return path.name == contract_file


def uri_to_path(uri: str) -> str:
    """Return the filesystem path for a ``file://`` URI; plain paths pass through."""
    if uri.startswith("file://"):
        return unquote(urlparse(uri).path)
    return uri
