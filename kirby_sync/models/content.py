"""Data models for documents served by the Kirby CMS."""

from dataclasses import dataclass, field
from typing import Any

from ..errors import InvalidConfigError

SECTION_TEMPLATE = "section"

# Page uris that would land on a pass's own global.json or index.json
RESERVED_URIS = frozenset({"global", "index"})


def _language_code(entry: Any) -> str | None:
    """Extract a language code from a plain string or a {"code": ...} object."""
    if isinstance(entry, str):
        return entry or None
    if isinstance(entry, dict):
        code = entry.get("code")
        if isinstance(code, str) and code:
            return code
    return None


def _check_language_code(code: str) -> None:
    """Reject codes that are not a single directory name."""
    if code in (".", "..") or "/" in code or "\\" in code:
        raise InvalidConfigError(f"Language code is not a valid directory name: {code!r}")


@dataclass
class GlobalConfig:
    """The CMS root configuration document (global.json)."""

    default_language: str
    translations: list[str] = field(default_factory=list)
    frontend_url: str = ""
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Any) -> "GlobalConfig":
        """Parse a global.json payload.

        Raises:
            InvalidConfigError: If defaultLang.code is missing or unusable
        """
        if not isinstance(data, dict):
            raise InvalidConfigError("global.json is not a JSON object")

        default_lang = data.get("defaultLang")
        default_code = _language_code(default_lang) if isinstance(default_lang, dict) else None
        if default_code is None:
            raise InvalidConfigError(
                "global.json has no usable defaultLang.code; "
                "check the CMS language configuration"
            )

        translations: list[str] = []
        for entry in data.get("translations") or []:
            code = _language_code(entry)
            if code is None:
                raise InvalidConfigError(f"Invalid translation entry in global.json: {entry!r}")
            # The default language is never a translation
            if code != default_code and code not in translations:
                translations.append(code)

        frontend_url = data.get("frontendUrl") or ""

        _check_language_code(default_code)
        for code in translations:
            _check_language_code(code)

        return cls(
            default_language=default_code,
            translations=translations,
            frontend_url=frontend_url if isinstance(frontend_url, str) else "",
            raw=data,
        )

    @property
    def languages(self) -> list[str]:
        """All languages, default first."""
        return [self.default_language, *self.translations]


@dataclass
class PageSummary:
    """One entry of a language's index.json."""

    uri: str
    intended_template: str = ""
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def is_section(self) -> bool:
        return self.intended_template == SECTION_TEMPLATE

    @property
    def is_reserved(self) -> bool:
        """True if the page would overwrite the pass's global.json or index.json."""
        return self.uri in RESERVED_URIS

    @property
    def filename(self) -> str:
        return f"{self.uri}.json"

    @classmethod
    def from_dict(cls, data: Any) -> "PageSummary":
        """Create from an index entry."""
        if not isinstance(data, dict):
            raise InvalidConfigError(f"Index entry is not an object: {data!r}")
        uri = data.get("uri")
        if not isinstance(uri, str) or not uri.strip("/"):
            raise InvalidConfigError(f"Index entry has no uri: {data!r}")
        uri = uri.strip("/")
        if any(part in ("", ".", "..") for part in uri.split("/")) or "\\" in uri:
            raise InvalidConfigError(f"Index entry uri is not a relative content path: {uri!r}")
        template = data.get("intendedTemplate") or ""
        return cls(
            uri=uri,
            intended_template=template if isinstance(template, str) else "",
            raw=data,
        )


def parse_index(data: Any) -> list[PageSummary]:
    """Parse an index.json payload, preserving CMS order.

    Raises:
        InvalidConfigError: If the payload is not a list or repeats a uri
    """
    if not isinstance(data, list):
        raise InvalidConfigError("index.json is not a JSON array")

    pages: list[PageSummary] = []
    seen: set[str] = set()
    for entry in data:
        page = PageSummary.from_dict(entry)
        if page.uri in seen:
            raise InvalidConfigError(f"Duplicate uri in index.json: {page.uri}")
        seen.add(page.uri)
        pages.append(page)
    return pages
