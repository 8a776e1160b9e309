"""Sanitization of received text and markup before it is stored."""

from __future__ import annotations

import re
import unicodedata
from typing import Final
from urllib.parse import quote

from bs4 import BeautifulSoup, Tag

# Elements removed together with everything inside them
_DROPPED_TAGS: Final[frozenset[str]] = frozenset(
    {"script", "style", "iframe", "object", "embed", "applet", "form", "input", "button", "textarea", "select",
     "meta", "link", "base", "frame", "frameset", "noscript", "template", "svg", "math"}
)

_GLOBAL_ATTRIBUTES: Final[frozenset[str]] = frozenset(
    {"class", "dir", "id", "lang", "role", "style", "title", "xml:lang"}
)
_GLOBAL_ATTRIBUTE_PREFIXES: Final[tuple[str, ...]] = ("aria-", "data-")

_ALIGN: Final[frozenset[str]] = frozenset({"align"})
_CELL: Final[frozenset[str]] = frozenset(
    {"abbr", "align", "axis", "bgcolor", "colspan", "headers", "height", "nowrap", "rowspan", "scope", "valign",
     "width"}
)
_MEDIA: Final[frozenset[str]] = frozenset(
    {"autoplay", "controls", "height", "loop", "muted", "playsinline", "preload", "src", "width"}
)

# Rich post markup: tag -> attributes allowed on it besides the global ones
_ALLOWED_TAGS: Final[dict[str, frozenset[str]]] = {
    "a": frozenset({"download", "href", "hreflang", "name", "rel", "rev", "target", "type"}),
    "abbr": frozenset(),
    "acronym": frozenset(),
    "address": frozenset(),
    "area": frozenset({"alt", "coords", "href", "nohref", "rel", "shape", "target"}),
    "article": _ALIGN,
    "aside": _ALIGN,
    "audio": _MEDIA,
    "b": frozenset(),
    "bdo": frozenset(),
    "big": frozenset(),
    "blockquote": frozenset({"cite"}),
    "br": frozenset(),
    "caption": _ALIGN,
    "center": frozenset(),
    "cite": frozenset(),
    "code": frozenset(),
    "col": frozenset({"align", "char", "charoff", "span", "valign", "width"}),
    "colgroup": frozenset({"align", "char", "charoff", "span", "valign", "width"}),
    "dd": frozenset(),
    "del": frozenset({"datetime"}),
    "details": frozenset({"align", "open"}),
    "dfn": frozenset(),
    "div": _ALIGN,
    "dl": frozenset(),
    "dt": frozenset(),
    "em": frozenset(),
    "fieldset": frozenset(),
    "figcaption": _ALIGN,
    "figure": _ALIGN,
    "font": frozenset({"color", "face", "size"}),
    "footer": _ALIGN,
    "h1": _ALIGN,
    "h2": _ALIGN,
    "h3": _ALIGN,
    "h4": _ALIGN,
    "h5": _ALIGN,
    "h6": _ALIGN,
    "header": _ALIGN,
    "hgroup": _ALIGN,
    "hr": frozenset({"align", "noshade", "size", "width"}),
    "i": frozenset(),
    "img": frozenset(
        {"align", "alt", "border", "decoding", "height", "hspace", "loading", "longdesc", "sizes", "src", "srcset",
         "usemap", "vspace", "width"}
    ),
    "ins": frozenset({"cite", "datetime"}),
    "kbd": frozenset(),
    "label": frozenset({"for"}),
    "legend": _ALIGN,
    "li": frozenset({"align", "value"}),
    "main": _ALIGN,
    "map": frozenset({"name"}),
    "mark": frozenset(),
    "menu": frozenset({"type"}),
    "nav": _ALIGN,
    "ol": frozenset({"reversed", "start", "type"}),
    "p": _ALIGN,
    "pre": frozenset({"width"}),
    "q": frozenset({"cite"}),
    "rb": frozenset(),
    "rp": frozenset(),
    "rt": frozenset(),
    "rtc": frozenset(),
    "ruby": frozenset(),
    "s": frozenset(),
    "samp": frozenset(),
    "section": _ALIGN,
    "small": frozenset(),
    "source": frozenset({"media", "sizes", "src", "srcset", "type"}),
    "span": _ALIGN,
    "strike": frozenset(),
    "strong": frozenset(),
    "sub": frozenset(),
    "summary": _ALIGN,
    "sup": frozenset(),
    "table": frozenset({"align", "bgcolor", "border", "cellpadding", "cellspacing", "rules", "summary", "width"}),
    "tbody": frozenset({"align", "char", "charoff", "valign"}),
    "td": _CELL,
    "tfoot": frozenset({"align", "char", "charoff", "valign"}),
    "th": _CELL,
    "thead": frozenset({"align", "char", "charoff", "valign"}),
    "tr": frozenset({"align", "bgcolor", "char", "charoff", "valign"}),
    "track": frozenset({"default", "kind", "label", "src", "srclang"}),
    "tt": frozenset(),
    "u": frozenset(),
    "ul": frozenset({"type"}),
    "var": frozenset(),
    "video": _MEDIA | {"poster"},
}

_URL_ATTRIBUTES: Final[frozenset[str]] = frozenset({"cite", "href", "longdesc", "poster", "src"})
_SRCSET_ATTRIBUTES: Final[frozenset[str]] = frozenset({"srcset"})
_ALLOWED_PROTOCOLS: Final[frozenset[str]] = frozenset(
    {"http", "https", "ftp", "ftps", "mailto", "news", "irc", "irc6", "ircs", "gopher", "nntp", "feed", "telnet",
     "mms", "rtsp", "sms", "svn", "tel", "fax", "xmpp", "webcal", "urn"}
)
# Never allowed at the start of any attribute value
_UNSAFE_SCHEMES: Final[tuple[str, ...]] = ("javascript:", "vbscript:", "livescript:", "data:text/html")
_UNSAFE_CSS: Final[tuple[str, ...]] = (
    "expression(", "behavior:", "-moz-binding", "javascript:", "vbscript:", "@import", "\\"
)

_SCHEME_RE: Final[re.Pattern[str]] = re.compile(r"^([a-z][a-z0-9+.\-]*):")
_CSS_URL_RE: Final[re.Pattern[str]] = re.compile(r"url\(\s*['\"]?([^'\")]*)", re.IGNORECASE)
_CONTROL_RE: Final[re.Pattern[str]] = re.compile(r"[\x00-\x20\x7f]+")
_WHITESPACE_RE: Final[re.Pattern[str]] = re.compile(r"\s+")
_OCTET_RE: Final[re.Pattern[str]] = re.compile(r"%[a-fA-F0-9]{2}")
_SLUG_ASCII_RE: Final[re.Pattern[str]] = re.compile(r"[a-z0-9_\-]")
_SLUG_DASHES_RE: Final[re.Pattern[str]] = re.compile(r"-{2,}")


def sanitize_text_field(value: str) -> str:
    """Reduce a value to a single line of plain text.

    Tags are stripped, percent-encoded octets removed and whitespace runs
    (including line breaks and tabs) collapsed to one space.
    """
    if "<" in value:
        value = BeautifulSoup(value, "html.parser").get_text()
    value = _OCTET_RE.sub("", value)
    return _WHITESPACE_RE.sub(" ", value).strip()


def _compact(value: str) -> str:
    return _CONTROL_RE.sub("", value).lower()


def _is_allowed_url(value: str) -> bool:
    """Relative URLs pass; absolute ones need an allowed protocol."""
    match = _SCHEME_RE.match(_compact(value))
    return match is None or match.group(1) in _ALLOWED_PROTOCOLS


def _is_safe_style(value: str) -> bool:
    compact = _compact(value)
    if any(token in compact for token in _UNSAFE_CSS):
        return False
    return all(_is_allowed_url(url) for url in _CSS_URL_RE.findall(value))


def _is_allowed_attribute(tag_name: str, name: str) -> bool:
    if name in _GLOBAL_ATTRIBUTES or name.startswith(_GLOBAL_ATTRIBUTE_PREFIXES):
        return True
    return name in _ALLOWED_TAGS[tag_name]


def _is_safe_value(name: str, value: str) -> bool:
    if _compact(value).startswith(_UNSAFE_SCHEMES):
        return False
    if name in _URL_ATTRIBUTES:
        return _is_allowed_url(value)
    if name in _SRCSET_ATTRIBUTES:
        return all(_is_allowed_url(candidate.split()[0]) for candidate in value.split(",") if candidate.strip())
    if name == "style":
        return _is_safe_style(value)
    return True


def sanitize_post_content(content: str) -> str:
    """Reduce post markup to an allowlist of rich-text tags and attributes.

    Active elements are removed with their contents; other unknown tags are
    unwrapped so their text survives. Every kept attribute value is checked
    for script URLs, URL attributes must use a known protocol and inline
    styles may not load code. Content without anything to remove is returned
    unchanged, so attachment URLs keep the exact spelling used for rewriting.
    """
    if "<" not in content:
        return content

    soup = BeautifulSoup(content, "html.parser")
    changed = False

    for element in soup.find_all(True):
        if not isinstance(element, Tag) or element.decomposed:
            continue
        if element.name in _DROPPED_TAGS:
            element.decompose()
            changed = True
            continue
        if element.name not in _ALLOWED_TAGS:
            element.unwrap()
            changed = True
            continue
        for attribute in list(element.attrs):
            name = attribute.lower()
            raw_value = element.attrs[attribute]
            value = " ".join(raw_value) if isinstance(raw_value, list) else str(raw_value)
            if not _is_allowed_attribute(element.name, name) or not _is_safe_value(name, value):
                del element.attrs[attribute]
                changed = True

    return str(soup) if changed else content


def _slug_char(char: str) -> str:
    if char.isascii():
        return char if _SLUG_ASCII_RE.fullmatch(char) else "-"
    # Letters, digits and marks of other scripts are kept as lowercase UTF-8 octets
    if unicodedata.category(char)[0] in "LMN":
        return quote(char, safe="").lower()
    return "-"


def slugify(name: str) -> str:
    """Turn a term name into a URL slug ("Breaking News!" -> "breaking-news").

    Accents on Latin letters are dropped ("Café" -> "cafe"); characters of
    other scripts are percent-encoded ("日本" -> "%e6%97%a5%e6%9c%ac").
    """
    decomposed = unicodedata.normalize("NFKD", sanitize_text_field(name))
    kept: list[str] = []
    for char in decomposed:
        if unicodedata.combining(char) and kept and kept[-1].isascii():
            continue
        kept.append(char)
    text = unicodedata.normalize("NFC", "".join(kept)).lower()

    slug = "".join(_slug_char(char) for char in text)
    return _SLUG_DASHES_RE.sub("-", slug).strip("-")
