"""Invocation parsing: tokenizer, content-type classifier and flag parser.

Turns a curl command line (e.g. from a browser's "Copy as cURL") into a
``RequestDescriptor`` that every code emitter consumes.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from curl2code.errors import InvalidInvocation

logger = logging.getLogger(__name__)

COMMAND_NAME = "curl"

METHOD_FLAGS = ("-X", "--request")
HEADER_FLAGS = ("-H", "--header")
DATA_FLAGS = ("-d", "--data", "--data-raw", "--data-binary")
URL_FLAGS = ("--url",)

JSON_TYPE = "application/json"
FORM_TYPE = "application/x-www-form-urlencoded"
MULTIPART_TYPE = "multipart/form-data"

# Double-quoted run, single-quoted run, or bare run.  A missing closing
# quote swallows the rest of the input.
_TOKEN_RE = re.compile(r"\"([^\"]*)\"?|'([^']*)'?|(\S+)")
_CONTINUATION_RE = re.compile(r"\\\r?\n\s*")


@dataclass(frozen=True)
class ContentFacets:
    """Body classification derived from the Content-Type header."""

    is_json: bool = False
    is_form: bool = False
    is_multipart: bool = False

    @property
    def body_kind(self) -> str | None:
        """The first matching facet; the only one emitters act upon."""
        if self.is_json:
            return "json"
        if self.is_form:
            return "form"
        if self.is_multipart:
            return "multipart"
        return None


@dataclass(frozen=True, repr=False)
class RequestDescriptor:
    """Normalized, immutable description of the requested HTTP call."""

    url: str
    method: str = "GET"
    headers: Mapping[str, str] = field(default_factory=dict, hash=False)
    body: str | None = None
    facets: ContentFacets = field(default_factory=ContentFacets)
    ignored: tuple[str, ...] = ()
    source: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        if not self.url:
            raise InvalidInvocation("Request descriptor requires a URL")
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))
        object.__setattr__(self, "ignored", tuple(self.ignored))

    def __repr__(self) -> str:
        return (
            f"RequestDescriptor(method={self.method!r}, url={self.url!r}, "
            f"headers=<{len(self.headers)} headers>, "
            f"body={'<present>' if self.body is not None else '<none>'})"
        )


def tokenize(text: str) -> list[str]:
    """Split an invocation into tokens, honouring single and double quotes.

    Exactly one enclosing pair of quotes is stripped per token and the
    interior is taken literally.  Backslash-newline continuations are
    joined first so multi-line commands are accepted.

    Args:
        text: The raw invocation string.

    Returns:
        The ordered list of tokens.  Never raises on unbalanced quotes.
    """
    joined = _CONTINUATION_RE.sub(" ", text)
    tokens: list[str] = []
    for match in _TOKEN_RE.finditer(joined):
        double, single, bare = match.groups()
        if double is not None:
            tokens.append(double)
        elif single is not None:
            tokens.append(single)
        else:
            tokens.append(bare)
    return tokens


def classify_content_type(headers: Mapping[str, str]) -> ContentFacets:
    """Derive body facets from the Content-Type header, if any.

    Header names are matched case-insensitively; when several spellings
    are present the last one inserted wins.
    """
    content_type = None
    for key, value in headers.items():
        if key.lower() == "content-type":
            content_type = value
    if content_type is None:
        return ContentFacets()

    lowered = content_type.lower()
    return ContentFacets(
        is_json=JSON_TYPE in lowered,
        is_form=FORM_TYPE in lowered,
        is_multipart=MULTIPART_TYPE in lowered,
    )


def parse_tokens(tokens: Iterable[str], source: str = "") -> RequestDescriptor:
    """Build a ``RequestDescriptor`` from a token sequence.

    Recognises ``-X/--request``, ``-H/--header``,
    ``-d/--data/--data-raw/--data-binary``, ``--url`` and a bare URL.
    Everything else is skipped and reported in ``RequestDescriptor.ignored``.
    ``source`` is kept on the descriptor for emitters that echo the command.

    Raises:
        InvalidInvocation: If the command is not curl or no URL is given.
    """
    tokens = list(tokens)
    if not tokens or tokens[0].lower() != COMMAND_NAME:
        raise InvalidInvocation(
            f"Invocation must start with {COMMAND_NAME!r}"
        )

    method = None
    url = ""
    headers: dict[str, str] = {}
    body = None
    ignored: list[str] = []

    args = tokens[1:]
    i = 0
    while i < len(args):
        token = args[i]
        takes_value = token in (
            METHOD_FLAGS + HEADER_FLAGS + DATA_FLAGS + URL_FLAGS
        )
        if takes_value and i + 1 >= len(args):
            logger.debug("Flag %s has no argument, ignoring", token)
            ignored.append(token)
            break

        if token in METHOD_FLAGS:
            i += 1
            method = args[i]
        elif token in HEADER_FLAGS:
            i += 1
            header = args[i]
            colon_idx = header.find(":")
            if colon_idx == -1:
                logger.debug("Header without a colon, ignoring: %r", header)
                ignored.extend((token, header))
            else:
                key = header[:colon_idx].strip()
                headers[key] = header[colon_idx + 1 :].strip()
        elif token in DATA_FLAGS:
            i += 1
            body = args[i]
        elif token in URL_FLAGS:
            i += 1
            url = args[i]
        elif not token.startswith("-") and not url:
            url = token
        else:
            logger.debug("Ignoring unsupported token %r", token)
            ignored.append(token)
        i += 1

    if not url:
        raise InvalidInvocation("No URL found in invocation")

    if method is None:
        method = "POST" if body is not None else "GET"

    return RequestDescriptor(
        url=url,
        method=method,
        headers=headers,
        body=body,
        facets=classify_content_type(headers),
        ignored=tuple(ignored),
        source=source,
    )


def parse_invocation(text: str) -> RequestDescriptor:
    """Tokenize and parse a raw curl invocation string."""
    return parse_tokens(tokenize(text), source=text)


def load_invocation_file(filepath: str) -> str:
    """Read and return the contents of a file holding a curl invocation.

    Raises:
        FileNotFoundError: If the file does not exist.
        IOError: If the file cannot be read.
    """
    with open(filepath, "r", encoding="utf-8") as fh:
        return fh.read()
