"""Retailer URL canonicalization rules."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Union
from urllib.parse import parse_qsl, urlsplit

IDENTIFIER_TOKEN = "{identifier}"

REASON_MALFORMED = "malformed-url"
REASON_FOREIGN_DOMAIN = "foreign-domain"
REASON_LISTING = "search-or-listing-page"
REASON_UNRECOGNIZED = "no-product-identifier"


@dataclass(slots=True, frozen=True)
class CanonicalMatch:
    url: str
    identifier: str
    rule: str


@dataclass(slots=True, frozen=True)
class UnresolvableInput:
    """A URL that no rule can canonicalize. Recorded as needing review."""

    reason: str

    @property
    def is_listing(self) -> bool:
        return self.reason == REASON_LISTING


Outcome = Union[CanonicalMatch, UnresolvableInput]


@dataclass(slots=True)
class ExtractionRule:
    name: str
    kind: Literal["path", "query"]
    matcher: re.Pattern[str] | None = None
    param: str | None = None

    def __post_init__(self) -> None:
        if self.kind == "path" and self.matcher is None:
            raise ValueError(f"Path rule {self.name!r} needs a pattern")
        if self.kind == "query" and not self.param:
            raise ValueError(f"Query rule {self.name!r} needs a param")

    def extract(self, path: str, query: Mapping[str, str], identifier: re.Pattern[str]) -> str | None:
        if self.matcher is not None:
            match = self.matcher.search(path)
            return match.group("id") if match else None
        value = query.get(self.param)
        if value and identifier.fullmatch(value):
            return value
        return None


@dataclass(slots=True)
class RetailerRules:
    retailer: str
    domains: tuple[str, ...]
    identifier: re.Pattern[str]
    template: str
    rules: list[ExtractionRule]
    listing_paths: list[re.Pattern[str]] = field(default_factory=list)
    listing_params: frozenset[str] = frozenset()
    canonical_shape: re.Pattern[str] | None = None

    @classmethod
    def from_config(cls, data: Mapping[str, Any]) -> RetailerRules:
        identifier_src = data["identifier"]
        rules: list[ExtractionRule] = []
        for raw in data.get("rules", []):
            kind = raw.get("kind", "path")
            if kind == "path":
                pattern = raw.get("pattern")
                matcher = re.compile(pattern.replace(IDENTIFIER_TOKEN, identifier_src)) if pattern else None
                rules.append(ExtractionRule(name=raw["name"], kind="path", matcher=matcher))
            elif kind == "query":
                rules.append(ExtractionRule(name=raw["name"], kind="query", param=(raw.get("param") or "").lower()))
            else:
                raise ValueError(f"Unknown rule kind {kind!r} for {data['retailer']}")
        template = data["template"]
        if IDENTIFIER_TOKEN not in template:
            raise ValueError(f"Template for {data['retailer']} lacks {IDENTIFIER_TOKEN}")
        prefix, suffix = template.split(IDENTIFIER_TOKEN, 1)
        listing = data.get("listing") or {}
        return cls(
            retailer=data["retailer"],
            domains=tuple(d.lower() for d in data.get("domains", [])),
            identifier=re.compile(identifier_src),
            template=template,
            rules=rules,
            listing_paths=[re.compile(p) for p in listing.get("paths", [])],
            listing_params=frozenset(p.lower() for p in listing.get("params", [])),
            canonical_shape=re.compile(
                re.escape(prefix) + f"(?:{identifier_src})" + re.escape(suffix)
            ),
        )

    def is_canonical(self, url: str | None) -> bool:
        if not url or self.canonical_shape is None:
            return False
        return self.canonical_shape.fullmatch(url) is not None

    def canonicalize(self, raw_url: str | None) -> Outcome:
        """Map a raw retailer URL to its canonical form, or explain why not.

        Pure: the result depends only on ``raw_url`` and this rule set.
        """
        if not raw_url or not raw_url.strip():
            return UnresolvableInput(REASON_MALFORMED)
        try:
            parts = urlsplit(raw_url.strip())
            host = (parts.hostname or "").lower()
        except ValueError:
            return UnresolvableInput(REASON_MALFORMED)
        if parts.scheme not in {"http", "https"} or not host:
            return UnresolvableInput(REASON_MALFORMED)
        if not self._owns_host(host):
            return UnresolvableInput(REASON_FOREIGN_DOMAIN)
        query = {key.lower(): value for key, value in parse_qsl(parts.query, keep_blank_values=True)}
        for rule in self.rules:
            identifier = rule.extract(parts.path, query, self.identifier)
            if identifier:
                return CanonicalMatch(
                    url=self.template.replace(IDENTIFIER_TOKEN, identifier),
                    identifier=identifier,
                    rule=rule.name,
                )
        if self._is_listing(parts.path, query):
            return UnresolvableInput(REASON_LISTING)
        return UnresolvableInput(REASON_UNRECOGNIZED)

    def _owns_host(self, host: str) -> bool:
        return any(host == domain or host.endswith("." + domain) for domain in self.domains)

    def _is_listing(self, path: str, query: Mapping[str, str]) -> bool:
        if any(pattern.search(path) for pattern in self.listing_paths):
            return True
        return any(param in query for param in self.listing_params)
