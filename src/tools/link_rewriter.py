"""Classify link annotations and rewrite the tag on tracking URIs.

A link is in scope when it is a /Link annotation whose /A action is a
/URI action and whose decoded URI starts with the tracking base URL.
In-scope links get their ``tag`` query parameter set (inserted or
replaced) to the requested value.

Rewriting is split in three steps so each can be tested alone:
  1. classify()      - annotation -> LinkAnnotation | OtherAnnotation
  2. plan_rewrite()  - pure, decides the outcome and the new URI
  3. commit()        - the only write, back into the action dictionary
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import pikepdf

from src.models.document import LinkOutcome

logger = logging.getLogger(__name__)

TAG_PARAM = "tag"


class MalformedUrlError(ValueError):
    """A URI that cannot be safely rewritten."""


@dataclass
class LinkAnnotation:
    """A /Link annotation carrying a /URI action."""
    annotation: pikepdf.Dictionary
    action: pikepdf.Dictionary
    uri: str  # decoded text of /URI


@dataclass
class OtherAnnotation:
    """Anything the tagger leaves alone."""
    reason: str


@dataclass
class RewritePlan:
    """Decision for one annotation."""
    outcome: LinkOutcome
    original_uri: str = ""
    new_uri: str = ""
    warning: str = ""


def classify(annotation: pikepdf.Dictionary) -> LinkAnnotation | OtherAnnotation:
    """Decide whether an annotation is a URI hyperlink."""
    if annotation.get(pikepdf.Name.Subtype) != pikepdf.Name.Link:
        return OtherAnnotation("not a /Link annotation")

    action = annotation.get(pikepdf.Name.A)
    if not isinstance(action, pikepdf.Dictionary):
        return OtherAnnotation("no action dictionary")
    if action.get(pikepdf.Name.S) != pikepdf.Name.URI:
        return OtherAnnotation("action is not /URI")

    uri = action.get(pikepdf.Name.URI)
    if not isinstance(uri, pikepdf.String):
        return OtherAnnotation("/URI is not a string")

    # pikepdf decodes PDFDocEncoding and UTF-16 strings
    return LinkAnnotation(annotation=annotation, action=action, uri=str(uri))


def set_query_param(url: str, name: str, value: str) -> str:
    """Return ``url`` with query parameter ``name`` set to ``value``.

    The first occurrence of ``name`` is replaced and later duplicates are
    dropped; other parameters keep their order. Appended at the end when
    absent. Encoding is left to urlencode.

    Raises:
        MalformedUrlError: if the URL has no scheme or host, a bad port,
            or a query that is not a list of name=value fields.
    """
    try:
        parts = urlsplit(url)
        parts.port  # raises ValueError on a bad port
    except ValueError as e:
        raise MalformedUrlError(f"{url!r}: {e}") from e

    if not parts.scheme or not parts.hostname:
        raise MalformedUrlError(f"{url!r}: missing scheme or host")

    params: list[tuple[str, str]] = []
    if parts.query:
        fields = [f for f in parts.query.split("&") if f]
        bad = [f for f in fields if "=" not in f]
        if bad:
            raise MalformedUrlError(f"{url!r}: bad query field {bad[0]!r}")
        params = parse_qsl(parts.query, keep_blank_values=True)

    rewritten: list[tuple[str, str]] = []
    replaced = False
    for key, val in params:
        if key == name:
            if not replaced:
                rewritten.append((name, value))
                replaced = True
            continue
        rewritten.append((key, val))
    if not replaced:
        rewritten.append((name, value))

    return urlunsplit(parts._replace(query=urlencode(rewritten)))


def plan_rewrite(link: LinkAnnotation, base_url: str, tag: str) -> RewritePlan:
    """Decide what to do with one URI link. Does not modify anything.

    Args:
        link: A classified URI link.
        base_url: Tracking URL prefix; matched literally against the URI.
        tag: Value for the ``tag`` query parameter.

    Returns:
        RewritePlan. NOT_APPLICABLE for links outside the tracking domain,
        MALFORMED / UNCHANGED / UPDATED for tracking links.
    """
    original = link.uri
    if not original.startswith(base_url):
        return RewritePlan(outcome=LinkOutcome.NOT_APPLICABLE, original_uri=original)

    try:
        new_uri = set_query_param(original, TAG_PARAM, tag)
    except MalformedUrlError as e:
        return RewritePlan(
            outcome=LinkOutcome.MALFORMED,
            original_uri=original,
            warning=f"Failed to parse URL: {e}",
        )

    if new_uri == original:
        return RewritePlan(outcome=LinkOutcome.UNCHANGED, original_uri=original)

    return RewritePlan(
        outcome=LinkOutcome.UPDATED,
        original_uri=original,
        new_uri=new_uri,
    )


def commit(link: LinkAnnotation, plan: RewritePlan) -> bool:
    """Write an UPDATED plan back into the link's action dictionary.

    Returns True if the document was modified.
    """
    if plan.outcome != LinkOutcome.UPDATED:
        return False
    link.action[pikepdf.Name.URI] = pikepdf.String(plan.new_uri)
    link.uri = plan.new_uri
    logger.debug("URI: %s -> %s", plan.original_uri, plan.new_uri)
    return True


def rewrite_link(annotation: pikepdf.Dictionary, base_url: str, tag: str) -> RewritePlan:
    """Classify, plan and commit for a single annotation."""
    link = classify(annotation)
    if isinstance(link, OtherAnnotation):
        return RewritePlan(outcome=LinkOutcome.NOT_APPLICABLE)

    plan = plan_rewrite(link, base_url, tag)
    if plan.warning:
        logger.warning(plan.warning)
    commit(link, plan)
    return plan
