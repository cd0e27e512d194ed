"""
Split one model response into ordered artifact drafts.
Every parser is total: it never raises and always returns at least one draft,
degrading to the whole trimmed response as a single item.
"""
import re

from repurposer.services.content_types import ArtifactDraft, ContentType, EmailMetadata

POST_MARKER = "POST"
EMAIL_MARKER = "EMAIL"

SUBJECT_PREFIX = "subject:"
NUMBERED_LINE = re.compile(r"^\d+[/.]")
NUMBER_PREFIX = re.compile(r"^\d+[/.]\s*")


def _delimiter(marker: str) -> re.Pattern:
    return re.compile(rf"---{re.escape(marker)} \d+---")


def split_delimited(response: str, marker: str) -> list[str]:
    """Segments between `---<MARKER> N---` lines, trimmed, empty ones dropped."""
    segments = _delimiter(marker).split(response or "")
    return [s.strip() for s in segments if s.strip()]


def parse_delimited(response: str, marker: str = "ITEM") -> list[ArtifactDraft]:
    segments = split_delimited(response, marker)
    if not segments:
        return [ArtifactDraft(text=(response or "").strip())]
    return [ArtifactDraft(text=s) for s in segments]


def parse_email(segment: str) -> ArtifactDraft:
    subject = None
    body = []
    for line in (segment or "").strip().splitlines():
        if line.lower().startswith(SUBJECT_PREFIX):
            if subject is None:
                subject = line[len(SUBJECT_PREFIX):].strip()
            continue
        body.append(line)
    return ArtifactDraft(text="\n".join(body).strip(), metadata=EmailMetadata(subject=subject or ""))


def parse_email_sequence(response: str, marker: str = EMAIL_MARKER) -> list[ArtifactDraft]:
    segments = split_delimited(response, marker) or [(response or "").strip()]
    return [parse_email(s) for s in segments]


def parse_numbered_lines(response: str) -> list[ArtifactDraft]:
    """One item per line starting with `N/` or `N.`, prefix removed."""
    drafts = []
    for line in (response or "").splitlines():
        line = line.strip()
        if line and NUMBERED_LINE.match(line):
            drafts.append(ArtifactDraft(text=NUMBER_PREFIX.sub("", line).strip()))
    if not drafts:
        return [ArtifactDraft(text=(response or "").strip())]
    return drafts


def parse_single(response: str) -> list[ArtifactDraft]:
    return [ArtifactDraft(text=(response or "").strip())]


def parse_response(content_type: ContentType, response: str) -> list[ArtifactDraft]:
    if content_type == ContentType.LINKEDIN_POST:
        return parse_delimited(response, POST_MARKER)
    if content_type == ContentType.EMAIL_SEQUENCE:
        return parse_email_sequence(response)
    if content_type == ContentType.TWITTER_THREAD:
        return parse_numbered_lines(response)
    # blog_post, executive_summary
    return parse_single(response)
