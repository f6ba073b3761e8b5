import re

MAX_MESSAGE_LENGTH = 500

TAG_RE = re.compile(r"<[^>]*>")
WS_RE = re.compile(r"\s+")

# &amp; last within a pass
ENTITIES = (
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&nbsp;", " "),
    ("&amp;", "&"),
)


def _strip_tags(text: str) -> str:
    # repeat until stable: decoding entities can assemble a new tag
    prev = None
    while prev != text:
        prev = text
        text = TAG_RE.sub("", text)
        for entity, char in ENTITIES:
            text = text.replace(entity, char)
    return text


def sanitize_message(text) -> str:
    """Plain-text chat message: no tags, single spaces, at most 500 chars.

    Applying it twice gives the same result as applying it once.
    """
    if not text or not isinstance(text, str):
        return ""
    out = _strip_tags(text)
    out = WS_RE.sub(" ", out).strip()
    if len(out) > MAX_MESSAGE_LENGTH:
        out = out[:MAX_MESSAGE_LENGTH].rstrip()
    return out
