"""Story text helpers for progressive display.

Sentence splitting is purely lexical: abbreviations like "Dr." and decimals
like "3.5" split mid-sentence.
"""

import re

INTRODUCTION_MARKER = "### INTRODUCTION"
END_MARKER = "---"

_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")


class StoryParseError(ValueError):
    """Raised when a story lacks the expected markers."""


def parse_introduction(story: str) -> str:
    """Return the text between the introduction heading and the next `---`."""
    start = story.find(INTRODUCTION_MARKER)
    if start == -1:
        raise StoryParseError("No introduction section found in story")

    newline = story.find("\n", start)
    content_start = len(story) if newline == -1 else newline + 1

    end = story.find(END_MARKER, content_start)
    if end == -1:
        raise StoryParseError("No end marker (---) found for introduction")

    return story[content_start:end].strip()


def split_into_sentences(text: str) -> list[str]:
    """Split on `.`, `!` or `?` followed by whitespace, keeping the punctuation."""
    return [s.strip() for s in _SENTENCE_END.split(text) if s.strip()]
