from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from epistemic.schemas import ToggleSet


PREAMBLE = "Please provide the following information for the topic: '{topic}'.\n\n"

SUMMARY_LINE = "- A detailed summary with additional insights and notes.\n"
PRACTICE_QUESTIONS_LINE = "- A set of practice questions with answers provided directly below each question.\n"
VOCABULARY_LINE = "- A list of important vocabulary terms with definitions.\n"
RESOURCES_LINE = "- Include links to relevant articles, videos, or resources for further learning.\n"

NEEDS_SELECTION_MESSAGE = "Please select at least one category to generate a response."


RECOGNIZE_SYSTEM = """You are a document scanner.
You will be given a photo or scan of a page.

Goals:
- Transcribe all readable text on the page, in reading order.

Constraints:
- Output only the transcribed text; no commentary, no markdown fences.
- If no text is readable, output nothing.
"""


class PromptKind(str, Enum):
    noop = "noop"
    needs_selection = "needs_selection"
    ready = "ready"


@dataclass(frozen=True)
class BuiltPrompt:
    kind: PromptKind
    instruction: str = ""

    @property
    def is_ready(self) -> bool:
        return self.kind is PromptKind.ready


NOOP = BuiltPrompt(PromptKind.noop)
NEEDS_SELECTION = BuiltPrompt(PromptKind.needs_selection)


def _lines_for(toggles: ToggleSet) -> list[str]:
    # Order is fixed: summary, practice questions, vocabulary, resources.
    lines: list[str] = []
    if toggles.summary:
        lines.append(SUMMARY_LINE)
    if toggles.practiceQuestions:
        lines.append(PRACTICE_QUESTIONS_LINE)
    if toggles.vocabulary:
        lines.append(VOCABULARY_LINE)
    if toggles.resources:
        lines.append(RESOURCES_LINE)
    return lines


def build_prompt(topic: str, toggles: ToggleSet) -> BuiltPrompt:
    """
    Assemble the study-material instruction for `topic`.

    Returns NOOP for an empty topic and NEEDS_SELECTION when nothing was
    appended after the preamble. Emptiness is judged against the
    preamble-only text, not the toggles, so a bullet line that equals the
    empty string would read as "no category selected".
    """
    if not topic:
        return NOOP

    preamble = PREAMBLE.format(topic=topic)
    instruction = preamble + "".join(_lines_for(toggles))
    if instruction == preamble:
        return NEEDS_SELECTION
    return BuiltPrompt(PromptKind.ready, instruction)
