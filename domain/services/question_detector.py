from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Sequence

from domain.models import PageControl, Question, QuestionType

# Labels matching any of these describe data the profile already supplies.
STANDARD_FIELD_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"first.*name",
        r"last.*name",
        r"^name$",
        r"email",
        r"phone",
        r"telephone",
        r"mobile",
        r"address",
        r"street",
        r"city",
        r"state",
        r"zip",
        r"postal",
        r"resume",
        r"cv",
        r"linkedin",
        r"portfolio",
        r"website",
    )
)

_PLACEHOLDER_OPTION = re.compile(
    r"^(?:(?:please\s+)?(?:select|choose)(?:\s+(?:one|an?\s+option|an?\s+answer))?\s*(?:\.\.\.|…)?"
    r"|--.*--|-+)$",
    re.IGNORECASE,
)


def is_standard_field(label: str) -> bool:
    cleaned = label.strip()
    if not cleaned:
        return False
    return any(p.search(cleaned) for p in STANDARD_FIELD_PATTERNS)


def humanize_name(name: str) -> str:
    return re.sub(r"[-_]+", " ", name).strip()


def derive_label(control: PageControl) -> str:
    for candidate in (
        control.label_text,
        control.aria_label,
        control.placeholder,
        humanize_name(control.name),
    ):
        if candidate and candidate.strip():
            return " ".join(candidate.split())
    return ""


def clean_options(options: Sequence[str]) -> tuple[str, ...]:
    cleaned = []
    for raw in options:
        text = " ".join(str(raw).split())
        if not text or _PLACEHOLDER_OPTION.match(text):
            continue
        cleaned.append(text)
    return tuple(cleaned)


def is_required(control: PageControl) -> bool:
    return control.required_attr or control.aria_required or control.in_required_container


@dataclass
class _RadioGroup:
    name: str
    label: str
    required: bool
    options: list[str] = field(default_factory=list)

    def to_question(self) -> Question:
        return Question(
            id=f"radio_{self.name}",
            type=QuestionType.RADIO,
            label=self.label,
            required=self.required,
            selector=f'input[type="radio"][name="{self.name}"]',
            options=clean_options(self.options),
        )


class QuestionDetector:
    """
    Turns scanned page controls into custom screening questions.

    Only visible controls are considered. Controls whose label looks like a
    standard profile attribute (name, email, phone, address, resume, links)
    are left out so the user is never re-asked for data the profile holds.
    Radio buttons are grouped by their shared ``name``; the first visible
    member of a group decides its label and required flag, later members
    only contribute options.
    """

    def detect(self, controls: Sequence[PageControl]) -> list[Question]:
        questions: list[Question] = []
        radio_groups: dict[str, _RadioGroup] = {}
        skipped_groups: set[str] = set()

        for control in controls:
            if not control.visible:
                continue
            if control.kind == "textarea":
                question = self._single(control, QuestionType.TEXTAREA, "Text Response")
            elif control.kind == "select":
                question = self._single(control, QuestionType.SELECT, "Selection")
            elif control.kind == "radio":
                self._accumulate_radio(control, radio_groups, skipped_groups)
                continue
            else:
                continue
            if question is not None:
                questions.append(question)

        questions.extend(group.to_question() for group in radio_groups.values())
        return questions

    @staticmethod
    def _single(
        control: PageControl,
        qtype: QuestionType,
        fallback_prefix: str,
    ) -> Question | None:
        label = derive_label(control)
        if is_standard_field(label):
            return None
        return Question(
            id=f"{qtype.value}_{control.index}",
            type=qtype,
            label=label or f"{fallback_prefix} {control.index + 1}",
            required=is_required(control),
            selector=control.selector,
            options=clean_options(control.options) if qtype is QuestionType.SELECT else (),
        )

    @staticmethod
    def _accumulate_radio(
        control: PageControl,
        groups: dict[str, _RadioGroup],
        skipped: set[str],
    ) -> None:
        name = control.name
        if not name or name in skipped:
            return

        group = groups.get(name)
        if group is None:
            label = " ".join(control.group_label.split()) or humanize_name(name)
            if is_standard_field(label):
                skipped.add(name)
                return
            group = _RadioGroup(name=name, label=label or name, required=is_required(control))
            groups[name] = group

        option = " ".join(control.option_label.split())
        if option:
            group.options.append(option)
