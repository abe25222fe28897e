from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, List, Optional


@dataclass
class Section:
    name: str
    lines: List[str] = field(default_factory=list)
    subsections: List["Section"] = field(default_factory=list)
    _list_counter: int = field(default=0, repr=False)

    def add_line(self, line: str) -> None:
        self.lines.append(line)

    def add_list_item(self, item: str) -> None:
        self._list_counter += 1
        self.add_line(f"{self._list_counter}. {item}")

    def find(self, name: str) -> Optional["Section"]:
        if self.name == name:
            return self
        for sub in self.subsections:
            found = sub.find(name)
            if found is not None:
                return found
        return None

    def render(self, indent: str = "") -> str:
        out = [f"{indent}<{self.name}>\n"]
        out.extend(f"{indent}{line.strip()}\n" for line in self.lines)
        out.extend(sub.render(indent + "  ") for sub in self.subsections)
        out.append(f"{indent}</{self.name}>\n")
        return "".join(out)


class PromptBuilder:
    """Assembles a system prompt out of tagged, optionally nested sections.

    Every mutator returns the builder so calls can be chained. Text aimed at
    a section that does not exist is silently ignored.
    """

    def __init__(self) -> None:
        self._sections: List[Section] = []

    def _find(self, name: str) -> Optional[Section]:
        for section in self._sections:
            found = section.find(name)
            if found is not None:
                return found
        return None

    def create_section(self, name: str) -> "PromptBuilder":
        if self._find(name) is None:
            self._sections.append(Section(name=name))
        return self

    def add_subsection(self, child: str, parent: str) -> "PromptBuilder":
        parent_section = self._find(parent)
        if parent_section is None:
            parent_section = Section(name=parent)
            self._sections.append(parent_section)
        if self._find(child) is None:
            parent_section.subsections.append(Section(name=child))
        return self

    def add_text(self, section: str, text: str) -> "PromptBuilder":
        target = self._find(section)
        if target is not None:
            target.add_line(text.strip())
        return self

    def add_value(self, section: str, value: Any) -> "PromptBuilder":
        return self.add_text(section, _stringify(value))

    def add_list_item(self, section: str, item: str) -> "PromptBuilder":
        target = self._find(section)
        if target is not None:
            target.add_list_item(item.strip())
        return self

    def add_list_value(self, section: str, value: Any) -> "PromptBuilder":
        return self.add_list_item(section, _stringify(value))

    def build(self) -> str:
        return "".join(section.render() for section in self._sections).strip()


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
