"""
Renders the system and user prompts sent to remote extraction backends.

Each template is a markdown file whose YAML frontmatter lists the variables
it ``requires``; rendering fails loudly when one is missing.
"""

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

import yaml
from jinja2 import BaseLoader, Environment, StrictUndefined

TEMPLATES_DIR = Path(__file__).parent
SYSTEM_TEMPLATE = "label_extraction_system"
USER_TEMPLATE = "label_extraction_user"

_env = Environment(loader=BaseLoader(), undefined=StrictUndefined)


@dataclass(frozen=True)
class LabelPromptTemplate:
    name: str
    requires: tuple[str, ...]
    body: str

    def render(self, **variables) -> str:
        missing = [name for name in self.requires if variables.get(name) is None]
        if missing:
            raise ValueError(f"Prompt '{self.name}' missing required vars: {missing}")
        return _env.from_string(self.body).render(**variables)


def _split_frontmatter(content: str) -> tuple[dict, str]:
    if not content.startswith("---"):
        return {}, content
    _, header, body = content.split("---", 2)
    return yaml.safe_load(header) or {}, body.strip()


@lru_cache(maxsize=None)
def load_template(name: str) -> LabelPromptTemplate:
    path = TEMPLATES_DIR / f"{name}.md"
    if not path.exists():
        raise FileNotFoundError(f"Prompt file not found: {path}")
    header, body = _split_frontmatter(path.read_text(encoding="utf-8"))
    return LabelPromptTemplate(name=name, requires=tuple(header.get("requires") or ()), body=body)


def render_label_prompts(document_text: str, include_confidence: bool) -> tuple[str, str]:
    """Return the ``(system, user)`` prompt pair for one extraction request."""
    system_prompt = load_template(SYSTEM_TEMPLATE).render()
    user_prompt = load_template(USER_TEMPLATE).render(
        document_text=document_text,
        include_confidence=include_confidence,
    )
    return system_prompt, user_prompt
