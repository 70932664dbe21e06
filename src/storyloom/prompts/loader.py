from __future__ import annotations

import logging
import re
from functools import lru_cache
from pathlib import Path

from storyloom.config import settings

log = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{([a-z_]+)\}")


@lru_cache(maxsize=None)
def _read(path: Path) -> str:
    return path.read_text(encoding="utf-8")


class PromptLoader:
    """Renders the ``<category>/<NAME>.txt`` prompt templates.

    Placeholders are ``{lower_snake}`` names.  Story text may contain braces
    of its own, so only known placeholders are substituted, in one pass.
    """

    def __init__(self, templates_dir: str | Path | None = None):
        self._dir = Path(templates_dir or settings.prompts_dir)

    def load(self, category: str, name: str) -> str:
        return _read(self._dir / category / f"{name}.txt")

    def render(self, category: str, name: str, **variables: str) -> str:
        template = self.load(category, name)
        missing = set(_PLACEHOLDER.findall(template)) - set(variables)
        if missing:
            log.warning("Template %s/%s: no value for %s", category, name, sorted(missing))
        return _PLACEHOLDER.sub(lambda m: variables.get(m.group(1), m.group(0)), template)
