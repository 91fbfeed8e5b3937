"""Service for the system prompt: read it from the prompt file, write new content back."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from app.constants.default_system_prompt import DefaultSystemPrompt
from app.infra.logging_config import get_logger

logger = get_logger("prompt_loader")


class PromptLoader:
    """Loads the system prompt from disk on every call so edits apply without a restart."""

    def __init__(self, path: str | Path, default: Optional[str] = None) -> None:
        self.path = Path(path)
        self.default = (default or DefaultSystemPrompt.CONTENT).strip()

    def load(self) -> str:
        try:
            content = self.path.read_text(encoding="utf-8").strip()
        except OSError as e:
            logger.warning("Could not read prompt file %s: %s", self.path, e)
            return self.default
        return content or self.default

    def update(self, content: str) -> bool:
        """Replace the prompt file content. Returns False if the file could not be written."""
        try:
            self.path.write_text(content, encoding="utf-8")
        except OSError as e:
            logger.error("Could not update prompt file %s: %s", self.path, e)
            return False
        logger.info("System prompt updated (%d chars)", len(content))
        return True
