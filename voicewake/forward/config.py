from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

TEXT_PLACEHOLDER = "${text}"
DEFAULT_COMMAND_TEMPLATE = 'clawdis-mac agent --message "${text}" --thinking low'


class ForwardConfig(BaseModel):
    """Where a detected transcript gets relayed. Frozen: read once per detection."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    target: str = ""
    identity_path: Optional[str] = None
    command_template: str = DEFAULT_COMMAND_TEMPLATE

    @property
    def has_target(self) -> bool:
        return bool(self.target.strip())

    @property
    def should_forward(self) -> bool:
        return self.enabled and self.has_target

    def render(self, transcript: str) -> str:
        # Literal substitution; the transcript is also piped to stdin.
        return self.command_template.replace(TEXT_PLACEHOLDER, transcript)
