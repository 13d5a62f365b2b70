"""
Provisioner configuration — what to install and how to behave.

Validated once, up front. Unknown keys are rejected so a typo in a
config file fails before anything is installed.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class GitSettings(BaseModel):
    """Git identity and defaults applied after git is available."""

    model_config = ConfigDict(extra="forbid")

    user_name: str | None = None
    user_email: str | None = None
    default_branch: str = "main"


# Config flag → catalog tool name, in catalog order
TOOL_FLAGS: dict[str, str] = {
    "install_opencode": "opencode",
    "install_bun": "bun",
    "install_oh_my_opencode": "oh-my-opencode",
    "install_codebuddy": "codebuddy",
    "install_iflow": "iflow",
    "install_qoder": "qoder",
    "install_qwen": "qwen",
}


class ProvisionerConfig(BaseModel):
    """Top-level run configuration."""

    model_config = ConfigDict(extra="forbid")

    silent: bool = False
    auto_install: bool = True

    configure_git: bool = True
    configure_git_bash: bool = True
    git: GitSettings = Field(default_factory=GitSettings)

    install_opencode: bool = True
    install_bun: bool = True
    install_oh_my_opencode: bool = True
    install_codebuddy: bool = True
    install_iflow: bool = True
    install_qoder: bool = True
    install_qwen: bool = True

    def is_enabled(self, tool: str) -> bool:
        """Whether a catalog tool is selected. Git is always selected."""
        if tool == "git":
            return True
        for flag, name in TOOL_FLAGS.items():
            if name == tool:
                return bool(getattr(self, flag))
        return False

    def enabled_tools(self) -> list[str]:
        """Selected tools in install order, git first."""
        return ["git"] + [name for flag, name in TOOL_FLAGS.items() if getattr(self, flag)]
