"""
L4 Execution — Template rendering and shell config lines.

Strategy templates carry ``{placeholder}`` tokens that only make
sense once the host is known. Rendering happens once, in the
resolver, from the detected Environment.
"""

from __future__ import annotations

import getpass
import socket
from pathlib import Path

from provisioner.core.models.environment import Environment, OSFamily
from provisioner.core.models.tool import Strategy
from provisioner.core.services.tool_install.data.constants import (
    GIT_ARCH_NAMES,
    GIT_MACOS_ARCH_NAMES,
    GIT_VERSION,
)


def template_values(environment: Environment) -> dict[str, str]:
    """Built-in placeholder values for an environment."""
    arch_names = GIT_MACOS_ARCH_NAMES if environment.os_family == OSFamily.MACOS else GIT_ARCH_NAMES
    return {
        "home": environment.home,
        "tmp": environment.tmp,
        "appdata": environment.appdata or environment.home,
        "arch": environment.arch.value,
        "git_arch": arch_names.get(environment.arch.value, environment.machine),
        "version": GIT_VERSION,
    }


def render_template(template: str, values: dict[str, str]) -> str:
    """Substitute ``{var}`` placeholders with values.

    Simple string replacement: no Jinja, no escaping. Unknown
    placeholders are left as they are.
    """
    result = template
    for key, value in values.items():
        result = result.replace(f"{{{key}}}", str(value))
    return result


def render_strategy(strategy: Strategy, environment: Environment) -> Strategy:
    """Concrete copy of ``strategy`` for ``environment``."""
    values = template_values(environment)
    return strategy.model_copy(update={
        "commands": tuple(
            tuple(render_template(arg, values) for arg in argv)
            for argv in strategy.commands
        ),
        "path_entry": (
            render_template(strategy.path_entry, values)
            if strategy.path_entry else None
        ),
    })


def shell_config_line(shell_type: str, path_entry: str) -> str:
    """PATH export line in the dialect of ``shell_type`` (``"fish"`` or POSIX)."""
    if shell_type == "fish":
        return f'set -gx PATH "{path_entry}" $PATH'
    return f'export PATH="{path_entry}:$PATH"'


def system_user() -> str:
    """Login name, or "user" when it cannot be determined."""
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "user"


def host_name() -> str:
    try:
        return socket.gethostname() or "localhost"
    except OSError:
        return "localhost"


def render_path(template: str, environment: Environment) -> Path:
    """Render a ``{home}``-style path template for ``environment``."""
    return Path(render_template(template, template_values(environment)))
