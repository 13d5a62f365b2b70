"""
L0 Data — Tool catalog.

Every provisionable tool with its per-OS strategy table, in install
order. Strategies are listed in preference order; the resolver only
reorders them by privilege and precondition cost.

Placeholders (``{home}``, ``{tmp}``, ``{appdata}``, ``{git_arch}``
and ``{version}``) are rendered from the detected
Environment at resolve time.
"""

from __future__ import annotations

from provisioner.core.models.tool import Strategy, ToolSpec
from provisioner.core.services.tool_install.data.constants import (
    CONTAINER_GIT_HINT,
    GIT_LINUX_TARBALL,
    GIT_MACOS_TARBALL,
    GIT_PORTABLE_DIR,
    GIT_USER_DIR,
    GIT_WINDOWS_MINGIT,
    NPM_USER_PREFIX,
    OH_MY_OPENCODE_DIR,
    OH_MY_OPENCODE_PLUGINS,
    OPENCODE_CONFIG_FILE,
    TIMEOUT_DOWNLOAD,
    TIMEOUT_PACKAGE_MANAGER,
)

_WIN_GIT_CMD = "C:\\Program Files\\Git\\cmd"


# ── Strategy builders ───────────────────────────────────────────


def _pm(
    label: str,
    os_family: str,
    *commands: tuple[str, ...],
    elevated: bool = False,
    path_entry: str | None = None,
) -> Strategy:
    """System or user package manager. The manager binary is the precondition."""
    return Strategy(
        label=label,
        method="package-manager",
        os_family=os_family,
        requires=(commands[0][0],),
        needs_elevation=elevated,
        commands=commands,
        timeout=TIMEOUT_PACKAGE_MANAGER,
        path_entry=path_entry,
    )


def _git_tarball(os_family: str, url: str) -> list[Strategy]:
    """Prebuilt git tarball unpacked into the user's home, via curl or wget."""
    archive = "{tmp}/git-{version}.tar.gz"
    unpack = ("tar", "-xzf", archive, "-C", GIT_USER_DIR, "--strip-components=1")
    fetchers = [("curl", ("curl", "-fsSL", "-o", archive, url))]
    if os_family == "linux":
        fetchers.append(("wget", ("wget", "-q", "-O", archive, url)))

    return [
        Strategy(
            label=f"tarball-{fetcher}",
            method="download",
            os_family=os_family,
            arches=("x64", "arm64"),
            requires=(fetcher, "tar"),
            commands=(("mkdir", "-p", GIT_USER_DIR), fetch, unpack),
            timeout=TIMEOUT_DOWNLOAD,
            network=True,
            path_entry=GIT_USER_DIR,
        )
        for fetcher, fetch in fetchers
    ]


def _npm(package: str) -> list[Strategy]:
    """Global npm install, then the same into a user-owned prefix."""
    install = ("npm", "install", "-g", package)
    return [
        Strategy(
            label="npm-global",
            method="npm",
            os_family="windows",
            requires=("npm",),
            commands=(install,),
            timeout=TIMEOUT_PACKAGE_MANAGER,
            network=True,
            path_entry="{appdata}\\npm",
        ),
        Strategy(
            label="npm-global",
            method="npm",
            os_family="macos",
            requires=("npm",),
            commands=(install,),
            timeout=TIMEOUT_PACKAGE_MANAGER,
            network=True,
        ),
        Strategy(
            label="npm-global",
            method="npm",
            os_family="linux",
            requires=("npm",),
            commands=(install,),
            timeout=TIMEOUT_PACKAGE_MANAGER,
            network=True,
        ),
        *(
            Strategy(
                label="npm-user-prefix",
                method="npm",
                os_family=os_family,
                requires=("npm",),
                commands=(("npm", "install", "-g", "--prefix", NPM_USER_PREFIX, package),),
                timeout=TIMEOUT_PACKAGE_MANAGER,
                network=True,
                path_entry=NPM_USER_PREFIX + "/bin",
            )
            for os_family in ("macos", "linux")
        ),
    ]


def _npm_tool(name: str, label: str, package: str, executable: str, **extra: object) -> ToolSpec:
    return ToolSpec(
        name=name,
        label=label,
        executable=executable,
        version_command=(executable, "--version"),
        strategies=tuple(_npm(package)),
        manual_hint=f"npm install -g {package}",
        **extra,
    )


# ── Catalog ─────────────────────────────────────────────────────

GIT = ToolSpec(
    name="git",
    label="Git",
    executable="git",
    version_command=("git", "--version"),
    required=True,
    strategies=(
        # Linux
        _pm("apt-get", "linux", ("apt-get", "update"), ("apt-get", "install", "-y", "git-all"),
            elevated=True),
        _pm("dnf", "linux", ("dnf", "install", "-y", "git-all"), elevated=True),
        _pm("yum", "linux", ("yum", "install", "-y", "git-all"), elevated=True),
        _pm("pacman", "linux", ("pacman", "-S", "--noconfirm", "git"), elevated=True),
        _pm("zypper", "linux", ("zypper", "--non-interactive", "install", "git"), elevated=True),
        _pm("apk", "linux", ("apk", "add", "--no-cache", "git"), elevated=True),
        _pm("brew", "linux", ("brew", "install", "git")),
        *_git_tarball("linux", GIT_LINUX_TARBALL),
        # macOS
        _pm("brew", "macos", ("brew", "install", "git")),
        _pm("xcode-select", "macos", ("xcode-select", "--install")),
        *_git_tarball("macos", GIT_MACOS_TARBALL),
        # Windows
        _pm("winget", "windows",
            ("winget", "install", "--id", "Git.Git", "-e", "--source", "winget",
             "--accept-package-agreements", "--accept-source-agreements"),
            path_entry=_WIN_GIT_CMD),
        _pm("choco", "windows", ("choco", "install", "git", "-y"),
            elevated=True, path_entry=_WIN_GIT_CMD),
        _pm("scoop", "windows", ("scoop", "install", "git"),
            path_entry="{home}\\scoop\\shims"),
        Strategy(
            label="mingit-portable",
            method="download",
            os_family="windows",
            arches=("x64",),
            requires=("powershell",),
            commands=((
                "powershell", "-NoProfile", "-ExecutionPolicy", "Bypass", "-Command",
                f"Invoke-WebRequest -Uri '{GIT_WINDOWS_MINGIT}' -OutFile '{{tmp}}\\MinGit.zip'; "
                f"Expand-Archive -Path '{{tmp}}\\MinGit.zip' -DestinationPath '{GIT_PORTABLE_DIR}' -Force",
            ),),
            timeout=TIMEOUT_DOWNLOAD,
            network=True,
            path_entry=GIT_PORTABLE_DIR + "\\mingw64\\bin",
        ),
    ),
    manual_hint="Download Git from https://git-scm.com/downloads",
    container_hint=CONTAINER_GIT_HINT,
)

OPENCODE = _npm_tool(
    "opencode", "OpenCode", "opencode-ai", "opencode",
    unsupported_platforms=(("windows", "arm64"),),
    config_file=OPENCODE_CONFIG_FILE,
)

BUN = ToolSpec(
    name="bun",
    label="Bun",
    executable="bun",
    version_command=("bun", "--version"),
    companions=("bunx",),
    strategies=(
        *_npm("bun"),
        Strategy(
            label="bun-install-script",
            method="script",
            os_family="linux",
            requires=("bash", "curl"),
            commands=(("bash", "-c", "curl -fsSL https://bun.sh/install | bash"),),
            timeout=TIMEOUT_DOWNLOAD,
            network=True,
            path_entry="{home}/.bun/bin",
        ),
        Strategy(
            label="bun-install-script",
            method="script",
            os_family="macos",
            requires=("bash", "curl"),
            commands=(("bash", "-c", "curl -fsSL https://bun.sh/install | bash"),),
            timeout=TIMEOUT_DOWNLOAD,
            network=True,
            path_entry="{home}/.bun/bin",
        ),
        Strategy(
            label="bun-install-script",
            method="script",
            os_family="windows",
            requires=("powershell",),
            commands=(("powershell", "-NoProfile", "-Command", "irm bun.sh/install.ps1 | iex"),),
            timeout=TIMEOUT_DOWNLOAD,
            network=True,
            path_entry="{home}\\.bun\\bin",
        ),
    ),
    manual_hint="See https://bun.sh for installation instructions",
)

_OMO_ARGS = ("oh-my-opencode", "install", "--no-tui", "--claude=no", "--chatgpt=no", "--gemini=no")

OH_MY_OPENCODE = ToolSpec(
    name="oh-my-opencode",
    label="Oh My OpenCode",
    presence_path=OH_MY_OPENCODE_DIR,
    plugin_dir=OH_MY_OPENCODE_PLUGINS,
    depends_on=("bun", "opencode"),
    strategies=(
        Strategy(
            label="bunx",
            method="bunx",
            requires=("bunx",),
            commands=(("bunx", *_OMO_ARGS),),
            timeout=TIMEOUT_PACKAGE_MANAGER,
            network=True,
        ),
        Strategy(
            label="npx-bun",
            method="npx",
            requires=("npx", "bun"),
            commands=(("npx", "--bun", *_OMO_ARGS),),
            timeout=TIMEOUT_PACKAGE_MANAGER,
            network=True,
        ),
    ),
    manual_hint="bunx " + " ".join(_OMO_ARGS),
)

CODEBUDDY = _npm_tool("codebuddy", "CodeBuddy Code", "@tencent-ai/codebuddy-code", "codebuddy")
IFLOW = _npm_tool("iflow", "iFlow CLI", "@iflow-ai/iflow-cli", "iflow")
QODER = _npm_tool("qoder", "Qoder CLI", "@qoder-ai/qodercli", "qodercli")
QWEN = _npm_tool("qwen", "Qwen Code", "@qwen-code/qwen-code", "qwen")

TOOL_SPECS: dict[str, ToolSpec] = {
    spec.name: spec
    for spec in (GIT, OPENCODE, BUN, OH_MY_OPENCODE, CODEBUDDY, IFLOW, QODER, QWEN)
}


def get_tool_spec(name: str) -> ToolSpec:
    """Look up a catalog entry. Raises KeyError for unknown names."""
    return TOOL_SPECS[name]
