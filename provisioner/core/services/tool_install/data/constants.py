"""
L0 Data — Module-level constants.

Pure data. No logic. No imports beyond stdlib.
"""

from __future__ import annotations

# Architecture name normalization (platform.machine() → Arch value).
ARCH_MAP: dict[str, str] = {
    "x86_64": "x64",
    "amd64": "x64",
    "AMD64": "x64",        # Windows
    "x64": "x64",
    "aarch64": "arm64",
    "arm64": "arm64",      # macOS (Darwin reports arm64)
    "ARM64": "arm64",      # Windows on ARM
}

# platform.system() → OSFamily value
OS_MAP: dict[str, str] = {
    "Windows": "windows",
    "Darwin": "macos",
    "Linux": "linux",
}

# Timeout tiers (seconds).
TIMEOUT_PACKAGE_MANAGER = 300
TIMEOUT_DOWNLOAD = 600
TIMEOUT_PROBE = 30
TIMEOUT_PRIVILEGE_PROBE = 5

# Container markers.
CONTAINER_MARKER_FILES: tuple[str, ...] = ("/.dockerenv", "/run/.containerenv")
CGROUP_FILES: tuple[str, ...] = ("/proc/1/cgroup", "/proc/self/cgroup")
CGROUP_MARKERS: tuple[str, ...] = ("docker", "kubepods", "containerd", "lxc")

# Prebuilt git release artifacts (used when no package manager works).
GIT_VERSION = "2.47.0"
GIT_LINUX_TARBALL = (
    "https://github.com/git/git/releases/download/v{version}/git-{version}-{git_arch}.tar.gz"
)
GIT_MACOS_TARBALL = (
    "https://github.com/git/git/releases/download/v{version}/git-{version}-{git_arch}-apple-darwin.tar.gz"
)
GIT_WINDOWS_MINGIT = (
    "https://github.com/git-for-windows/git/releases/download/"
    "v{version}.windows.2/MinGit-{version}-64-bit.zip"
)

# Arch naming used by the prebuilt git artifacts.
GIT_ARCH_NAMES: dict[str, str] = {
    "x64": "x86_64",
    "arm64": "aarch64",
}
GIT_MACOS_ARCH_NAMES: dict[str, str] = {
    "x64": "x86_64",
    "arm64": "arm64",
}

# User-level install locations.
GIT_USER_DIR = "{home}/git-user"
GIT_PORTABLE_DIR = "{home}\\git-portable"
NPM_USER_PREFIX = "{home}/.npm-global"

# Canonical directories package managers drop executables into.
# Checked by diagnostics, re-added to PATH by repair.
CANONICAL_BIN_DIRS: dict[str, tuple[str, ...]] = {
    "windows": ("{appdata}\\npm", "{home}\\.bun\\bin"),
    "macos": ("{home}/.npm-global/bin", "{home}/.bun/bin"),
    "linux": ("{home}/.npm-global/bin", "{home}/.bun/bin"),
}

# OpenCode config layout.
OPENCODE_CONFIG_FILE = "{home}/.config/opencode/opencode.json"
OH_MY_OPENCODE_DIR = "{home}/.opencode"
OH_MY_OPENCODE_PLUGINS = "{home}/.opencode/plugins"

# Marker written above every PATH line we append to a shell rc file.
PATH_MARKER = "# Added by devtools-provisioner"

# Containers are expected to ship git in the image.
CONTAINER_GIT_HINT = (
    "in a container, pre-install git in the Dockerfile: "
    "RUN apk add --no-cache git (Alpine) or RUN apt-get install -y git (Debian/Ubuntu)"
)
