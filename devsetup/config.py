# devsetup/config.py
"""
Centralized constants and default values for the development environment setup.

This module defines the script version, default locations, package lists for
apt installation, the default mirror tiers, known-noise output patterns and
logging symbols. Values that users may override live in
`devsetup.config_models.AppSettings`; the defaults there are taken from here.
"""

from pathlib import Path
from typing import Dict, List

# Represents the version of the setup logic.
SCRIPT_VERSION: str = "0.1.0"

LOG_PREFIX_DEFAULT: str = "[DEV-SETUP]"

# --- Configuration file discovery ---
CONFIG_FILE_ENV_VAR: str = "DEVSETUP_CONFIG_FILE"
LOG_FILE_ENV_VAR: str = "DEVSETUP_LOG_FILE"
DEFAULT_CONFIG_FILE: Path = Path("~/.config/devsetup/config.yaml")

# Directory holding the bundled dotfile payloads.
PAYLOAD_DIR: Path = Path(__file__).resolve().parent / "payload"
# Files copied into the workspace root once, keeping their relative paths.
WORKSPACE_PAYLOAD_DIR: Path = PAYLOAD_DIR / "workspace"
WORKSPACE_EXECUTABLES: List[str] = ["update.sh"]

# --- Workspace layout ---
WORKSPACE_ROOT_DEFAULT: str = "~/dev-env"
WORKSPACE_SUBDIRS: List[str] = [
    "ansible/roles",
    "configs/nvim/custom",
    "configs/zsh",
    "configs/tmux",
    "configs/wsl",
    "configs/git",
    "bin",
    "docs",
]
HOME_DIRS: List[str] = ["~/.local/bin", "~/bin", "~/tools"]

# --- Dotfiles location ---
DOTFILES_DIR_NAME_DEFAULT: str = "dotfiles"
WINDOWS_USERS_ROOT: Path = Path("/mnt/c/Users")

# --- Package Lists (for apt installation) ---
CORE_PACKAGES: List[str] = [
    "curl",
    "wget",
    "git",
    "python3",
    "python3-pip",
    "unzip",
    "build-essential",
]

ANSIBLE_PACKAGES: List[str] = ["ansible"]

# --- Editor ---
NEOVIM_APPIMAGE_URL: str = (
    "https://github.com/neovim/neovim/releases/download/v0.10.0/nvim.appimage"
)
NEOVIM_INSTALL_DIR: str = "/opt/nvim"
NEOVIM_SYSTEM_LINK: str = "/usr/local/bin/nvim"
KICKSTART_REPO_URL: str = "https://github.com/nvim-lua/kickstart.nvim.git"

# --- Shell startup ---
PATH_EXPORT_LINE: str = (
    'export PATH="$HOME/.local/bin:/usr/local/bin:$HOME/bin:$PATH"'
)
SHELL_STARTUP_FILES: List[str] = ["~/.bashrc", "~/.profile"]

# --- Git defaults applied after identity is confirmed ---
GIT_DEFAULTS: Dict[str, str] = {
    "core.editor": "nvim",
    "init.defaultBranch": "main",
    "pull.rebase": "false",
    "color.ui": "auto",
    "push.default": "simple",
    "core.autocrlf": "input",
}

# --- Mirror tiers, best expected performance first ---
DEFAULT_MIRROR_TIERS: List[Dict[str, object]] = [
    {
        "name": "optimized",
        "endpoints": ["http://cdn-fastly.deb.debian.org/debian"],
    },
    {
        "name": "curated-fallback",
        "endpoints": [
            "http://mirrors.kernel.org/debian",
            "http://mirror.csclub.uwaterloo.ca/debian",
            "http://ftp.us.debian.org/debian",
        ],
    },
    {
        "name": "emergency",
        "endpoints": ["http://deb.debian.org/debian"],
    },
]
MIRROR_SOURCES_FILE_DEFAULT: str = (
    "/etc/apt/sources.list.d/devsetup-mirror.sources"
)
# Distribution repository files moved aside once the managed file is in place.
DISTRIBUTION_SOURCE_FILES: List[str] = [
    "/etc/apt/sources.list",
    "/etc/apt/sources.list.d/debian.sources",
]
MIRROR_COMPONENTS_DEFAULT: List[str] = ["main", "contrib", "non-free-firmware"]

# --- Retry policy ---
MAX_INSTALL_ATTEMPTS_DEFAULT: int = 3
RETRY_BACKOFF_SECONDS_DEFAULT: float = 5.0

# --- Known-benign package manager output ---
APT_NOISE_PATTERNS: List[str] = [
    r"^WARNING: apt does not have a stable CLI interface",
    r"^debconf: unable to initialize frontend",
    r"^debconf: \(.*\)$",
    r"^debconf: falling back to frontend",
    r"^debconf: delaying package configuration",
    r"^dpkg-preconfigure: unable to re-open stdin",
    r"^Reading package lists\.\.\.",
    r"^Building dependency tree\.\.\.",
    r"^Reading state information\.\.\.",
]

# --- Network precondition ---
NETWORK_CHECK_TIMEOUT_SECONDS: float = 5.0

# --- Symbols for Logging ---
SYMBOLS: Dict[str, str] = {
    "success": "✅",
    "error": "❌",
    "warning": "⚠️",
    "info": "ℹ️",
    "step": "➡️",
    "gear": "⚙️",
    "package": "📦",
    "rocket": "🚀",
    "sparkles": "✨",
    "critical": "🔥",
    "debug": "🐛",
    "link": "🔗",
}
