# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/rigup/config/models.py

from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class _Strict(BaseModel):
    model_config = ConfigDict(extra="forbid")


class PackagesConfig(_Strict):
    """Base packages for the 'packages' target."""
    install: List[str] = Field(default_factory=lambda: ["tmux"])


class ShellConfig(_Strict):
    name: str = "zsh"
    # curl fetches the Oh My Zsh installer
    packages: List[str] = Field(default_factory=lambda: ["curl", "zsh"])
    oh_my_zsh: bool = True
    oh_my_zsh_installer_url: str = "https://raw.githubusercontent.com/ohmyzsh/ohmyzsh/master/tools/install.sh"
    oh_my_zsh_dir: str = "~/.oh-my-zsh"
    set_default: bool = True


class DotfilesConfig(_Strict):
    enabled: bool = True
    repo_url: str = "https://github.com/dekaikiwi/dotfiles"
    version: str = "master"
    clone_dir: str = "~/repos/dotfiles"
    force: bool = True
    config_dir: str = "~/.config"
    neovim_config_dir_name: str = "nvim-config"
    neovim_config_link: str = "~/.config/nvim"
    patterns: List[str] = Field(default_factory=lambda: [".*"])
    exclude: List[str] = Field(default_factory=lambda: [".git"])


class NeovimConfig(_Strict):
    enabled: bool = True
    repo_url: str = "https://github.com/neovim/neovim.git"
    version: str = "stable"              # or "master", "nightly", "v0.10.0"
    depth: Optional[int] = 1
    src_dir: str = "~/src"
    clone_dir: str = "~/src/neovim"
    build_type: str = "Release"
    binary_path: str = "/usr/local/bin/nvim"
    build_dependencies: List[str] = Field(
        default_factory=lambda: [
            "git",
            "ninja-build",
            "gettext",
            "cmake",
            "unzip",
            "curl",
            "build-essential",
        ]
    )

    @field_validator("depth")
    @classmethod
    def _positive_depth(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError("depth must be >= 1 (or null for full history)")
        return v


def _default_package_overrides() -> Dict[str, Dict[str, List[str]]]:
    # generic (Debian) name -> names on other families
    return {
        "rpm": {
            "build-essential": ["gcc", "gcc-c++", "make"],
        },
    }


class WorkstationConfig(_Strict):
    """
    Defaults reproduce the reference workstation; a YAML file only needs to
    carry what differs.
    """
    packages: PackagesConfig = PackagesConfig()
    shell: ShellConfig = ShellConfig()
    dotfiles: DotfilesConfig = DotfilesConfig()
    neovim: NeovimConfig = NeovimConfig()
    package_overrides: Dict[str, Dict[str, List[str]]] = Field(default_factory=_default_package_overrides)
