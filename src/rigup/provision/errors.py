# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/rigup/provision/errors.py

class ProvisionError(RuntimeError):
    """Base class for provisioning failures."""


class StepError(ProvisionError):
    """Raised by a step action when its unmet condition should fail the step."""


class MissingExecutableError(StepError):
    """Raised when a required executable cannot be resolved after installation."""


class FactError(ProvisionError):
    """Raised on unknown facts or attempts to overwrite a resolved fact."""


class LinkError(ProvisionError):
    """Raised when a symlink cannot be put in place."""


class LinkTargetMissingError(LinkError):
    """Raised when the directory that should hold the links does not exist."""


class PackageManagerNotFound(ProvisionError):
    """Raised when no supported system package manager is available."""


class GitError(ProvisionError):
    """Raised when a git clone/update leaves the checkout unusable."""
