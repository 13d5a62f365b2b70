"""devtools-provisioner: install and keep healthy a developer tool chain."""

__version__ = "0.1.0"
