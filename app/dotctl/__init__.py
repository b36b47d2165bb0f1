"""dotctl - Declarative dotfile management.

Keeps the files, directories, symlinks, and scripts described by a
source directory applied to your home directory, and captures existing
dotfiles back into that source directory.
"""

__version__ = "0.1.0"
