"""System access layer.

Read-only filesystem queries and the mutators that perform every
filesystem side effect.
"""

from dotctl.system.accessor import FileSystem, VisitResult, Visitor
from dotctl.system.mutator import (
    DryRunMutator,
    FsMutator,
    Mutator,
    MutatorOperation,
    ScriptError,
    VerboseMutator,
)

__all__ = [
    "DryRunMutator",
    "FileSystem",
    "FsMutator",
    "Mutator",
    "MutatorOperation",
    "ScriptError",
    "VerboseMutator",
    "VisitResult",
    "Visitor",
]
