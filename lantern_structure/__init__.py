"""Control-flow structuring and pattern passes for a decompiler's high-level IR."""

__version__ = "0.1.0"

__all__ = [
    "hir",
    "cfg_helpers",
    "postdom",
    "guard",
    "conditions",
    "or_chain",
    "elseif",
    "returns",
    "guards",
    "compound",
    "loops",
    "region",
    "branch",
]