"""Member OAuth bridge: reconcile bridge-issued identities into site members."""

__version__ = "0.1.0"
