"""Core of vsolve: version sets and the PubGrub solving engine."""
