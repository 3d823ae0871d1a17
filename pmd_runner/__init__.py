"""pmd-runner — launch the bundled PMD distribution from Python."""

__version__ = "0.1.0"
