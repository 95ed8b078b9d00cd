"""Entry point for CLI invocation via ``python -m FPZ.BundleAssembly``."""

from FPZ.BundleAssembly.cli import app

if __name__ == "__main__":
    app()
