"""
Entry point for running tandem as a module.

Usage:
    python -m tandem bootstrap Korean
    python -m tandem chat korean
    python -m tandem --help
"""
from .cli import main

if __name__ == "__main__":
    main()
