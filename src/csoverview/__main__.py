"""
csoverview CLI Entry Point

Allows running the package as a module: python -m csoverview
"""

from csoverview.cli import main

if __name__ == "__main__":
    main()
