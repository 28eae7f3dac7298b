"""Entry point for the binquadkey command-line tool."""

from binquadkey.cli import main

if __name__ == "__main__":
    main()
