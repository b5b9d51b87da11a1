"""
Entry point for running dns_speedtester as a module.

Usage: python -m dns_speedtester [OPTIONS] COMMAND [ARGS]...
"""

from .cli import main

if __name__ == "__main__":
    main()
