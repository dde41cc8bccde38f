#!/usr/bin/env python3
"""Run the group-interface generator.

Usage:
    PYTHONPATH=scripts bin/group-interfaces.py schema.xsd [options]    # see --help
"""

import sys

from group_interfaces.cli import main

if __name__ == "__main__":
    sys.exit(main())
