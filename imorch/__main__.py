#!/usr/bin/env python3
"""
imorch entry point for running as a module: python3 -m imorch
"""

import sys
from imorch.cli import main

if __name__ == '__main__':
    sys.exit(main())
