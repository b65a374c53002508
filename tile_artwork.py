#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Tile a single artwork image across printer sheets.
"""

# local repo modules
import print_tiler.cli


if __name__ == "__main__":
	print_tiler.cli.main()
