"""Spreadsheet / CSV decoding into raw grids."""
