"""Roster -> illustrated workbook tool.

Reads a roster worksheet, generates one QR-code image per roster identifier and
embeds the images back into a copy of the workbook.
"""

__version__ = "0.1.0"
