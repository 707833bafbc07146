"""
Importers module - TikTok Studio CSV import
"""

from .csv_importer import CSVVideoImporter, read_csv

__all__ = ['CSVVideoImporter', 'read_csv']
