from .export import export_table_to_csv

__all__ = ["export_table_to_csv"]
