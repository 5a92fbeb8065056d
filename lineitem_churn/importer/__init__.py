from .lineitem_tsv_importer import END_OF_INPUT, LineItemTsvImporter

__all__ = ["END_OF_INPUT", "LineItemTsvImporter"]
