from importers.helius.helius_importer import HeliusImporter, HeliusImportError

__all__ = ["HeliusImporter", "HeliusImportError"]
