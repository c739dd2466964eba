"""Importer packages for ingesting saved on-chain transaction history."""

from importers.helius import HeliusImporter

__all__ = ["HeliusImporter"]
