"""Turn scrambled logistics label text into SKU/barcode label records."""

__version__ = "0.1.0"
