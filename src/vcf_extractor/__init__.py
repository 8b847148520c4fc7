"""vcf-extractor: Ion Torrent VCF variant extraction and filtering."""

__version__ = "7.18.0"
