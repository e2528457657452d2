"""Omics study portal: NCBI GEO/SRA search, normalization and assistant API."""
