from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional

MIN_YEAR = 2005

ORGANISMS = (
    "Homo sapiens",
    "Mus musculus",
    "Rattus norvegicus",
    "Drosophila melanogaster",
    "Caenorhabditis elegans",
    "Saccharomyces cerevisiae",
    "Arabidopsis thaliana",
    "Danio rerio",
    "Escherichia coli",
)

EXPERIMENT_TYPES = (
    "RNA-seq",
    "scRNA-seq",
    "ChIP-seq",
    "ATAC-seq",
    "WGS",
    "Exome-seq",
    "Methylation",
    "Microarray",
    "Proteomics",
    "Metagenomics",
)

PLATFORMS = (
    "Illumina",
    "Illumina HiSeq",
    "Illumina NextSeq",
    "Illumina NovaSeq",
    "Illumina MiSeq",
    "PacBio",
    "Oxford Nanopore",
    "Ion Torrent",
)

STUDY_TYPES = ("In vivo", "In vitro", "In silico")


def max_year(today: Optional[date] = None) -> int:
    return (today or date.today()).year


def filter_options(today: Optional[date] = None) -> Dict[str, Any]:
    """Static catalog of recognised filter values (not derived from live results)."""
    return {
        "organisms": list(ORGANISMS),
        "expTypes": list(EXPERIMENT_TYPES),
        "platforms": list(PLATFORMS),
        "years": {"min": MIN_YEAR, "max": max_year(today)},
        "studyTypes": list(STUDY_TYPES),
    }
