"""Ordered keyword vocabularies for heuristic field extraction.

Each classifier table is a sequence of ``(regex, label)`` pairs evaluated
top-to-bottom; the first match wins. Entries for specific categories must
come before their general supersets (single-cell before RNA-seq, NovaSeq
before Illumina).
"""

from __future__ import annotations

from typing import Tuple

# Model organisms recognised in free text, returned title-cased.
MODEL_ORGANISMS: Tuple[str, ...] = (
    "human",
    "mouse",
    "rat",
    "fly",
    "worm",
    "yeast",
    "arabidopsis",
    "zebrafish",
    "e. coli",
)

EXPERIMENT_TYPE_PATTERNS: Tuple[Tuple[str, str], ...] = (
    (r"single[- ]?cell|\bscrna|\bsnrna|10x genomics|drop-?seq", "scRNA-seq"),
    (r"chip[- ]?seq|chip[- ]?chip|\bchip\b|genome binding|occupancy profiling", "ChIP-seq"),
    (r"atac[- ]?seq|\batac\b|chromatin accessibility", "ATAC-seq"),
    (r"methylation|bisulfite|\brrbs\b|methyl-?seq", "Methylation"),
    (r"proteom|mass spectrometry|\bms/ms\b", "Proteomics"),
    (r"metagenom|16s rrna|\b16s\b|microbiome", "Metagenomics"),
    (r"\bwgs\b|whole[- ]genome", "WGS"),
    (r"exome|\bwxs\b|\bwes\b", "Exome-seq"),
    (r"microarray|profiling by array|\bbeadchip\b", "Microarray"),
    (r"rna[- ]?seq|transcriptom|expression profiling by high throughput sequencing|\brna\b", "RNA-seq"),
)

PLATFORM_PATTERNS: Tuple[Tuple[str, str], ...] = (
    (r"hiseq", "Illumina HiSeq"),
    (r"nextseq", "Illumina NextSeq"),
    (r"novaseq", "Illumina NovaSeq"),
    (r"miseq", "Illumina MiSeq"),
    (r"illumina|genome analyzer", "Illumina"),
    (r"pacbio|pacific biosciences|\bsequel\b", "PacBio"),
    (r"nanopore|minion|gridion|promethion", "Oxford Nanopore"),
    (r"ion torrent|ion proton|ion s5|\bpgm\b", "Ion Torrent"),
    (r"\b454\b|roche", "Roche 454"),
)

DISEASE_KEYWORDS: Tuple[str, ...] = (
    "cancer",
    "carcinoma",
    "adenocarcinoma",
    "tumor",
    "tumour",
    "leukemia",
    "lymphoma",
    "melanoma",
    "glioma",
    "glioblastoma",
    "sarcoma",
    "diabetes",
    "obesity",
    "alzheimer",
    "parkinson",
    "huntington",
    "sclerosis",
    "covid",
    "sars-cov-2",
    "influenza",
    "hiv",
    "hepatitis",
    "tuberculosis",
    "sepsis",
    "infection",
    "fibrosis",
    "asthma",
    "arthritis",
    "colitis",
    "crohn",
    "lupus",
    "autism",
    "schizophrenia",
    "cardiomyopathy",
    "atherosclerosis",
)

TISSUE_KEYWORDS: Tuple[str, ...] = (
    "brain",
    "cortex",
    "hippocampus",
    "retina",
    "liver",
    "heart",
    "lung",
    "kidney",
    "spleen",
    "pancreas",
    "stomach",
    "intestine",
    "colon",
    "skin",
    "muscle",
    "bone marrow",
    "blood",
    "plasma",
    "breast",
    "prostate",
    "ovary",
    "testis",
    "placenta",
    "adipose",
    "thymus",
    "lymph node",
)

# study_type substrings mapped to canonical labels.
STUDY_TYPE_PATTERNS: Tuple[Tuple[str, str], ...] = (
    ("in vivo", "In vivo"),
    ("in vitro", "In vitro"),
    ("in silico", "In silico"),
)
