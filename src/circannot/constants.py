"""Unified constants for circannot.

Labels written into the annotation columns and the default reference layout
are kept here so that loaders, classifiers and plots agree on them.
"""

# ================== Host gene categories ==================
HOST_AMBIGUOUS: str = "ambiguous"
HOST_INTERGENIC: str = "intergenic"
HOST_NO_SINGLE: str = "no_single_host"

# Host values that are not gene identifiers
PSEUDO_HOSTS = frozenset({HOST_AMBIGUOUS, HOST_INTERGENIC, HOST_NO_SINGLE})


# ================== Gene features ==================
FEATURE_UTR5: str = "utr5"
FEATURE_UTR3: str = "utr3"
FEATURE_CDS: str = "cds"
FEATURE_INTRON: str = "intron"

# Precedence order of gene sub-features (rank 0 first)
DEFAULT_FEATURE_ORDER = (FEATURE_UTR5, FEATURE_UTR3, FEATURE_CDS, FEATURE_INTRON)

# Label for boundaries outside every gene sub-feature
FEATURE_NULL: str = "intergenic"

# Separator for composite feature labels ("utr5:cds")
FEATURE_SEP: str = ":"


# ================== Known junctions ==================
JUNCTION_START: str = "start"
JUNCTION_END: str = "end"
JUNCTION_NULL: str = "None"

JUNCT_BOTH: str = "both"
JUNCT_NONE: str = "none"
JUNCT_5PR: str = "5pr"
JUNCT_3PR: str = "3pr"


# ================== Overlap annotator ==================
MODE_PRECEDENCE: str = "precedence"
MODE_ALL: str = "all"
ANNOTATION_MODES = (MODE_PRECEDENCE, MODE_ALL)

OVERLAP_ANY: str = "any"
OVERLAP_WITHIN: str = "within"
OVERLAP_TYPES = (OVERLAP_ANY, OVERLAP_WITHIN)

LABEL_BY_COLLECTION: str = "collection"
LABEL_BY_NAME: str = "name"
LABEL_SOURCES = (LABEL_BY_COLLECTION, LABEL_BY_NAME)


# ================== Strand ==================
STRAND_PLUS: str = "+"
STRAND_MINUS: str = "-"
STRAND_NONE: str = "*"
VALID_STRANDS = frozenset({STRAND_PLUS, STRAND_MINUS, STRAND_NONE})
