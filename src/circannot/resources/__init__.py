"""Resource files and configuration templates."""


def get_default_config() -> str:
    """Return default configuration YAML content."""
    return """# circannot Configuration File

# Input files (can be overridden by CLI arguments)
input_file: ~
annotation_file: ~
output_file: ~
assembly: ~

# Runtime settings
runtime:
  log_level: "WARNING"
  log_file: ~

# Annotation options
annotation:
  strand_aware: true
  feature_order: [utr5, utr3, cds, intron]
  feature_null: "intergenic"
  junction_null: "None"
  min_reads: 0

# Gene-symbol lookup (Ensembl BioMart)
lookup:
  resolve_symbols: true
  timeout: 60.0
  chunk_size: 500
  assembly2organism:
    hg19: hsa
    hg38: hsa
    mm10: mmu
    rn5: rno
    dm6: dme
  organism2dataset:
    hsa: hsapiens
    mmu: mmusculus
    rno: rnorvegicus
    dme: dmelanogaster
  assembly2release:
    hg19: GRCh37
    hg38: current
    mm10: current
    rn5: e79
    dm6: current
  ensembl_hosts:
    current: "https://www.ensembl.org"
    GRCh37: "https://grch37.ensembl.org"
    e79: "https://mar2015.archive.ensembl.org"

# circBase mirror
circbase:
  drivername: "mysql+pymysql"
  host: ~
  port: ~
  user: ~
  password: ~
  database: "circbase"
"""
