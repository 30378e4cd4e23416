"""circannot annotation modules.

- circ_loader    -> find_circ tables, linear support, ratio
- annotation_db  -> reference collections from a GTF
- host_genes     -> host gene per candidate
- flanks         -> gene feature at the boundaries
- junctions      -> known splice sites at the boundaries
- symbols        -> Ensembl BioMart gene symbols
- circbase       -> circBase ids and studies
- visualize      -> descriptive plots
"""
