"""HTTP and command-line surfaces for docchat."""
