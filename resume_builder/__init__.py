"""Resume builder.

Compose résumés from a reorderable set of toggleable sections (built-in and
user-defined), render them as a Classic single-column or TwoSide sidebar
layout, export PDF/DOCX, and round-trip them through the resume service.
"""

__version__ = "0.1.0"
