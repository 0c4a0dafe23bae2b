"""
toolshim: install command-line tools from release catalogs and run the
version each project asks for through shims.
"""

__version__ = "0.1.0"
