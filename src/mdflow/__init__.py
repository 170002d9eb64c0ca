"""Import resolution and merge engine for markdown workflow documents.

This module provides:
- Config: Project configuration management (MdflowConfig)
- Parser: Frontmatter splitting, import directives, import graph resolution
- Console: Compiler-style diagnostics
"""

import logging

from mdflow.config import MdflowConfig as MdflowConfig
from mdflow.config import get_config_or_default as get_config_or_default
from mdflow.config import load_config as load_config

# Library logging stays silent unless the host application configures it
logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"
