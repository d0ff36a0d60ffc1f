"""
Function Module
Storage-triggered classification function
"""

from .functions import STORAGE_FINALIZED_EVENT, create_classify_function, verify_build_source

__all__ = ["STORAGE_FINALIZED_EVENT", "create_classify_function", "verify_build_source"]
