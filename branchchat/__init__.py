"""
BranchChat - chat backend with editable, branching conversations
"""

__version__ = "0.1.0"
