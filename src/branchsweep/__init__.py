"""Safe cleanup of merged git branches.

Features:
- Classify every branch as safe to delete or carrying unmerged work
- Protected branches are never analyzed or deleted
- Remote-only branches can be checked out temporarily for analysis
- Every deletion, local or remote, is confirmed individually
"""

__version__ = "0.1.0"
