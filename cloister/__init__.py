"""
Cloister - directory-scoped filesystem access.

Callers name a directory alias plus a relative path; Cloister resolves the
pair, checks shared storage permission, performs one filesystem call and
reports a uniform result.
"""

__version__ = "0.3.0"

from cloister import Config
from cloister import PermissionGate
from cloister import StorageGate
from cloister import Bridge
