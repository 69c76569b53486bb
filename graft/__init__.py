"""Graft - a local version-control engine built on a content-addressed commit graph."""

__version__ = '0.1.0'

from graft.log_utils import default_logging_config
from graft.core.repository import Repository
from graft.core.objects import GraftObject, Blob, Tree, Commit

__all__ = [
    'Repository',
    'GraftObject',
    'Blob',
    'Tree',
    'Commit',
    'default_logging_config',
]
