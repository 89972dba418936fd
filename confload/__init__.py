"""
confload - recursive include resolution for configuration documents

A configuration may be split across several files, URLs and cloud-storage
objects that pull each other in through "includes". confload fetches every
piece, follows the includes depth first, stops on cycles and hands back the
raw payloads in the order they should be merged.

confload provides:
  - Locator parsing and resolution of relative includes, including Windows
    drive-letter and UNC paths
  - Fetching from the local filesystem, HTTP(S) and Google Cloud Storage
  - Cycle detection along each include path
  - Deterministic post-order results (includes before includers)

Quick Start
-----------
    from confload import load_files

    for document in load_files("config/app.yaml"):
        print(document.origin, len(document.data))

Package Structure
-----------------
paths : module
    Native <-> file-URL path translation.
locator : module
    Locator type and LocatorResolver.
sources : package
    Fetchers for each source kind and the Fetcher dispatcher.
document : module
    Document protocols and the YAML document factory.
loader : module
    IncludeLoader, the recursive traversal.
config : package
    FetchSettings and settings file loading.
exceptions : module
    Exception hierarchy.
logging : module
    Logger protocol and global logger.

Project Information
-------------------
Author: Roger Cibrian
License: Apache-2.0
"""

__version__ = "0.1.0"
__author__ = "Roger Cibrian"
__license__ = "Apache-2.0"
__description__ = "Recursive include resolution for configuration documents"

from confload.config import FetchSettings, load_settings
from confload.document import Document, DocumentFactory, RawDocument, YamlDocumentFactory
from confload.loader import IncludeLoader, load_data, load_files, load_urls
from confload.locator import Locator, LocatorResolver, SourceKind
from confload.paths import PathNormalizer
from confload.sources import Fetcher

__all__ = [
    "__version__",
    "__author__",
    "__license__",
    "__description__",
    "Document",
    "DocumentFactory",
    "FetchSettings",
    "Fetcher",
    "IncludeLoader",
    "Locator",
    "LocatorResolver",
    "PathNormalizer",
    "RawDocument",
    "SourceKind",
    "YamlDocumentFactory",
    "load_data",
    "load_files",
    "load_settings",
    "load_urls",
]
