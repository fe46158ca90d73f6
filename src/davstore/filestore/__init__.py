from davstore.filestore.base import FileStore
from davstore.filestore.catalog import Catalog, fetch_resource_list
from davstore.filestore.dav import DavFileStore
from davstore.filestore.transfer import TransferContext, TransferMode
from davstore.filestore.types import FileStat, FileType, Resource, ResourceKind, StatFields

__all__ = [
    "FileStore",
    "DavFileStore",
    "Catalog",
    "fetch_resource_list",
    "TransferContext",
    "TransferMode",
    "FileStat",
    "FileType",
    "Resource",
    "ResourceKind",
    "StatFields",
]
