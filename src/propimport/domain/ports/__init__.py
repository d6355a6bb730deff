"""Domain port definitions for adapters."""

from __future__ import annotations

from .credentials import CredentialPolicy, ProviderCredentials
from .extraction import ExtractionGateway, ExtractionRequest, ExtractionResult, FileUpload
from .persistence import PropertyRepository, PropertyStore, Repository
from .unit_of_work import (
    PropertyRepositories,
    PropertyUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "CredentialPolicy",
    "ExtractionGateway",
    "ExtractionRequest",
    "ExtractionResult",
    "FileUpload",
    "PropertyRepositories",
    "PropertyRepository",
    "PropertyStore",
    "PropertyUnitOfWork",
    "ProviderCredentials",
    "Repository",
    "RepositoryCollection",
    "UnitOfWork",
]
