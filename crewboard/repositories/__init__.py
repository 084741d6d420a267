from crewboard.repositories.document_repository import SET_FIELDS, DocumentRepository

__all__ = ["DocumentRepository", "SET_FIELDS"]
