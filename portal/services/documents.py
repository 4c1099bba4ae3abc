# portal/services/documents.py
"""
Strategy Document Cache & Generation

One record per (client, document type). Reads return the cached record
unless the caller forces regeneration; every miss renders the client's
strategy context, calls the generator, and upserts the result.

No lock is held across the generation call. Concurrent forced requests
both generate and the last write wins.
"""

from dataclasses import dataclass
from typing import List, Optional
from uuid import UUID
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from portal.database import utcnow
from portal.errors import InvalidArgument
from portal.models.activity import ActivityType
from portal.models.document import DocumentType, GeneratedDocument
from portal.services import prompts
from portal.services.activity import record_activity
from portal.services.context import build_strategy_context
from portal.services.generation import GenerationInvoker
from portal.services.profiles import ProfileStore

logger = logging.getLogger(__name__)

DOCUMENT_TEMPERATURE = 0.7
DOCUMENT_MAX_TOKENS = 4000


def count_words(content: str) -> int:
    return len(content.split())


@dataclass
class DocumentResult:
    document: GeneratedDocument
    cached: bool


class DocumentStore:
    """Keyed store of generated documents."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, client_id: UUID, document_type: DocumentType) -> Optional[GeneratedDocument]:
        return self.db.query(GeneratedDocument).filter(
            GeneratedDocument.client_id == client_id,
            GeneratedDocument.document_type == document_type
        ).first()

    def list_for_client(self, client_id: UUID) -> List[GeneratedDocument]:
        return self.db.query(GeneratedDocument)\
                      .filter(GeneratedDocument.client_id == client_id)\
                      .order_by(GeneratedDocument.generated_at.desc())\
                      .all()

    def upsert(
        self,
        client_id: UUID,
        document_type: DocumentType,
        title: str,
        content: str,
        word_count: int
    ) -> GeneratedDocument:
        """
        Insert or replace the document for (client, type).

        An update replaces title, content and word count and bumps
        ``updated_at``; ``generated_at`` keeps its first value.
        """
        existing = self.get(client_id, document_type)
        if existing:
            return self._update(existing, title, content, word_count)

        document = GeneratedDocument(
            client_id=client_id,
            document_type=document_type,
            title=title,
            content=content,
            word_count=word_count,
        )
        self.db.add(document)
        try:
            self.db.commit()
        except IntegrityError:
            # Another request inserted the same key first
            self.db.rollback()
            logger.warning(f"Concurrent insert for {client_id}/{document_type.value}, applying as update")
            existing = self.get(client_id, document_type)
            return self._update(existing, title, content, word_count)

        self.db.refresh(document)
        return document

    def _update(self, document: GeneratedDocument, title: str, content: str, word_count: int) -> GeneratedDocument:
        document.title = title
        document.content = content
        document.word_count = word_count
        document.updated_at = utcnow()
        self.db.commit()
        self.db.refresh(document)
        return document


class DocumentService:
    """Cache-or-generate orchestration for strategy documents."""

    def __init__(self, db: Session, generator: GenerationInvoker):
        self.db = db
        self.generator = generator
        self.profiles = ProfileStore(db)
        self.store = DocumentStore(db)

    async def get_or_generate(
        self,
        client_id: UUID,
        document_type: str,
        force_regenerate: bool = False
    ) -> DocumentResult:
        """
        Return the client's document of ``document_type``, generating it on a miss.

        Args:
            client_id: Owning client profile
            document_type: One of the fifteen registry keys
            force_regenerate: Skip the cache and overwrite the stored record

        Returns:
            The stored document and whether it came from the cache

        Raises:
            InvalidArgument: Unknown document type (nothing is read or written)
            NotFoundError: No profile for ``client_id``
            GenerationFailed: Generation failed or returned no content
        """
        try:
            doc_type = prompts.parse_document_type(document_type)
        except ValueError:
            logger.warning(f"Invalid document type requested: {document_type!r}")
            raise InvalidArgument("Invalid document type")

        profile = self.profiles.require(client_id)

        if not force_regenerate:
            existing = self.store.get(client_id, doc_type)
            if existing:
                logger.info(f"📄 Returning cached {doc_type.value} for client {client_id}")
                return DocumentResult(document=existing, cached=True)

        logger.info(f"📝 Generating {doc_type.value} for client {client_id} (force={force_regenerate})")

        system_prompt = prompts.document_system_prompt(doc_type, build_strategy_context(profile))
        # No fallback: empty output raises GenerationFailed
        content = await self.generator.generate_text(
            system_prompt=system_prompt,
            messages=[{"role": "user", "content": prompts.document_user_prompt(doc_type)}],
            temperature=DOCUMENT_TEMPERATURE,
            max_tokens=DOCUMENT_MAX_TOKENS,
        )

        title = prompts.document_title(doc_type)
        word_count = count_words(content)

        document = self.store.upsert(client_id, doc_type, title, content, word_count)

        record_activity(
            self.db,
            client_id,
            ActivityType.DOCUMENT_GENERATED,
            f"Generated {title}",
            {"document_type": doc_type.value, "word_count": word_count, "forced": force_regenerate},
        )
        self.db.commit()

        logger.info(f"✅ {doc_type.value} stored for client {client_id} ({word_count} words)")
        return DocumentResult(document=document, cached=False)
