# backend/composer/models/document_template.py
import uuid
from sqlalchemy import Column, String, Text, Boolean, DateTime, JSON, Uuid
from sqlalchemy.sql import func

from composer.db.base_class import Base

class DocumentTemplate(Base):
    # __tablename__ will be 'document_templates'

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    name = Column(String(255), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=False, index=True)
    # Editor tree in the pages[] shape; older rows may still hold a legacy shape
    template = Column(JSON, nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<DocumentTemplate(id={self.id}, name='{self.name}', category='{self.category}')>"
