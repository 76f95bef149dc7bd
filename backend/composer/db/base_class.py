from sqlalchemy.orm import declarative_base, declared_attr
from typing import Any

class CustomBase:
    # document_template -> document_templates
    @declared_attr
    def __tablename__(cls) -> str:
        name = "".join(f"_{ch.lower()}" if ch.isupper() else ch for ch in cls.__name__).lstrip("_")
        return name + "s"

Base: Any = declarative_base(cls=CustomBase)
